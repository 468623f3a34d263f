"""WhatsApp session lifecycle: pairing, readiness and message sending."""

import asyncio
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from loguru import logger

from ...constants import DisconnectReason
from ...core.exceptions import (
    DeliveryFailedError,
    DriverError,
    RelayError,
    ServiceUnavailableError,
)
from ...utils.decorators import retry_async
from ...utils.masking import mask_phone
from ...utils.phone import to_chat_id
from .driver import ConnectionDriver
from .qr import encode_qr_data_url

DestroyHook = Callable[[], Awaitable[None]]


class SessionState(str, Enum):
    """Lifecycle states of the WhatsApp session."""

    UNINITIALIZED = "uninitialized"
    STARTING = "starting"
    PAIRING = "pairing"
    AUTHENTICATED = "authenticated"
    READY = "ready"
    DISCONNECTED = "disconnected"
    AUTH_FAILED = "auth_failed"
    FAILED = "failed"


class SessionManager:
    """
    Owns the single WhatsApp connection of the process.

    The connection driver reports events through the ``handle_*`` methods, which
    form the only mutation entry points of the session state. Handlers never
    raise; failures are logged and reflected in :meth:`snapshot`.
    """

    def __init__(
        self,
        driver: ConnectionDriver,
        qr_encoder: Callable[[str], str] = encode_qr_data_url,
        send_max_retries: int = 2,
        send_retry_delay: float = 2.0,
        send_retry_backoff: float = 2.0,
    ):
        """
        Initialize session manager.

        Args:
            driver: Connection driver bridging to WhatsApp
            qr_encoder: Turns a raw pairing challenge into a displayable artifact
            send_max_retries: Retries after the first failed send attempt
            send_retry_delay: Initial delay between send attempts in seconds
            send_retry_backoff: Delay multiplier between attempts
        """
        self._driver = driver
        self._qr_encoder = qr_encoder
        self._send_max_retries = send_max_retries
        self._send_retry_delay = send_retry_delay
        self._send_retry_backoff = send_retry_backoff

        self._state = SessionState.UNINITIALIZED
        self._ready = False
        self._qr_code: Optional[str] = None
        self._init_error: Optional[str] = None
        self._last_event_at: Optional[datetime] = None

        self._init_lock = asyncio.Lock()
        self._initialized = False
        self._destroyed = False
        self._destroy_hooks: List[DestroyHook] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """
        Start the connection driver once per process.

        Repeat and concurrent calls are no-ops. A launch failure is logged and
        recorded as ``init_error`` instead of being raised, so the HTTP facade
        keeps answering health checks. Readiness arrives later via the ready event.
        """
        async with self._init_lock:
            if self._initialized:
                logger.debug("WhatsApp session already initialized, skipping")
                return
            self._initialized = True
            self._destroyed = False
            self._init_error = None
            self._transition(SessionState.STARTING)

            logger.info("Initializing WhatsApp session...")
            try:
                await self._driver.start(self)
            except Exception as e:
                self._init_error = str(e) or e.__class__.__name__
                self._ready = False
                self._transition(SessionState.FAILED)
                logger.error(f"WhatsApp session failed to initialize: {self._init_error}")
                return

            logger.info("WhatsApp driver started, waiting for pairing or ready event")

    def add_destroy_hook(self, hook: DestroyHook) -> None:
        """Register a coroutine function to run when the session is destroyed."""
        self._destroy_hooks.append(hook)

    async def destroy(self) -> None:
        """
        Tear down the connection and clear state owned by this process scope.

        Idempotent and safe to call from shutdown signal handling.
        """
        if self._destroyed:
            logger.debug("WhatsApp session already destroyed")
            return
        self._destroyed = True

        logger.info("Destroying WhatsApp session...")
        try:
            await self._driver.stop()
        except Exception as e:
            logger.error(f"Error stopping WhatsApp driver: {e}")

        self._ready = False
        self._qr_code = None
        self._initialized = False
        self._transition(SessionState.UNINITIALIZED)

        for hook in self._destroy_hooks:
            try:
                await hook()
            except Exception as e:
                logger.error(f"Destroy hook {getattr(hook, '__name__', hook)!r} failed: {e}")

        logger.info("WhatsApp session destroyed")

    # ------------------------------------------------------------------
    # Driver events
    # ------------------------------------------------------------------

    async def handle_qr(self, payload: str) -> None:
        """Store a new pairing challenge as a QR data URL."""
        if self._ready:
            logger.debug("QR event ignored: session already ready")
            return
        try:
            data_url = await asyncio.to_thread(self._qr_encoder, payload)
        except Exception as e:
            logger.error(f"Failed to encode pairing QR code: {e}")
            return

        # Ready may have arrived while encoding
        if self._ready:
            return
        self._qr_code = data_url
        self._transition(SessionState.PAIRING)
        logger.info("QR code received - scan it with WhatsApp to pair this session")

    def handle_authenticated(self) -> None:
        """Pairing accepted; waiting for the chat list to load."""
        self._qr_code = None
        if self._state is not SessionState.READY:
            self._transition(SessionState.AUTHENTICATED)
        logger.info("WhatsApp authenticated")

    def handle_ready(self) -> None:
        self._ready = True
        self._qr_code = None
        self._init_error = None
        self._transition(SessionState.READY)
        logger.info("WhatsApp client is ready")

    def handle_auth_failure(self, message: Optional[str] = None) -> None:
        self._ready = False
        self._transition(SessionState.AUTH_FAILED)
        logger.error(f"WhatsApp authentication failed: {message or 'unknown reason'}")

    def handle_disconnected(self, reason: Optional[str] = None) -> None:
        """
        Mark the session not ready.

        A logout invalidates the paired credential, so the stale QR code is
        dropped; other reasons keep it for automatic re-pairing.
        """
        self._ready = False
        if reason == DisconnectReason.LOGOUT:
            self._qr_code = None
        self._transition(SessionState.DISCONNECTED)
        logger.warning(f"WhatsApp disconnected: {reason or 'unknown reason'}")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_ready(self) -> bool:
        return self._ready

    def get_qr_code(self) -> Optional[str]:
        return self._qr_code

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def init_error(self) -> Optional[str]:
        return self._init_error

    def snapshot(self) -> Dict[str, Any]:
        """Session state for health checks and diagnostics."""
        return {
            "state": self._state.value,
            "ready": self._ready,
            "has_qr_code": self._qr_code is not None,
            "init_error": self._init_error,
            "last_event_at": self._last_event_at.isoformat() if self._last_event_at else None,
        }

    # ------------------------------------------------------------------
    # Messaging
    # ------------------------------------------------------------------

    async def send(self, phone_number: str, text: str) -> None:
        """
        Send a text message to a normalized phone number.

        Args:
            phone_number: Normalized number (``+<digits>``)
            text: Message body

        Raises:
            ServiceUnavailableError: If the session is not ready
            DeliveryFailedError: If every send attempt failed
        """
        self._require_ready()
        chat_id = to_chat_id(phone_number)

        @retry_async(
            max_retries=self._send_max_retries,
            delay=self._send_retry_delay,
            backoff=self._send_retry_backoff,
            exceptions=(DriverError,),
        )
        async def deliver_message() -> None:
            await self._driver.send_message(chat_id, text)

        try:
            await deliver_message()
        except RelayError as e:
            if isinstance(e, DriverError):
                raise DeliveryFailedError(details={"reason": e.message}) from e
            raise
        except Exception as e:
            logger.error(f"Unexpected error sending to {mask_phone(phone_number)}: {e}")
            raise DeliveryFailedError(details={"reason": str(e)}) from e

        logger.info(f"WhatsApp message sent to {mask_phone(phone_number)}")

    async def is_registered(self, phone_number: str) -> bool:
        """
        Check whether a normalized phone number has a WhatsApp account.

        Raises:
            ServiceUnavailableError: If the session is not ready
            DeliveryFailedError: If the lookup itself failed
        """
        self._require_ready()
        try:
            return await self._driver.is_registered(to_chat_id(phone_number))
        except Exception as e:
            logger.error(f"Registration check failed for {mask_phone(phone_number)}: {e}")
            raise DeliveryFailedError(
                "Failed to verify WhatsApp registration", details={"reason": str(e)}
            ) from e

    def _require_ready(self) -> None:
        if not self._ready:
            raise ServiceUnavailableError()

    def _transition(self, state: SessionState) -> None:
        if state is not self._state:
            logger.debug(f"WhatsApp session state: {self._state.value} -> {state.value}")
        self._state = state
        self._last_event_at = datetime.now(timezone.utc)
