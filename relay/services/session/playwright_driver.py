"""WhatsApp Web connection driver built on a persistent Playwright Chromium profile."""

import asyncio
import time
from pathlib import Path
from typing import Optional, Union
from urllib.parse import quote

from loguru import logger
from playwright.async_api import BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ...constants import DisconnectReason, WhatsAppSelectors, WhatsAppWeb
from ...core.exceptions import DriverError, RecipientNotRegisteredError
from ...utils.phone import from_chat_id
from .driver import ConnectionDriver, SessionListener


class PlaywrightWhatsAppDriver(ConnectionDriver):
    """
    Drives WhatsApp Web in Chromium and turns page states into session events.

    The browser profile lives under ``<session_path>/session-<client_id>`` so the
    paired credential survives restarts. A watch loop polls the page:

    - QR element present with a new ``data-ref``  -> ``handle_qr``
    - QR gone after being shown                   -> ``handle_authenticated``
    - chat pane visible                           -> ``handle_ready``
    - QR back after ready                         -> ``handle_disconnected("LOGOUT")``
    - page or browser closed                      -> ``handle_disconnected("CONNECTION_LOST")``
    - no chat pane within the auth timeout        -> ``handle_auth_failure``
    """

    def __init__(
        self,
        session_path: Union[str, Path],
        client_id: str = WhatsAppWeb.DEFAULT_CLIENT_ID,
        headless: bool = True,
        launch_timeout_ms: int = 60000,
        auth_timeout_seconds: float = 60.0,
        poll_interval: float = WhatsAppWeb.POLL_INTERVAL_SECONDS,
        send_settle_seconds: float = WhatsAppWeb.SEND_SETTLE_SECONDS,
    ):
        """
        Initialize driver.

        Args:
            session_path: Directory holding per-client browser profiles
            client_id: Session name, one profile per client id
            headless: Run Chromium without a window
            launch_timeout_ms: Browser launch and navigation timeout
            auth_timeout_seconds: Allowed time between QR scan and chat pane
            poll_interval: Seconds between page state checks
            send_settle_seconds: Pause after pressing Enter so the message leaves
        """
        self.profile_dir = Path(session_path) / f"session-{client_id}"
        self.headless = headless
        self._launch_timeout_ms = launch_timeout_ms
        self._auth_timeout = auth_timeout_seconds
        self._poll_interval = poll_interval
        self._send_settle_seconds = send_settle_seconds

        self.playwright: Optional[Playwright] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None

        self._listener: Optional[SessionListener] = None
        self._watch_task: Optional[asyncio.Task] = None
        self._send_lock = asyncio.Lock()
        self._stopping = False

        # Page-derived state
        self._last_qr: Optional[str] = None
        self._ready = False
        self._authenticating_since: Optional[float] = None
        self._connection_lost = False

    async def start(self, listener: SessionListener) -> None:
        """Launch Chromium, open WhatsApp Web and start the watch loop."""
        if self.context is not None:
            logger.warning("WhatsApp driver already started")
            return

        self._listener = listener
        self._stopping = False
        self._connection_lost = False

        try:
            self.profile_dir.mkdir(parents=True, exist_ok=True)
            self.playwright = await async_playwright().start()
            self.context = await self.playwright.chromium.launch_persistent_context(
                str(self.profile_dir),
                headless=self.headless,
                args=list(WhatsAppWeb.CHROMIUM_ARGS),
                user_agent=WhatsAppWeb.USER_AGENT,
                viewport={"width": 1280, "height": 900},
                timeout=self._launch_timeout_ms,
            )
            self.page = self.context.pages[0] if self.context.pages else await self.context.new_page()
            await self.page.goto(
                WhatsAppWeb.URL, wait_until="domcontentloaded", timeout=self._launch_timeout_ms
            )
        except PlaywrightError as e:
            await self.stop()
            raise DriverError(f"Failed to launch WhatsApp Web: {e}", recoverable=False) from e
        except Exception:
            # Clean up partial resources on error
            await self.stop()
            raise

        self._watch_task = asyncio.create_task(self._watch_loop())
        logger.info(f"WhatsApp Web opened (profile: {self.profile_dir})")

    async def stop(self) -> None:
        """Stop the watch loop and release browser resources."""
        self._stopping = True

        if self._watch_task:
            self._watch_task.cancel()
            try:
                await self._watch_task
            except asyncio.CancelledError:
                pass
            self._watch_task = None

        if self.context:
            try:
                await self.context.close()
            except PlaywrightError as e:
                logger.debug(f"Browser context already closed: {e}")
            self.context = None

        if self.playwright:
            await self.playwright.stop()
            self.playwright = None

        self.page = None
        self._ready = False
        self._last_qr = None
        self._authenticating_since = None
        logger.info("WhatsApp driver resources cleaned up")

    async def send_message(self, chat_id: str, text: str) -> None:
        """
        Open the chat with the text prefilled and press Enter.

        Raises:
            RecipientNotRegisteredError: If WhatsApp reports the number as invalid
            DriverError: If the page fails to navigate or the compose box never shows
        """
        phone = from_chat_id(chat_id)
        async with self._send_lock:
            page = self._require_page()
            try:
                if not await self._open_chat(page, phone, text):
                    raise RecipientNotRegisteredError(f"+{phone}")
                await page.press(WhatsAppSelectors.COMPOSE_BOX, "Enter")
                await asyncio.sleep(self._send_settle_seconds)
            except PlaywrightError as e:
                raise DriverError(f"WhatsApp send failed: {e}") from e

    async def is_registered(self, chat_id: str) -> bool:
        phone = from_chat_id(chat_id)
        async with self._send_lock:
            page = self._require_page()
            try:
                return await self._open_chat(page, phone)
            except PlaywrightError as e:
                raise DriverError(f"WhatsApp registration check failed: {e}") from e

    async def _open_chat(self, page: Page, phone: str, text: str = "") -> bool:
        """Navigate to a chat; False when WhatsApp shows its invalid-number popup."""
        url = f"{WhatsAppWeb.SEND_URL}?phone={phone}"
        if text:
            url += f"&text={quote(text)}"
        await page.goto(url, wait_until="domcontentloaded", timeout=self._launch_timeout_ms)
        try:
            await page.wait_for_selector(
                WhatsAppSelectors.COMPOSE_BOX, timeout=WhatsAppWeb.COMPOSE_TIMEOUT_MS
            )
            return True
        except PlaywrightTimeoutError:
            if await page.query_selector(WhatsAppSelectors.INVALID_NUMBER_POPUP) is not None:
                return False
            raise DriverError("Timed out waiting for the WhatsApp chat to open")

    def _require_page(self) -> Page:
        if self.page is None or self.page.is_closed():
            raise DriverError("WhatsApp Web page is not open")
        return self.page

    async def _watch_loop(self) -> None:
        """Background loop translating page state into session events."""
        while True:
            try:
                await asyncio.sleep(self._poll_interval)
                if not await self._poll_once():
                    break
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in WhatsApp watch loop: {e}")

    async def _poll_once(self) -> bool:
        """
        Inspect the page once and emit at most one transition.

        Returns:
            False once the page is gone and watching should stop
        """
        page = self.page
        if page is None or page.is_closed():
            if not self._stopping and not self._connection_lost:
                self._connection_lost = True
                self._ready = False
                self._emit_disconnected(DisconnectReason.CONNECTION_LOST)
            return False

        # A send is navigating the page; its transient states are not session events
        if self._send_lock.locked():
            return True

        qr_payload = await self._read_qr(page)
        if qr_payload:
            self._authenticating_since = None
            if self._ready:
                self._ready = False
                self._last_qr = None
                self._emit_disconnected(DisconnectReason.LOGOUT)
            if qr_payload != self._last_qr:
                self._last_qr = qr_payload
                await self._emit_qr(qr_payload)
            return True

        if await page.query_selector(WhatsAppSelectors.CHAT_PANE) is not None:
            if not self._ready:
                if self._authenticating_since is None:
                    self._emit(lambda listener: listener.handle_authenticated())
                self._ready = True
                self._last_qr = None
                self._authenticating_since = None
                self._emit(lambda listener: listener.handle_ready())
            return True

        # Neither QR nor chats: loading, or a scanned QR being processed
        if self._last_qr is not None and not self._ready:
            now = time.monotonic()
            if self._authenticating_since is None:
                self._authenticating_since = now
                self._emit(lambda listener: listener.handle_authenticated())
            elif now - self._authenticating_since > self._auth_timeout:
                self._authenticating_since = None
                self._last_qr = None
                self._emit(
                    lambda listener: listener.handle_auth_failure(
                        "Timed out waiting for WhatsApp to load chats after pairing"
                    )
                )
        return True

    async def _read_qr(self, page: Page) -> Optional[str]:
        element = await page.query_selector(WhatsAppSelectors.QR_CODE)
        if element is None:
            return None
        return await element.get_attribute(WhatsAppSelectors.QR_ATTRIBUTE)

    async def _emit_qr(self, payload: str) -> None:
        if self._listener is None:
            return
        try:
            await self._listener.handle_qr(payload)
        except Exception as e:
            logger.error(f"QR event handler failed: {e}")

    def _emit_disconnected(self, reason: str) -> None:
        self._emit(lambda listener: listener.handle_disconnected(reason))

    def _emit(self, event) -> None:
        if self._listener is None:
            return
        try:
            event(self._listener)
        except Exception as e:
            logger.error(f"Session event handler failed: {e}")
