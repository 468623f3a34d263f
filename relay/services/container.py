"""Process-wide service wiring.

Each service is constructed exactly once here and injected into consumers
(the FastAPI app keeps the container on ``app.state``).
"""

import asyncio
from dataclasses import dataclass, field
from typing import Optional

from loguru import logger

from ..core.settings import RelaySettings
from ..utils.phone import PhoneNormalizer
from .notification.dispatcher import NotificationDispatcher
from .otp.service import OTPService
from .otp.store import InMemoryOTPStore, OTPStore
from .session.driver import ConnectionDriver
from .session.manager import SessionManager


@dataclass
class RelayServices:
    """Session manager, OTP service and notification dispatcher sharing one session."""

    settings: RelaySettings
    session: SessionManager
    otp: OTPService
    notifications: NotificationDispatcher
    _init_task: Optional[asyncio.Task] = field(default=None, repr=False)

    @classmethod
    def build(
        cls,
        settings: RelaySettings,
        driver: Optional[ConnectionDriver] = None,
        store: Optional[OTPStore] = None,
    ) -> "RelayServices":
        """
        Wire the services from settings.

        Args:
            settings: Relay settings
            driver: Connection driver (defaults to the Playwright WhatsApp Web driver)
            store: OTP store (defaults to in-memory)
        """
        if driver is None:
            from .session.playwright_driver import PlaywrightWhatsAppDriver

            driver = PlaywrightWhatsAppDriver(
                session_path=settings.session_path,
                client_id=settings.client_id,
                headless=settings.headless,
                launch_timeout_ms=settings.browser_launch_timeout_ms,
                auth_timeout_seconds=settings.auth_timeout_seconds,
            )

        normalizer = PhoneNormalizer(
            default_country_code=settings.default_country_code,
            trunk_prefix=settings.trunk_prefix,
        )
        session = SessionManager(
            driver,
            send_max_retries=settings.send_max_retries,
            send_retry_delay=settings.send_retry_delay,
        )
        otp = OTPService(
            session,
            store=store or InMemoryOTPStore(),
            normalizer=normalizer,
            code_length=settings.otp_length,
            ttl_seconds=settings.otp_ttl_seconds,
            consumed_retention_seconds=settings.otp_consumed_retention_seconds,
            app_name=settings.app_name,
        )
        # OTPs live in this process scope; tearing the session down drops them
        session.add_destroy_hook(otp.clear)

        return cls(
            settings=settings,
            session=session,
            otp=otp,
            notifications=NotificationDispatcher(session, normalizer),
        )

    async def start(self) -> None:
        """
        Start background work without blocking.

        Session initialization runs as a task because browser startup takes
        seconds; the HTTP port opens immediately and reports not-ready meanwhile.
        """
        self._init_task = asyncio.create_task(self.session.initialize())
        await self.otp.start_cleanup_scheduler(self.settings.otp_cleanup_interval_seconds)
        logger.info("Relay services started")

    async def shutdown(self) -> None:
        """Stop background work and destroy the session (clears the OTP store)."""
        if self._init_task and not self._init_task.done():
            self._init_task.cancel()
            try:
                await self._init_task
            except asyncio.CancelledError:
                pass
        self._init_task = None

        await self.otp.stop_cleanup_scheduler()
        await self.session.destroy()
        logger.info("Relay services stopped")
