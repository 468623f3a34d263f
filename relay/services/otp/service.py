"""OTP issuance and verification over WhatsApp."""

import asyncio
import hmac
import math
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Set

from loguru import logger

from ...constants import OTP
from ...core.exceptions import (
    InvalidInputError,
    OTPAlreadyConsumedError,
    OTPCodeMismatchError,
    OTPExpiredError,
    OTPNotFoundError,
    RelayError,
    ServiceUnavailableError,
)
from ...utils.decorators import timed_async
from ...utils.masking import mask_identifier, mask_otp, mask_phone
from ...utils.phone import PhoneNormalizer
from ..notification.message_templates import MessageTemplates
from ..session.manager import SessionManager
from .models import IssuedOTP, OTPRecord, VerifiedOTP
from .store import InMemoryOTPStore, OTPStore


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OTPService:
    """
    Phone verification via one-time codes delivered over WhatsApp.

    Record lifecycle: ``Active -> Consumed -> Deleted`` (after the retention
    grace window) or ``Active -> Expired -> Deleted`` (sweep or verify attempt).
    When several codes are outstanding for one phone number, phone lookup
    resolves to the newest; older codes stay verifiable only by identifier.
    """

    def __init__(
        self,
        session: SessionManager,
        store: Optional[OTPStore] = None,
        normalizer: Optional[PhoneNormalizer] = None,
        code_length: int = OTP.CODE_LENGTH,
        ttl_seconds: int = OTP.TTL_SECONDS,
        consumed_retention_seconds: float = OTP.CONSUMED_RETENTION_SECONDS,
        app_name: str = "Barlink",
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Initialize OTP service.

        Args:
            session: Session manager used to deliver codes
            store: Record store (defaults to in-memory)
            normalizer: Phone normalizer (defaults to Indonesian rules)
            code_length: Number of digits per code
            ttl_seconds: Code validity period
            consumed_retention_seconds: Grace window before a verified record is deleted
            app_name: Name shown in the code message
            clock: Source of timezone-aware "now"
        """
        self._session = session
        self._store = store or InMemoryOTPStore()
        self._normalizer = normalizer or PhoneNormalizer()
        self._code_length = code_length
        self._ttl = timedelta(seconds=ttl_seconds)
        self._retention = consumed_retention_seconds
        self._app_name = app_name
        self._clock = clock

        self._pending_deletions: Set[asyncio.Task] = set()
        self._cleanup_task: Optional[asyncio.Task] = None

        logger.info(
            f"OTPService initialized (ttl: {ttl_seconds}s, retention: {consumed_retention_seconds}s)"
        )

    @property
    def store(self) -> OTPStore:
        return self._store

    def generate_code(self) -> str:
        """Cryptographically random fixed-length numeric code."""
        return f"{secrets.randbelow(10 ** self._code_length):0{self._code_length}d}"

    @staticmethod
    def generate_identifier() -> str:
        """Unguessable identifier, independent of the phone number."""
        return secrets.token_urlsafe(OTP.IDENTIFIER_BYTES)

    @timed_async
    async def issue(self, phone_number: str) -> IssuedOTP:
        """
        Generate, store and send a code.

        Args:
            phone_number: Raw phone number

        Returns:
            IssuedOTP with the identifier to verify against

        Raises:
            ServiceUnavailableError: If the WhatsApp session is not ready (nothing stored)
            InvalidPhoneNumberError: If the phone number cannot be normalized
            DeliveryFailedError: If the message could not be sent (record removed)
        """
        if not self._session.is_ready():
            raise ServiceUnavailableError()

        normalized = self._normalizer.normalize(phone_number)
        code = self.generate_code()
        now = self._clock()
        record = OTPRecord(
            identifier=self.generate_identifier(),
            code=code,
            phone_number=normalized,
            issued_at=now,
            expires_at=now + self._ttl,
        )
        await self._store.put(record)

        message = MessageTemplates.otp_code(self._app_name, code, self.ttl_minutes)
        try:
            await self._session.send(normalized, message)
        except RelayError as e:
            await self._store.delete(record.identifier)
            logger.warning(f"OTP delivery to {mask_phone(normalized)} failed: {e.message}")
            raise

        logger.info(
            f"OTP {mask_otp(code)} issued to {mask_phone(normalized)} "
            f"(id: {mask_identifier(record.identifier)})"
        )
        return IssuedOTP(
            otp_id=record.identifier, phone_number=normalized, expires_at=record.expires_at
        )

    async def verify(
        self,
        code: str,
        otp_id: Optional[str] = None,
        phone_number: Optional[str] = None,
    ) -> VerifiedOTP:
        """
        Verify a code by identifier, or by phone number when no identifier is given.

        Raises:
            InvalidInputError: If the code or both lookup keys are missing
            OTPNotFoundError: If nothing resolves
            OTPAlreadyConsumedError: If the code was already used
            OTPExpiredError: If the code is past its expiry (record removed)
            OTPCodeMismatchError: If the code is wrong (record untouched)
        """
        code = (code or "").strip()
        if not code or not (otp_id or phone_number):
            raise InvalidInputError("OTP ID/phone number and code are required")

        identifier = otp_id
        if not identifier:
            identifier = await self.find_active_otp_id(phone_number or "")
            if identifier is None:
                raise OTPNotFoundError()

        record = await self._store.get(identifier)
        if record is None:
            raise OTPNotFoundError()

        if record.consumed:
            raise OTPAlreadyConsumedError()

        if record.is_expired(self._clock()):
            await self._store.delete(identifier)
            logger.info(f"Expired OTP {mask_identifier(identifier)} removed on verify")
            raise OTPExpiredError()

        if not hmac.compare_digest(record.code.encode(), code.encode()):
            logger.info(f"OTP code mismatch for {mask_phone(record.phone_number)}")
            raise OTPCodeMismatchError()

        if not await self._store.mark_consumed(identifier):
            # Lost a race with a concurrent verification
            raise OTPAlreadyConsumedError()

        self._schedule_deletion(identifier)
        logger.info(f"OTP verified for {mask_phone(record.phone_number)}")
        return VerifiedOTP(phone_number=record.phone_number)

    async def find_active_otp_id(self, phone_number: str) -> Optional[str]:
        """Identifier of the newest unconsumed code for a raw phone number."""
        normalized = self._normalizer.normalize(phone_number)
        return await self._store.find_active_by_phone(normalized)

    @property
    def ttl_minutes(self) -> int:
        return max(1, math.ceil(self._ttl.total_seconds() / 60))

    def _schedule_deletion(self, identifier: str) -> None:
        task = asyncio.create_task(self._delete_after(identifier, self._retention))
        self._pending_deletions.add(task)
        task.add_done_callback(self._pending_deletions.discard)

    async def _delete_after(self, identifier: str, delay: float) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
        await self._store.delete(identifier)
        logger.debug(f"Consumed OTP {mask_identifier(identifier)} deleted")

    async def cleanup_expired(self) -> int:
        """
        Remove expired records.

        Returns:
            Number of records removed
        """
        removed = await self._store.sweep_expired(self._clock())
        if removed > 0:
            logger.info(f"Total expired OTPs cleaned: {removed}")
        return removed

    async def start_cleanup_scheduler(
        self, interval_seconds: int = OTP.CLEANUP_INTERVAL_SECONDS
    ) -> None:
        """
        Start background task for periodic OTP cleanup.

        Args:
            interval_seconds: Cleanup interval in seconds
        """
        if self._cleanup_task and not self._cleanup_task.done():
            logger.debug("OTP cleanup scheduler already running")
            return
        self._cleanup_task = asyncio.create_task(self._cleanup_loop(interval_seconds))
        logger.info(f"OTP cleanup scheduler started (interval: {interval_seconds}s)")

    async def stop_cleanup_scheduler(self) -> None:
        """Stop the cleanup scheduler."""
        if self._cleanup_task:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None
            logger.info("OTP cleanup scheduler stopped")

    async def _cleanup_loop(self, interval: int) -> None:
        """
        Background loop for periodic cleanup.

        Args:
            interval: Cleanup interval in seconds
        """
        while True:
            try:
                await asyncio.sleep(interval)
                await self.cleanup_expired()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in OTP cleanup loop: {e}")

    async def clear(self) -> None:
        """Cancel pending grace-window deletions and drop every record."""
        pending = list(self._pending_deletions)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._pending_deletions.clear()
        await self._store.clear()
        logger.info("OTP store cleared")

    async def health_check(self) -> Dict[str, Any]:
        """
        Return OTP service health status.

        Returns:
            Dictionary with service health metrics
        """
        return {
            "status": "healthy",
            "stored_records": await self._store.size(),
            "pending_deletions": len(self._pending_deletions),
            "ttl_seconds": int(self._ttl.total_seconds()),
            "cleanup_running": bool(self._cleanup_task and not self._cleanup_task.done()),
        }
