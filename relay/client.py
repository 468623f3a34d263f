"""HTTP client for calling the relay from the job-board application."""

import asyncio
from typing import Any, Dict, Optional, Union

import aiohttp
from loguru import logger

from .services.notification.models import ApplicationNotification, InterviewNotification
from .utils.masking import mask_phone


class RelayClientError(Exception):
    """Relay answered with an error or could not be reached."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.message = message
        self.status = status
        super().__init__(message)


class RelayClient:
    """
    Async client for the relay HTTP API.

    Usage:
        async with RelayClient("http://localhost:3001", api_key="...") as relay:
            otp_id = await relay.send_otp("081234567890")
            phone = await relay.verify_otp("123456", otp_id=otp_id)
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3001",
        api_key: Optional[str] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize relay client.

        Args:
            base_url: Relay root URL
            api_key: Value sent as X-API-Key
            timeout: Total request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._http_session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "RelayClient":
        await self._init_http_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _init_http_session(self) -> None:
        if self._http_session is None:
            headers = {"Accept": "application/json"}
            if self.api_key:
                headers["X-API-Key"] = self.api_key
            self._http_session = aiohttp.ClientSession(
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout, connect=10),
            )

    async def close(self) -> None:
        """Close HTTP session."""
        if self._http_session:
            await self._http_session.close()
            self._http_session = None

    @property
    def _session(self) -> aiohttp.ClientSession:
        """Get HTTP session, raising error if not initialized."""
        if self._http_session is None:
            raise RuntimeError("HTTP session not initialized. Call _init_http_session() first.")
        return self._http_session

    async def _request(
        self, method: str, path: str, payload: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        await self._init_http_session()
        url = f"{self.base_url}{path}"

        try:
            async with self._session.request(method, url, json=payload) as response:
                try:
                    data = await response.json(content_type=None)
                except (aiohttp.ContentTypeError, ValueError):
                    data = None
                if not isinstance(data, dict):
                    data = {}

                if response.status >= 400:
                    error = data.get("error") or f"Relay request failed with HTTP {response.status}"
                    raise RelayClientError(error, status=response.status)
                return data
        except aiohttp.ClientError as e:
            raise RelayClientError(f"WhatsApp relay unreachable: {e}") from e
        except asyncio.TimeoutError as e:
            raise RelayClientError("WhatsApp relay request timed out") from e

    async def health(self) -> Dict[str, Any]:
        return await self._request("GET", "/health")

    async def get_qr(self) -> Dict[str, Any]:
        """Pairing status: ``isReady`` plus ``qrCode`` while a challenge is pending."""
        return await self._request("GET", "/api/whatsapp/qr")

    async def send_otp(self, phone_number: str) -> str:
        """Request a code for a phone number; returns the OTP identifier."""
        data = await self._request(
            "POST", "/api/whatsapp/send-otp", {"phoneNumber": phone_number}
        )
        return data["otpId"]

    async def verify_otp(
        self, code: str, otp_id: Optional[str] = None, phone_number: Optional[str] = None
    ) -> str:
        """Verify a code by identifier or phone number; returns the verified phone number."""
        payload: Dict[str, Any] = {"code": code}
        if otp_id:
            payload["otpId"] = otp_id
        if phone_number:
            payload["phoneNumber"] = phone_number
        data = await self._request("POST", "/api/whatsapp/verify-otp", payload)
        return data["phoneNumber"]

    async def send_application_notification(self, notification: ApplicationNotification) -> None:
        await self._request(
            "POST",
            "/api/whatsapp/send-application-notification",
            {
                "phoneNumber": notification.phone_number,
                "applicantName": notification.applicant_name,
                "jobTitle": notification.job_title,
                "companyName": notification.company_name,
                "status": notification.status.value,
                "notes": notification.notes,
            },
        )

    async def send_interview_notification(self, notification: InterviewNotification) -> None:
        await self._request(
            "POST",
            "/api/whatsapp/send-interview-notification",
            {
                "phoneNumber": notification.phone_number,
                "applicantName": notification.applicant_name,
                "jobTitle": notification.job_title,
                "companyName": notification.company_name,
                "interviewDate": notification.interview_date,
                "interviewTime": notification.interview_time,
                "interviewType": notification.interview_type.value,
                "location": notification.location,
                "meetingLink": notification.meeting_link,
                "notes": notification.notes,
            },
        )


async def notify_safe(
    client: Optional[RelayClient],
    notification: Union[ApplicationNotification, InterviewNotification],
) -> bool:
    """
    Send a notification through the relay, silently failing on errors.

    For best-effort callers (e.g. after an application status change) whose
    primary operation must not fail because WhatsApp is unavailable.

    Returns:
        True if the relay accepted the notification
    """
    if client is None:
        return False
    try:
        if isinstance(notification, InterviewNotification):
            await client.send_interview_notification(notification)
        else:
            await client.send_application_notification(notification)
        return True
    except RelayClientError as e:
        logger.warning(
            f"WhatsApp notification to {mask_phone(notification.phone_number)} failed: {e.message}"
        )
        return False
