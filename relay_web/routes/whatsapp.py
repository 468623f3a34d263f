"""WhatsApp OTP and notification routes."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from loguru import logger
from slowapi import Limiter
from slowapi.util import get_remote_address

from relay.constants import RateLimits
from relay.core.settings import RelaySettings
from relay.services.notification.dispatcher import NotificationDispatcher
from relay.services.otp.service import OTPService
from relay.services.session.manager import SessionManager
from relay.utils.masking import mask_phone
from relay_web.dependencies import (
    get_notification_dispatcher,
    get_otp_service,
    get_session_manager,
    verify_api_key,
)
from relay_web.models import (
    ApplicationNotificationRequest,
    InterviewNotificationRequest,
    SendOTPRequest,
    VerifyOTPRequest,
)

router = APIRouter(
    prefix="/api/whatsapp", tags=["whatsapp"], dependencies=[Depends(verify_api_key)]
)
limiter = Limiter(key_func=get_remote_address)

# Per-IP limits, replaced from settings by configure_rate_limits()
_rate_limits = {
    "send_otp": RateLimits.SEND_OTP,
    "verify_otp": RateLimits.VERIFY_OTP,
}


def configure_rate_limits(settings: RelaySettings) -> None:
    """Apply the configured OTP rate limits and the on/off switch."""
    _rate_limits["send_otp"] = settings.otp_send_rate_limit
    _rate_limits["verify_otp"] = settings.otp_verify_rate_limit
    limiter.enabled = settings.rate_limit_enabled


def _send_otp_limit() -> str:
    return _rate_limits["send_otp"]


def _verify_otp_limit() -> str:
    return _rate_limits["verify_otp"]


@router.get("/qr")
async def get_qr_code(session: SessionManager = Depends(get_session_manager)) -> Dict[str, Any]:
    """
    Pairing status for the operator.

    Returns:
        ``isReady`` plus the QR data URL while a pairing challenge is pending
    """
    if session.is_ready():
        return {"success": True, "isReady": True, "message": "WhatsApp is ready"}

    qr_code = session.get_qr_code()
    if qr_code:
        return {
            "success": True,
            "qrCode": qr_code,
            "isReady": False,
            "message": "QR code available for scanning",
        }

    if session.init_error:
        message = f"WhatsApp session failed to initialize: {session.init_error}"
    else:
        message = "QR code not available yet. Please wait..."
    return {"success": False, "isReady": False, "message": message}


@router.post("/send-otp")
@limiter.limit(_send_otp_limit)
async def send_otp(
    request: Request,
    payload: SendOTPRequest,
    otp_service: OTPService = Depends(get_otp_service),
) -> Dict[str, Any]:
    """
    Issue a code and deliver it over WhatsApp.

    Args:
        request: FastAPI request object (required for rate limiter)
        payload: Phone number to verify
        otp_service: OTP service

    Returns:
        Identifier to verify the code against
    """
    issued = await otp_service.issue(payload.phone_number)
    return {"success": True, "message": "OTP sent successfully", "otpId": issued.otp_id}


@router.post("/verify-otp")
@limiter.limit(_verify_otp_limit)
async def verify_otp(
    request: Request,
    payload: VerifyOTPRequest,
    otp_service: OTPService = Depends(get_otp_service),
) -> Dict[str, Any]:
    """
    Verify a code by ``otpId``, or by ``phoneNumber`` when no identifier is sent.

    Args:
        request: FastAPI request object (required for rate limiter)
        payload: Code and lookup key
        otp_service: OTP service

    Returns:
        The verified phone number
    """
    verified = await otp_service.verify(
        payload.code or "", otp_id=payload.otp_id, phone_number=payload.phone_number
    )
    return {
        "success": True,
        "message": "OTP verified successfully",
        "phoneNumber": verified.phone_number,
    }


@router.post("/send-application-notification")
async def send_application_notification(
    payload: ApplicationNotificationRequest,
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> Dict[str, Any]:
    logger.info(
        f"Application notification requested for {mask_phone(payload.phone_number)} "
        f"(status: {payload.status})"
    )
    await dispatcher.send_application_notification(payload.to_notification())
    return {"success": True, "message": "Notification sent successfully"}


@router.post("/send-interview-notification")
async def send_interview_notification(
    payload: InterviewNotificationRequest,
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> Dict[str, Any]:
    logger.info(
        f"Interview notification requested for {mask_phone(payload.phone_number)} "
        f"(type: {payload.interview_type})"
    )
    await dispatcher.send_interview_notification(payload.to_notification())
    return {"success": True, "message": "Interview notification sent successfully"}
