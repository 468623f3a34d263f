"""FastAPI dependencies: service accessors and API key authentication."""

import hmac
from typing import Optional

from fastapi import Depends, HTTPException, Request
from loguru import logger

from relay.core.settings import RelaySettings
from relay.services.container import RelayServices
from relay.services.notification.dispatcher import NotificationDispatcher
from relay.services.otp.service import OTPService
from relay.services.session.manager import SessionManager


def get_services(request: Request) -> RelayServices:
    """Service container built at application creation."""
    return request.app.state.services


def get_app_settings(request: Request) -> RelaySettings:
    return request.app.state.settings


def get_session_manager(services: RelayServices = Depends(get_services)) -> SessionManager:
    return services.session


def get_otp_service(services: RelayServices = Depends(get_services)) -> OTPService:
    return services.otp


def get_notification_dispatcher(
    services: RelayServices = Depends(get_services),
) -> NotificationDispatcher:
    return services.notifications


def extract_api_key(request: Request) -> Optional[str]:
    """
    Extract the API key from the X-API-Key header or an Authorization Bearer token.

    Args:
        request: FastAPI request object

    Returns:
        Raw key string, or None if not found
    """
    key = request.headers.get("X-API-Key")
    if not key:
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            key = auth_header.split(" ", 1)[1].strip()
    return key or None


async def verify_api_key(
    request: Request, settings: RelaySettings = Depends(get_app_settings)
) -> None:
    """
    Require the static API key on protected endpoints.

    Raises:
        HTTPException: 401 if the key is missing, 403 if it does not match
    """
    expected = settings.get_api_key()
    if expected is None:
        # Settings refuse to load without a key in production/staging
        logger.warning(
            f"API_KEY not configured - {request.url.path} is accessible without authentication"
        )
        return

    provided = extract_api_key(request)
    if provided is None:
        raise HTTPException(
            status_code=401,
            detail="API key required. Include X-API-Key header or Authorization Bearer token.",
        )

    # Use constant-time comparison to prevent timing attacks
    if not hmac.compare_digest(provided.encode(), expected.encode()):
        logger.warning(f"Invalid API key presented on {request.url.path}")
        raise HTTPException(status_code=403, detail="Invalid API key")
