"""Health check route for the relay HTTP facade."""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from relay import __version__
from relay.services.container import RelayServices
from relay_web.dependencies import get_services

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(services: RelayServices = Depends(get_services)) -> Dict[str, Any]:
    """
    Liveness endpoint; no authentication.

    The process answers even while WhatsApp is still pairing, so readiness is
    reported in ``whatsappReady`` rather than through the status code.

    Returns:
        Process status with session and OTP store details
    """
    snapshot = services.session.snapshot()
    return {
        "success": True,
        "status": "running",
        "whatsappReady": services.session.is_ready(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "session": {
            "state": snapshot["state"],
            "hasQrCode": snapshot["has_qr_code"],
            "initError": snapshot["init_error"],
            "lastEventAt": snapshot["last_event_at"],
        },
        "otp": await services.otp.health_check(),
    }
