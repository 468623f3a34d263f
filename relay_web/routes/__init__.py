"""Routes package for the relay HTTP facade."""

from .health import router as health_router
from .whatsapp import router as whatsapp_router

__all__ = ["health_router", "whatsapp_router"]
