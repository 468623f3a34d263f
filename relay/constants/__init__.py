"""Constants for the WhatsApp relay.

All classes can be imported directly from this package:
    from relay.constants import OTP, WhatsAppWeb
"""

from .otp import OTP, RateLimits
from .whatsapp import ChatAddress, DisconnectReason, WhatsAppSelectors, WhatsAppWeb

__all__ = [
    "OTP",
    "RateLimits",
    "ChatAddress",
    "DisconnectReason",
    "WhatsAppSelectors",
    "WhatsAppWeb",
]
