"""WhatsApp session management.

Public API:
- SessionManager: Owns the single WhatsApp connection and its state machine
- SessionState: Lifecycle states
- ConnectionDriver: Bridge interface to the messaging network
- PlaywrightWhatsAppDriver: WhatsApp Web driver (lazy import, pulls in Playwright)
- encode_qr_data_url / render_terminal_qr: Pairing challenge rendering
"""

from typing import Any

from .driver import ConnectionDriver, SessionListener
from .manager import SessionManager, SessionState
from .qr import encode_qr_data_url, render_terminal_qr

__all__ = [
    "ConnectionDriver",
    "SessionListener",
    "SessionManager",
    "SessionState",
    "PlaywrightWhatsAppDriver",
    "encode_qr_data_url",
    "render_terminal_qr",
]


def __getattr__(name: str) -> Any:
    if name == "PlaywrightWhatsAppDriver":
        from .playwright_driver import PlaywrightWhatsAppDriver

        return PlaywrightWhatsAppDriver
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
