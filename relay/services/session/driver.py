"""Connection driver interface between the session manager and WhatsApp."""

from abc import ABC, abstractmethod
from typing import Optional, Protocol


class SessionListener(Protocol):
    """Receiver of connection events; one entry point per event type."""

    async def handle_qr(self, payload: str) -> None: ...

    def handle_authenticated(self) -> None: ...

    def handle_ready(self) -> None: ...

    def handle_auth_failure(self, message: Optional[str] = None) -> None: ...

    def handle_disconnected(self, reason: Optional[str] = None) -> None: ...


class ConnectionDriver(ABC):
    """
    Narrow bridge to the messaging network.

    Implementations push events to the listener given to :meth:`start` and
    raise ``DriverError`` for transport failures.
    """

    @abstractmethod
    async def start(self, listener: SessionListener) -> None:
        """Launch the bridge and begin emitting events. Returns once the bridge is running."""

    @abstractmethod
    async def stop(self) -> None:
        """Tear the bridge down. Must be safe to call more than once."""

    @abstractmethod
    async def send_message(self, chat_id: str, text: str) -> None:
        """Send a text message to a chat address such as ``6281234567890@c.us``."""

    @abstractmethod
    async def is_registered(self, chat_id: str) -> bool:
        """Whether the chat address belongs to a WhatsApp account."""
