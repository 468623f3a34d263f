"""WhatsApp Web constants: URLs, DOM selectors and browser launch flags."""

from typing import Final, Tuple


class WhatsAppWeb:
    """WhatsApp Web endpoints and browser configuration."""

    URL: Final[str] = "https://web.whatsapp.com/"
    SEND_URL: Final[str] = "https://web.whatsapp.com/send"
    DEFAULT_CLIENT_ID: Final[str] = "barlink-whatsapp-bot"

    # Sandbox-hardening flags for containerized Chromium
    CHROMIUM_ARGS: Final[Tuple[str, ...]] = (
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
        "--disable-accelerated-2d-canvas",
        "--no-first-run",
        "--no-zygote",
        "--single-process",
        "--disable-gpu",
    )

    USER_AGENT: Final[str] = (
        "Mozilla/5.0 (X11; Linux x86_64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/135.0.0.0 Safari/537.36"
    )

    POLL_INTERVAL_SECONDS: Final[float] = 1.0
    COMPOSE_TIMEOUT_MS: Final[int] = 30000
    SEND_SETTLE_SECONDS: Final[float] = 1.5


class WhatsAppSelectors:
    """DOM selectors for WhatsApp Web page states."""

    # Pairing QR canvas wrapper; the challenge payload lives in its data-ref attribute
    QR_CODE: Final[str] = "div[data-ref]"
    QR_ATTRIBUTE: Final[str] = "data-ref"

    # Chat list pane, visible once the session is usable
    CHAT_PANE: Final[str] = "#pane-side"

    COMPOSE_BOX: Final[str] = "footer div[contenteditable='true']"
    INVALID_NUMBER_POPUP: Final[str] = "div[data-animate-modal-popup='true']"


class ChatAddress:
    """Addressing for individual WhatsApp chats."""

    USER_SUFFIX: Final[str] = "@c.us"


class DisconnectReason:
    """Disconnect reasons reported by the connection driver."""

    LOGOUT: Final[str] = "LOGOUT"
    CONNECTION_LOST: Final[str] = "CONNECTION_LOST"
    NAVIGATION: Final[str] = "NAVIGATION"
