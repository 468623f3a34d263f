"""QR encoding for WhatsApp pairing challenges."""

import base64
import io

import qrcode


def encode_qr_data_url(payload: str) -> str:
    """
    Encode a pairing challenge as a PNG data URL.

    CPU-bound; call through ``asyncio.to_thread`` from the event loop.

    Args:
        payload: Raw challenge string emitted by WhatsApp Web

    Returns:
        ``data:image/png;base64,...`` string suitable for an <img> src
    """
    img = qrcode.make(payload)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    encoded = base64.b64encode(buf.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def render_terminal_qr(payload: str) -> str:
    """Render a pairing challenge as block characters for a terminal."""
    qr = qrcode.QRCode(border=1)
    qr.add_data(payload)
    qr.make(fit=True)
    out = io.StringIO()
    qr.print_ascii(out=out, invert=True)
    return out.getvalue()
