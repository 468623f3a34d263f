"""Tests for pairing QR rendering."""

import base64

from relay.services.session.qr import encode_qr_data_url, render_terminal_qr

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class TestQREncoding:
    """Tests for QR data URLs and terminal rendering."""

    def test_data_url_contains_png(self):
        data_url = encode_qr_data_url("2@abcDEF123,xyz==,QWERTY==,1")

        prefix = "data:image/png;base64,"
        assert data_url.startswith(prefix)
        assert base64.b64decode(data_url[len(prefix):]).startswith(PNG_SIGNATURE)

    def test_different_payloads_give_different_images(self):
        assert encode_qr_data_url("challenge-a") != encode_qr_data_url("challenge-b")

    def test_terminal_rendering(self):
        rendered = render_terminal_qr("challenge")

        lines = rendered.strip("\n").splitlines()
        assert len(lines) > 5
        assert len({len(line) for line in lines}) == 1
