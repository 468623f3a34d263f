#!/usr/bin/env python3
"""
Pair the relay's WhatsApp session from a terminal.

Use this on a server where the /api/whatsapp/qr endpoint is not reachable.
Stop the relay first: both processes would open the same browser profile.

Usage: python scripts/whatsapp_qr.py
"""

import asyncio
import sys
from typing import Optional

from relay.core.settings import get_settings
from relay.services.session import PlaywrightWhatsAppDriver, render_terminal_qr

# Keep the browser open briefly after ready so the paired credential is flushed to disk
READY_SETTLE_SECONDS = 5


class TerminalPairingListener:
    """Prints pairing events and resolves once the session is ready or has failed."""

    def __init__(self) -> None:
        self.done = asyncio.Event()
        self.failure: Optional[str] = None

    async def handle_qr(self, payload: str) -> None:
        print("\n📱 Scan this QR code with your WhatsApp:")
        print("   1. Open WhatsApp on your phone")
        print("   2. Go to Settings > Linked Devices")
        print('   3. Tap "Link a Device"')
        print("   4. Scan the QR code below:\n")
        print(render_terminal_qr(payload))
        print("\n⏳ Waiting for QR code to be scanned...")

    def handle_authenticated(self) -> None:
        print("\n🔐 WhatsApp authenticated successfully!")

    def handle_ready(self) -> None:
        print("\n✅ WhatsApp client is ready!")
        print("🔗 WhatsApp is now connected and ready to send OTP messages.")
        self.done.set()

    def handle_auth_failure(self, message: Optional[str] = None) -> None:
        self.failure = f"Authentication failed: {message or 'unknown reason'}"
        self.done.set()

    def handle_disconnected(self, reason: Optional[str] = None) -> None:
        self.failure = f"WhatsApp disconnected: {reason or 'unknown reason'}"
        self.done.set()


async def pair() -> int:
    """Run the pairing flow; returns the process exit code."""
    settings = get_settings()
    driver = PlaywrightWhatsAppDriver(
        session_path=settings.session_path,
        client_id=settings.client_id,
        headless=settings.headless,
        launch_timeout_ms=settings.browser_launch_timeout_ms,
        auth_timeout_seconds=settings.auth_timeout_seconds,
    )
    listener = TerminalPairingListener()

    print("🚀 Starting WhatsApp QR Code Generator...")
    print(f"📁 Session path: {driver.profile_dir}")

    try:
        await driver.start(listener)
        await listener.done.wait()
        if listener.failure:
            print(f"\n❌ {listener.failure}", file=sys.stderr)
            return 1
        await asyncio.sleep(READY_SETTLE_SECONDS)
        print("\n🔄 Connection established. You can now start the relay.")
        return 0
    finally:
        await driver.stop()


def main() -> None:
    try:
        sys.exit(asyncio.run(pair()))
    except KeyboardInterrupt:
        print("\n🛑 Stopped")
        sys.exit(130)


if __name__ == "__main__":
    main()
