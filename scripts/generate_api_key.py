#!/usr/bin/env python3
"""Generate a secure API key for the WhatsApp relay configuration."""

import secrets


def generate_api_key() -> None:
    """Print a fresh API_KEY line for the relay and the job-board application."""
    print("=" * 60)
    print("WhatsApp Relay API Key Generator")
    print("=" * 60)
    print("\nCopy this value to the relay's .env file and to the web app's VPS_API_KEY:\n")

    print(f"API_KEY={secrets.token_urlsafe(32)}")

    print("\n" + "=" * 60)
    print("⚠️  Keep this value secure and never commit it to git!")
    print("=" * 60)


if __name__ == "__main__":
    generate_api_key()
