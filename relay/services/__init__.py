"""Relay services: WhatsApp session, OTP and notification dispatch."""
