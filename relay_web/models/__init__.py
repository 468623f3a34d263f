"""Pydantic request models for the relay HTTP facade."""

from .whatsapp import (
    ApplicationNotificationRequest,
    InterviewNotificationRequest,
    SendOTPRequest,
    VerifyOTPRequest,
)

__all__ = [
    "SendOTPRequest",
    "VerifyOTPRequest",
    "ApplicationNotificationRequest",
    "InterviewNotificationRequest",
]
