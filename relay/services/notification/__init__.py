"""Notification subsystem - WhatsApp templates and dispatch.

Public API:
- NotificationDispatcher: Sends application and interview notifications
- MessageTemplates: Message formatting, separate from transport
- ApplicationNotification / InterviewNotification: Validated payloads
- ApplicationStatus / InterviewType: Payload enumerations
"""

from .dispatcher import NotificationDispatcher
from .message_templates import MessageTemplates
from .models import (
    ApplicationNotification,
    ApplicationStatus,
    InterviewNotification,
    InterviewType,
)

__all__ = [
    "NotificationDispatcher",
    "MessageTemplates",
    "ApplicationNotification",
    "ApplicationStatus",
    "InterviewNotification",
    "InterviewType",
]
