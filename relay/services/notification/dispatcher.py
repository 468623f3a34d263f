"""Transactional WhatsApp notifications (application decisions, interview invitations)."""

from typing import Optional

from loguru import logger

from ...core.exceptions import RecipientNotRegisteredError, ServiceUnavailableError
from ...utils.masking import mask_phone
from ...utils.phone import PhoneNormalizer
from ..session.manager import SessionManager
from .message_templates import MessageTemplates
from .models import ApplicationNotification, InterviewNotification


class NotificationDispatcher:
    """
    Formats and sends notification templates over the WhatsApp session.

    Independent of OTP state. Operations return after the send acknowledgement;
    delivery receipts are not awaited.
    """

    def __init__(self, session: SessionManager, normalizer: Optional[PhoneNormalizer] = None):
        self._session = session
        self._normalizer = normalizer or PhoneNormalizer()

    async def send_application_notification(self, notification: ApplicationNotification) -> None:
        """
        Send an application decision.

        Raises:
            ServiceUnavailableError: If the WhatsApp session is not ready
            InvalidPhoneNumberError: If the phone number cannot be normalized
            RecipientNotRegisteredError: If the number has no WhatsApp account
            DeliveryFailedError: If sending failed
        """
        message = MessageTemplates.application_status(
            applicant_name=notification.applicant_name,
            job_title=notification.job_title,
            company_name=notification.company_name,
            status=notification.status,
            notes=notification.notes,
        )
        await self._deliver(notification.phone_number, message, kind="application")

    async def send_interview_notification(self, notification: InterviewNotification) -> None:
        """Send an interview invitation. Raises as :meth:`send_application_notification`."""
        message = MessageTemplates.interview_scheduled(
            applicant_name=notification.applicant_name,
            job_title=notification.job_title,
            company_name=notification.company_name,
            interview_date=notification.interview_date,
            interview_time=notification.interview_time,
            interview_type=notification.interview_type,
            location=notification.location,
            meeting_link=notification.meeting_link,
            notes=notification.notes,
        )
        await self._deliver(notification.phone_number, message, kind="interview")

    async def _deliver(self, phone_number: str, message: str, kind: str) -> None:
        if not self._session.is_ready():
            raise ServiceUnavailableError()

        normalized = self._normalizer.normalize(phone_number)
        if not await self._session.is_registered(normalized):
            logger.warning(f"{kind} notification skipped: {mask_phone(normalized)} not on WhatsApp")
            raise RecipientNotRegisteredError(phone_number)

        await self._session.send(normalized, message)
        logger.info(f"{kind.capitalize()} notification sent to {mask_phone(normalized)}")
