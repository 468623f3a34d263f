"""Tests for the notification dispatcher."""

import pytest

from relay.core.exceptions import (
    DeliveryFailedError,
    InvalidInputError,
    InvalidPhoneNumberError,
    RecipientNotRegisteredError,
    ServiceUnavailableError,
)
from relay.services.notification.dispatcher import NotificationDispatcher
from relay.services.notification.models import (
    ApplicationNotification,
    ApplicationStatus,
    InterviewNotification,
    InterviewType,
)


def application(phone="081234567890", status=ApplicationStatus.ACCEPTED, notes=None):
    return ApplicationNotification(
        phone_number=phone,
        applicant_name="Budi",
        job_title="Backend Engineer",
        company_name="PT Maju",
        status=status,
        notes=notes,
    )


def interview(**overrides):
    fields = dict(
        phone_number="081234567890",
        applicant_name="Budi",
        job_title="Backend Engineer",
        company_name="PT Maju",
        interview_date="20 Januari 2024",
        interview_time="10:00 WIB",
        interview_type=InterviewType.ONLINE,
        meeting_link="https://meet.example.com/abc",
    )
    fields.update(overrides)
    return InterviewNotification(**fields)


class TestApplicationNotifications:
    """Tests for application decision notifications."""

    @pytest.mark.asyncio
    async def test_sends_to_normalized_number(self, ready_session, fake_driver):
        dispatcher = NotificationDispatcher(ready_session)

        await dispatcher.send_application_notification(application())

        chat_id, text = fake_driver.sent[0]
        assert chat_id == "6281234567890@c.us"
        assert "DITERIMA" in text

    @pytest.mark.asyncio
    async def test_rejected_message(self, ready_session, fake_driver):
        dispatcher = NotificationDispatcher(ready_session)

        await dispatcher.send_application_notification(
            application(status=ApplicationStatus.REJECTED, notes="Tetap semangat")
        )

        _, text = fake_driver.sent[0]
        assert "DITERIMA" not in text
        assert "Tetap semangat" in text

    @pytest.mark.asyncio
    async def test_not_ready(self, session_manager, fake_driver):
        dispatcher = NotificationDispatcher(session_manager)

        with pytest.raises(ServiceUnavailableError):
            await dispatcher.send_application_notification(application())

        assert fake_driver.sent == []

    @pytest.mark.asyncio
    async def test_unregistered_recipient(self, ready_session, fake_driver):
        fake_driver.unregistered.add("6281234567890@c.us")
        dispatcher = NotificationDispatcher(ready_session)

        with pytest.raises(RecipientNotRegisteredError) as exc_info:
            await dispatcher.send_application_notification(application())

        assert exc_info.value.message == "Number 081234567890 is not registered on WhatsApp"
        assert fake_driver.send_attempts == 0

    @pytest.mark.asyncio
    async def test_invalid_phone(self, ready_session):
        dispatcher = NotificationDispatcher(ready_session)

        with pytest.raises(InvalidPhoneNumberError):
            await dispatcher.send_application_notification(application(phone="12"))

    @pytest.mark.asyncio
    async def test_send_failure(self, ready_session, fake_driver):
        fake_driver.send_failures = 5
        dispatcher = NotificationDispatcher(ready_session)

        with pytest.raises(DeliveryFailedError):
            await dispatcher.send_application_notification(application())


class TestInterviewNotifications:
    """Tests for interview invitations."""

    @pytest.mark.asyncio
    async def test_online_interview(self, ready_session, fake_driver):
        dispatcher = NotificationDispatcher(ready_session)

        await dispatcher.send_interview_notification(interview())

        _, text = fake_driver.sent[0]
        assert "https://meet.example.com/abc" in text

    @pytest.mark.asyncio
    async def test_offline_interview(self, ready_session, fake_driver):
        dispatcher = NotificationDispatcher(ready_session)

        await dispatcher.send_interview_notification(
            interview(
                interview_type=InterviewType.OFFLINE,
                meeting_link=None,
                location="Jl. Sudirman No. 1",
            )
        )

        _, text = fake_driver.sent[0]
        assert "Jl. Sudirman No. 1" in text

    def test_online_requires_meeting_link(self):
        with pytest.raises(InvalidInputError, match="Meeting link is required"):
            interview(meeting_link=None)

    def test_offline_requires_location(self):
        with pytest.raises(InvalidInputError, match="Location is required"):
            interview(interview_type=InterviewType.OFFLINE, meeting_link=None)
