"""WhatsApp endpoint request models.

Bodies use the camelCase keys the job-board application sends; snake_case
names are accepted too.
"""

from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from relay.services.notification.models import (
    ApplicationNotification,
    ApplicationStatus,
    InterviewNotification,
    InterviewType,
)

_REQUEST_CONFIG = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class SendOTPRequest(BaseModel):
    """Send OTP request model."""

    model_config = _REQUEST_CONFIG

    phone_number: str = Field(..., alias="phoneNumber", min_length=1, max_length=32)


class VerifyOTPRequest(BaseModel):
    """Verify OTP request model; either ``otpId`` or ``phoneNumber`` selects the code."""

    model_config = _REQUEST_CONFIG

    otp_id: Optional[str] = Field(default=None, alias="otpId", max_length=128)
    phone_number: Optional[str] = Field(default=None, alias="phoneNumber", max_length=32)
    code: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("code", "otpCode", "otp_code"),
        max_length=16,
    )


class _NotificationRequest(BaseModel):
    model_config = _REQUEST_CONFIG

    phone_number: str = Field(..., alias="phoneNumber", min_length=1, max_length=32)
    applicant_name: str = Field(..., alias="applicantName", min_length=1, max_length=200)
    job_title: str = Field(..., alias="jobTitle", min_length=1, max_length=200)
    company_name: str = Field(..., alias="companyName", min_length=1, max_length=200)
    notes: Optional[str] = Field(default=None, max_length=2000)


class ApplicationNotificationRequest(_NotificationRequest):
    """Application decision notification request."""

    status: Literal["accepted", "rejected"]

    def to_notification(self) -> ApplicationNotification:
        return ApplicationNotification(
            phone_number=self.phone_number,
            applicant_name=self.applicant_name,
            job_title=self.job_title,
            company_name=self.company_name,
            status=ApplicationStatus(self.status),
            notes=self.notes or None,
        )


class InterviewNotificationRequest(_NotificationRequest):
    """Interview invitation request; online needs ``meetingLink``, offline needs ``location``."""

    interview_date: str = Field(..., alias="interviewDate", min_length=1, max_length=100)
    interview_time: str = Field(..., alias="interviewTime", min_length=1, max_length=100)
    interview_type: Literal["online", "offline"] = Field(..., alias="interviewType")
    location: Optional[str] = Field(default=None, max_length=500)
    meeting_link: Optional[str] = Field(default=None, alias="meetingLink", max_length=500)

    @model_validator(mode="after")
    def check_venue(self) -> "InterviewNotificationRequest":
        """Online interviews need a meeting link, offline ones a location."""
        if self.interview_type == "online" and not self.meeting_link:
            raise ValueError("Meeting link is required for online interviews")
        if self.interview_type == "offline" and not self.location:
            raise ValueError("Location is required for offline interviews")
        return self

    def to_notification(self) -> InterviewNotification:
        return InterviewNotification(
            phone_number=self.phone_number,
            applicant_name=self.applicant_name,
            job_title=self.job_title,
            company_name=self.company_name,
            interview_date=self.interview_date,
            interview_time=self.interview_time,
            interview_type=InterviewType(self.interview_type),
            location=self.location or None,
            meeting_link=self.meeting_link or None,
            notes=self.notes or None,
        )
