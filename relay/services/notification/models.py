"""Notification payloads. Transient: validated at the boundary, never stored."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ...core.exceptions import InvalidInputError


class ApplicationStatus(str, Enum):
    """Final application decisions announced to applicants."""

    ACCEPTED = "accepted"
    REJECTED = "rejected"


class InterviewType(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"


@dataclass(frozen=True)
class ApplicationNotification:
    phone_number: str
    applicant_name: str
    job_title: str
    company_name: str
    status: ApplicationStatus
    notes: Optional[str] = None


@dataclass(frozen=True)
class InterviewNotification:
    """Interview invitation; online interviews need a meeting link, offline ones a location."""

    phone_number: str
    applicant_name: str
    job_title: str
    company_name: str
    interview_date: str
    interview_time: str
    interview_type: InterviewType
    location: Optional[str] = None
    meeting_link: Optional[str] = None
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        if self.interview_type is InterviewType.ONLINE and not self.meeting_link:
            raise InvalidInputError("Meeting link is required for online interviews")
        if self.interview_type is InterviewType.OFFLINE and not self.location:
            raise InvalidInputError("Location is required for offline interviews")
