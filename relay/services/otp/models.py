"""OTP data types."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class OTPRecord:
    """One issued code. ``sequence`` breaks ties between identical ``issued_at`` values."""

    identifier: str
    code: str
    phone_number: str
    issued_at: datetime
    expires_at: datetime
    consumed: bool = False
    sequence: int = 0

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def __repr__(self) -> str:
        """Return repr with the code masked."""
        return (
            f"OTPRecord(identifier={self.identifier!r}, code='***', "
            f"phone_number={self.phone_number!r}, expires_at={self.expires_at.isoformat()}, "
            f"consumed={self.consumed})"
        )


@dataclass(frozen=True)
class IssuedOTP:
    """Result of a successful issue: the identifier callers verify against."""

    otp_id: str
    phone_number: str
    expires_at: datetime


@dataclass(frozen=True)
class VerifiedOTP:
    """Result of a successful verification."""

    phone_number: str
