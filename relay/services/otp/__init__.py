"""OTP issuance, verification and storage."""

from .models import IssuedOTP, OTPRecord, VerifiedOTP
from .service import OTPService
from .store import InMemoryOTPStore, OTPStore

__all__ = [
    "IssuedOTP",
    "OTPRecord",
    "VerifiedOTP",
    "OTPService",
    "OTPStore",
    "InMemoryOTPStore",
]
