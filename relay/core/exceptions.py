"""Custom exception classes for the WhatsApp relay."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class RelayError(Exception):
    """Base exception for the relay.

    ``http_status`` is the status the HTTP facade answers with when the error
    reaches a route; ``message`` is safe to show to API callers.
    """

    http_status: int = 500

    def __init__(
        self, message: str, recoverable: bool = True, details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize relay error.

        Args:
            message: Error message
            recoverable: Whether the error is recoverable with retry
            details: Additional error details
        """
        self.message = message
        self.recoverable = recoverable
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "recoverable": self.recoverable,
            "details": self.details,
            "timestamp": self.timestamp,
        }


class ServiceUnavailableError(RelayError):
    """WhatsApp session is not ready to send messages."""

    http_status = 503

    def __init__(self, message: str = "WhatsApp service is not ready"):
        super().__init__(message, recoverable=True)


class InvalidInputError(RelayError):
    """Malformed phone number, code or missing fields."""

    http_status = 400

    def __init__(
        self, message: str = "Invalid input", details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, recoverable=False, details=details)


class InvalidPhoneNumberError(InvalidInputError):
    """Phone number cannot be normalized to an international number."""

    def __init__(self, message: str = "Invalid phone number"):
        super().__init__(message)


class RecipientNotRegisteredError(InvalidInputError):
    """Recipient phone number has no WhatsApp account."""

    def __init__(self, phone_number: Optional[str] = None):
        if phone_number:
            message = f"Number {phone_number} is not registered on WhatsApp"
        else:
            message = "Phone number is not registered on WhatsApp"
        super().__init__(message)


class OTPNotFoundError(RelayError):
    """No OTP record resolves for the given identifier or phone number.

    Same message as an expired lookup; callers cannot tell which identifiers exist.
    """

    http_status = 400

    def __init__(self, message: str = "Invalid OTP ID or OTP has expired"):
        super().__init__(message, recoverable=False)


class OTPAlreadyConsumedError(RelayError):
    """OTP has already been verified once."""

    http_status = 400

    def __init__(self, message: str = "OTP has already been used"):
        super().__init__(message, recoverable=False)


class OTPExpiredError(RelayError):
    """OTP time-to-live has elapsed."""

    http_status = 400

    def __init__(self, message: str = "OTP has expired"):
        super().__init__(message, recoverable=False)


class OTPCodeMismatchError(RelayError):
    """Submitted code does not match the issued one."""

    http_status = 400

    def __init__(self, message: str = "Invalid OTP code"):
        super().__init__(message, recoverable=True)


class DeliveryFailedError(RelayError):
    """Underlying WhatsApp send failed."""

    http_status = 502

    def __init__(
        self,
        message: str = "Failed to send WhatsApp message",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, recoverable=True, details=details)


class InternalError(RelayError):
    """Unexpected failure."""

    http_status = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, recoverable=False)


class DriverError(RelayError):
    """WhatsApp Web bridge failure (browser, page or navigation)."""

    http_status = 502

    def __init__(
        self,
        message: str = "WhatsApp driver error",
        recoverable: bool = True,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, recoverable, details)


class ConfigurationError(RelayError):
    """Configuration error."""

    def __init__(self, message: str = "Configuration error"):
        super().__init__(message, recoverable=False)
