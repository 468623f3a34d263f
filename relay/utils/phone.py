"""Phone number normalization to the canonical ``+<digits>`` form."""

import re

from ..constants import ChatAddress
from ..core.exceptions import InvalidPhoneNumberError

_DISALLOWED_CHARS = re.compile(r"[^0-9+]")

MIN_DIGITS = 7
MAX_DIGITS = 15  # E.164 upper bound


class PhoneNormalizer:
    """
    Normalize free-form phone numbers for a default region.

    Numbers already carrying ``+`` are kept as international numbers. Otherwise
    the region rule applies: a leading trunk prefix is replaced by the country
    code, a leading country code gets ``+`` prepended, and anything else gets
    ``+<country code>`` prepended.

    Example (Indonesia, country code 62, trunk prefix 0):
        081234567890   -> +6281234567890
        6281234567890  -> +6281234567890
        81234567890    -> +6281234567890
        +1 (555) 010-9999 -> +15550109999
    """

    def __init__(self, default_country_code: str = "62", trunk_prefix: str = "0"):
        """
        Initialize normalizer.

        Args:
            default_country_code: Country calling code without '+'
            trunk_prefix: National trunk prefix (empty string disables the rule)
        """
        self.default_country_code = default_country_code.lstrip("+")
        self.trunk_prefix = trunk_prefix

    def normalize(self, phone_number: str) -> str:
        """
        Normalize a phone number.

        Args:
            phone_number: Raw phone number as typed by a user

        Returns:
            Normalized number: '+' followed by 7-15 digits

        Raises:
            InvalidPhoneNumberError: If the input holds no usable number
        """
        if not phone_number or not phone_number.strip():
            raise InvalidPhoneNumberError("Phone number is required")

        cleaned = _DISALLOWED_CHARS.sub("", phone_number.strip())
        international = cleaned.startswith("+")
        digits = cleaned.replace("+", "")

        if not digits:
            raise InvalidPhoneNumberError()

        if not international:
            if self.trunk_prefix and digits.startswith(self.trunk_prefix):
                digits = self.default_country_code + digits[len(self.trunk_prefix):]
            elif not digits.startswith(self.default_country_code):
                digits = self.default_country_code + digits

        if not MIN_DIGITS <= len(digits) <= MAX_DIGITS:
            raise InvalidPhoneNumberError(
                f"Invalid phone number: expected {MIN_DIGITS}-{MAX_DIGITS} digits"
            )

        return f"+{digits}"

    def __call__(self, phone_number: str) -> str:
        return self.normalize(phone_number)


def to_chat_id(normalized_phone: str) -> str:
    """WhatsApp chat address for a normalized number: digits without '+', user suffix."""
    return normalized_phone.lstrip("+") + ChatAddress.USER_SUFFIX


def from_chat_id(chat_id: str) -> str:
    """Phone digits of a chat address (inverse of :func:`to_chat_id`, without '+')."""
    return chat_id.split("@", 1)[0]
