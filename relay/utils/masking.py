"""Utility functions for masking sensitive data in logs and outputs."""


def mask_phone(phone: str) -> str:
    """
    Mask phone number for logging purposes.

    Example: +6281234567890 -> +***7890

    Args:
        phone: Phone number to mask

    Returns:
        Masked phone number
    """
    if not phone or len(phone) < 4:
        return "***"

    # Show only the + and last 4 digits; country codes vary in length
    if phone.startswith("+"):
        return "+" + "***" + phone[-4:]
    return "***" + phone[-4:]


def mask_otp(otp: str) -> str:
    """
    Mask OTP code completely.

    Args:
        otp: OTP code to mask

    Returns:
        Completely masked OTP (all asterisks)
    """
    if not otp:
        return "****"
    return "*" * len(otp)


def mask_identifier(identifier: str) -> str:
    """Shorten an OTP identifier for logs: first 6 characters only."""
    if not identifier:
        return "***"
    return identifier[:6] + "..."
