"""Utility helpers: masking, retry decorators and phone number normalization."""

from .decorators import retry_async, timed_async
from .masking import mask_identifier, mask_otp, mask_phone
from .phone import PhoneNormalizer

__all__ = [
    "retry_async",
    "timed_async",
    "mask_identifier",
    "mask_otp",
    "mask_phone",
    "PhoneNormalizer",
]
