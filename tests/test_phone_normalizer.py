"""Tests for phone number normalization."""

import re

import pytest

from relay.core.exceptions import InvalidInputError, InvalidPhoneNumberError
from relay.utils.phone import PhoneNormalizer, from_chat_id, to_chat_id

NORMALIZED = re.compile(r"^\+[0-9]{7,15}$")


class TestPhoneNormalizer:
    """Tests for the Indonesian default region."""

    @pytest.fixture
    def normalizer(self):
        return PhoneNormalizer(default_country_code="62", trunk_prefix="0")

    @pytest.mark.parametrize(
        "raw",
        ["081234567890", "6281234567890", "+6281234567890", "81234567890", "0812-3456-7890"],
    )
    def test_local_and_international_forms_converge(self, normalizer, raw):
        assert normalizer.normalize(raw) == "+6281234567890"

    def test_formatting_characters_are_stripped(self, normalizer):
        assert normalizer.normalize(" (0812) 3456 7890 ") == "+6281234567890"

    def test_explicit_international_number_keeps_its_country(self, normalizer):
        assert normalizer.normalize("+1 (555) 010-9999") == "+15550109999"

    @pytest.mark.parametrize("raw", ["081234567890", "+447911123456", "62 812 345 678"])
    def test_output_shape(self, normalizer, raw):
        assert NORMALIZED.match(normalizer.normalize(raw))

    def test_callable(self, normalizer):
        assert normalizer("081234567890") == "+6281234567890"

    @pytest.mark.parametrize("raw", ["", "   "])
    def test_empty_input_is_required_error(self, normalizer, raw):
        with pytest.raises(InvalidPhoneNumberError, match="Phone number is required"):
            normalizer.normalize(raw)

    def test_no_digits_rejected(self, normalizer):
        with pytest.raises(InvalidPhoneNumberError):
            normalizer.normalize("abc-def")

    @pytest.mark.parametrize(
        "raw",
        ["٠٨١٢٣٤٥٦٧٨٩٠", "０８１２３４５６７８９０"],
        ids=["arabic-indic", "fullwidth"],
    )
    def test_non_ascii_digits_rejected(self, normalizer, raw):
        with pytest.raises(InvalidPhoneNumberError):
            normalizer.normalize(raw)

    def test_non_ascii_digits_dropped_from_mixed_input(self, normalizer):
        normalized = normalizer.normalize("0812345678９０")

        assert normalized == "+62812345678"
        assert normalized.isascii()

    @pytest.mark.parametrize("raw", ["+123", "+1234567890123456"])
    def test_length_bounds(self, normalizer, raw):
        with pytest.raises(InvalidPhoneNumberError, match="7-15 digits"):
            normalizer.normalize(raw)

    def test_invalid_phone_is_invalid_input(self):
        assert issubclass(InvalidPhoneNumberError, InvalidInputError)


class TestOtherRegions:
    """Region inference is configuration."""

    def test_turkish_defaults(self):
        normalizer = PhoneNormalizer(default_country_code="90", trunk_prefix="0")
        assert normalizer.normalize("0555 123 45 67") == "+905551234567"

    def test_country_code_plus_is_ignored(self):
        normalizer = PhoneNormalizer(default_country_code="+62")
        assert normalizer.normalize("081234567890") == "+6281234567890"

    def test_empty_trunk_prefix_disables_replacement(self):
        normalizer = PhoneNormalizer(default_country_code="1", trunk_prefix="")
        assert normalizer.normalize("5550109999") == "+15550109999"


class TestChatAddress:
    """Tests for chat address conversion."""

    def test_to_chat_id(self):
        assert to_chat_id("+6281234567890") == "6281234567890@c.us"

    def test_from_chat_id(self):
        assert from_chat_id("6281234567890@c.us") == "6281234567890"
