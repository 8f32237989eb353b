from datetime import datetime, timezone

import pytest

from utils.phone_utils import extract_digits, mask_phone, normalize_address
from utils.time_utils import format_duration, format_timestamp


@pytest.mark.parametrize("phone,expected", [
    ("9876543210", "919876543210@c.us"),
    ("+91 98765 43210", "919876543210@c.us"),
    ("+91-98765-43210", "919876543210@c.us"),
    ("(987) 654-3210", "919876543210@c.us"),
    ("+1 (415) 555-0100", "14155550100@c.us"),
    ("9198765432", "919198765432@c.us"),
    ("12345", "12345@c.us"),
])
def test_normalize_address(phone, expected):
    assert normalize_address(phone) == expected


def test_normalize_address_overrides():
    assert normalize_address("4155550100", country_code="1", suffix="@s.whatsapp.net") == "14155550100@s.whatsapp.net"


def test_normalize_address_is_idempotent_on_digits():
    address = normalize_address("9876543210")
    assert normalize_address(address) == address


def test_extract_digits_handles_empty():
    assert extract_digits("") == ""
    assert extract_digits(None) == ""


def test_mask_phone():
    assert mask_phone("919876543210@c.us") == "********3210"
    assert mask_phone("123") == "***"


def test_format_duration():
    assert format_duration(300) == "5 minutes"
    assert format_duration(60) == "1 minute"
    assert format_duration(90) == "90 seconds"


def test_format_timestamp():
    dt = datetime(2026, 1, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)
    assert format_timestamp(dt) == "2026-01-01T12:00:00.123Z"
    assert format_timestamp(None) is None
