import pytest

from app.vendorhub.modules.tracking.carriers import (
    UNKNOWN,
    detect_carrier,
    format_tracking_number,
    normalize_tracking_number,
)


@pytest.mark.parametrize(
    "number,carrier",
    [
        ("1Z999AA10123456784", "UPS"),
        ("1z 999 aa1-0123 4567 84", "UPS"),
        ("T1234567890", "UPS"),
        ("123456789012", "FEDEX"),
        ("DT123456789012", "FEDEX"),
        ("EA123456789US", "USPS"),
        ("4201000192123456789012345678", "USPS"),
        ("1234567890", "DHL"),
        ("JD012345678901234567", "DHL"),
        ("1234567", UNKNOWN),
        ("ABCDEFGHIJ", UNKNOWN),
        ("", UNKNOWN),
    ],
)
def test_detect_carrier(number, carrier):
    assert detect_carrier(number) == carrier


def test_normalize_strips_spaces_and_dashes():
    assert normalize_tracking_number(" 1z-999 aa1 ") == "1Z999AA1"


def test_format_groups_long_numbers():
    assert format_tracking_number("1Z999AA10123456784") == "1Z99 9AA1 0123 4567 84"
    assert format_tracking_number("123456789012") == "123456789012"
