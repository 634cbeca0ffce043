import pytest

from tracegeo.countries import COUNTRY_NAMES, recognized_country


def test_codes_are_two_uppercase_letters():
    assert all(len(code) == 2 and code.isupper() for code in COUNTRY_NAMES)
    assert COUNTRY_NAMES["CN"] == "China"


@pytest.mark.parametrize(
    "value, expected",
    [
        ("US", "US"),
        ("us", "us"),
        ("  United   States ", "United States"),
        ("United States of America", "United States of America"),
        ("Türkiye", "Türkiye"),
        ("Hong Kong", "Hong Kong"),
        ("Atlantis!!", ""),
        ("ZZ", ""),
        ("", ""),
        (None, ""),
    ],
)
def test_recognized_country(value, expected):
    assert recognized_country(value) == expected
