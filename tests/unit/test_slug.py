# tests/unit/test_slug.py
import pytest

from recipe_flow.core.slug import generate_slug
from recipe_flow.core.timestamps import EPOCH_ISO, format_iso, to_millis


@pytest.mark.parametrize("title,slug", [
    ("Garlic Butter Pasta", "garlic-butter-pasta"),
    ("Chef's Special (2024)", "chefs-special-2024"),
    ("  Spaced   Out  ", "spaced-out"),
    ("Mac -- and -- Cheese", "mac-and-cheese"),
    ("Crème brûlée", "crme-brle"),
    ("-Leading and trailing-", "leading-and-trailing"),
    ("!!!", ""),
])
def test_generate_slug(title, slug):
    assert generate_slug(title) == slug


def test_generate_slug_is_deterministic():
    assert generate_slug("Pad Thai") == generate_slug("Pad Thai")


def test_to_millis():
    assert to_millis(EPOCH_ISO) == 0
    assert to_millis("2024-01-15T10:00:00.000Z") == 1705312800000
    assert to_millis(None) == 0
    assert to_millis("") == 0
    assert to_millis("yesterday") == 0


def test_format_iso_uses_millis_and_z():
    from datetime import datetime, timezone
    assert format_iso(datetime(2024, 1, 15, 10, 0, 0, 123456, tzinfo=timezone.utc)) == "2024-01-15T10:00:00.123Z"


def test_to_millis_accepts_any_fraction_length():
    base = to_millis("2024-01-15T10:00:00.000Z")
    assert to_millis("2024-01-15T10:00:00.5Z") == base + 500
    assert to_millis("2024-01-15T10:00:00.12Z") == base + 120
    assert to_millis("2024-01-15T10:00:00.1234567Z") == base + 123
    assert to_millis("2024-01-15T10:00:00Z") == base
    assert to_millis("2024-01-15T12:00:00.5+02:00") == base + 500
