"""@ddress (handle) normalisation and validation."""
import re

from app.core.config import settings
from app.core.errors import ValidationFailed

ADDRESS_PATTERN = re.compile(r"^[a-z0-9_]+$")
_LEADING_HOUSE_NUMBER = re.compile(r"^\d{1,6}")
_STREET_KEYWORD = re.compile(
    r"(street|st|avenue|ave|road|rd|drive|dr|lane|ln|blvd|boulevard|court|ct|way|highway|hwy|apt|suite|unit)"
)


def normalize_address(value: str) -> str:
    """Trim, lowercase and drop any leading '@' characters."""
    return value.strip().lower().lstrip("@")


def looks_like_street_address(value: str) -> bool:
    compact = value.replace("_", "")
    return bool(_LEADING_HOUSE_NUMBER.match(compact)) and bool(_STREET_KEYWORD.search(compact))


def is_valid_address(
    value: str,
    min_length: int = settings.ADDRESS_MIN_LENGTH,
    max_length: int = settings.ADDRESS_MAX_LENGTH,
) -> bool:
    return min_length <= len(value) <= max_length and bool(ADDRESS_PATTERN.match(value))


def validate_address(value: str) -> str:
    """Normalise ``value`` and raise ValidationFailed unless it is a usable handle."""
    normalized = normalize_address(value)
    if not (settings.ADDRESS_MIN_LENGTH <= len(normalized) <= settings.ADDRESS_MAX_LENGTH):
        raise ValidationFailed(
            f"@ddress must be between {settings.ADDRESS_MIN_LENGTH} and {settings.ADDRESS_MAX_LENGTH} characters"
        )
    if not ADDRESS_PATTERN.match(normalized):
        raise ValidationFailed("@ddress can only contain lowercase letters, numbers, and underscore")
    if looks_like_street_address(normalized):
        raise ValidationFailed("@ddress should be a username handle (like derek_ink), not a street address")
    return normalized
