"""Profile theme selector values."""
import re

DEFAULT_THEME = "theme:linen"
CUSTOM_THEME_PREFIX = "theme:custom:"

THEMES = {
    "theme:linen": "Linen (default)",
    "theme:rose": "Rose",
    "theme:sea": "Sea",
    "theme:forest": "Forest",
}

_HEX_COLOR = re.compile(r"^#[0-9a-f]{6}$")


def create_custom_theme_key(color: str) -> str:
    return f"{CUSTOM_THEME_PREFIX}{color.strip().lower()}"


def parse_custom_theme_color(value: str | None) -> str | None:
    if not value or not value.startswith(CUSTOM_THEME_PREFIX):
        return None
    color = value[len(CUSTOM_THEME_PREFIX):].lower()
    return color if _HEX_COLOR.match(color) else None


def resolve_theme(value: str | None) -> str:
    """Known preset or well-formed custom color; anything else falls back to the default."""
    if not value:
        return DEFAULT_THEME
    if value in THEMES:
        return value
    color = parse_custom_theme_color(value)
    return create_custom_theme_key(color) if color else DEFAULT_THEME
