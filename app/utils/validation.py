"""Input checks applied before any transaction runs."""
from app.core.config import settings
from app.core.errors import ValidationFailed


def clean_post_content(content: str) -> str:
    value = content.strip()
    if not value:
        raise ValidationFailed("Post cannot be empty")
    if len(value) > settings.POST_MAX_LENGTH:
        raise ValidationFailed(f"Post must be {settings.POST_MAX_LENGTH} characters or less")
    return value


def clean_comment_content(content: str) -> str:
    value = content.strip()
    if not value:
        raise ValidationFailed("Comment cannot be empty")
    if len(value) > settings.COMMENT_MAX_LENGTH:
        raise ValidationFailed(f"Comment must be {settings.COMMENT_MAX_LENGTH} characters or less")
    return value


def clean_display_name(value: str) -> str:
    name = value.strip()
    if not name:
        raise ValidationFailed("Display name is required")
    if len(name) > settings.DISPLAY_NAME_MAX_LENGTH:
        raise ValidationFailed(f"Display name must be {settings.DISPLAY_NAME_MAX_LENGTH} characters or less")
    return name


def clean_bio(value: str) -> str:
    bio = value.strip()
    if len(bio) > settings.BIO_MAX_LENGTH:
        raise ValidationFailed(f"Bio must be {settings.BIO_MAX_LENGTH} characters or less")
    return bio


def check_password(password: str, confirm_password: str | None = None) -> None:
    if len(password) < settings.PASSWORD_MIN_LENGTH:
        raise ValidationFailed(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters")
    if len(password) > settings.PASSWORD_MAX_LENGTH:
        raise ValidationFailed(f"Password must be {settings.PASSWORD_MAX_LENGTH} characters or less")
    if confirm_password is not None and password != confirm_password:
        raise ValidationFailed("Passwords do not match")
