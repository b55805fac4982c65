"""Celery tasks for account e-mail."""
import logging

from app.core.celery_app import celery_app
from app.core.config import settings

logger = logging.getLogger(__name__)


def verification_link(token: str) -> str:
    return f"{settings.FRONTEND_BASE_URL.rstrip('/')}/verify-email?token={token}"


@celery_app.task
def send_verification_email(email: str, display_name: str, token: str) -> str:
    """Render the verification mail. Returns the link so eager runs can be inspected."""
    link = verification_link(token)
    logger.info("Verification mail for %s <%s>: %s", display_name, email, link)
    return link
