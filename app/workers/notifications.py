"""Celery tasks for push notifications."""
import logging

from app.core.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task
def send_push_notification(user_id: str, title: str, body: str) -> None:
    # TODO: deliver through FCM/APNs once device tokens are stored per user
    logger.info("Push to %s: %s - %s", user_id, title, body)
