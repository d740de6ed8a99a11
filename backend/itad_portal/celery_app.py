"""
Celery worker for the notification side of workflow transitions.

Workflow use-cases commit first and then enqueue
``dispatch_workflow_notification``; the worker writes the in-app rows and
enqueues ``deliver_notification`` for the OneSignal call.
"""
from typing import Any
import logging

from celery import Celery

from .config import settings
from .database import SessionLocal
from .services.notifications import NotificationDispatcher, deliver_external
from .services.onesignal import OneSignalClient
from .services.recipients import SqlRecipientResolver

logger = logging.getLogger(__name__)

celery_app = Celery(
    "itad_portal",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
    task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,
)


def enqueue_delivery(delivery: dict[str, Any]) -> None:
    deliver_notification.delay(delivery)


@celery_app.task(name="dispatch_workflow_notification")
def dispatch_workflow_notification(event: str, payload: dict[str, Any]):
    """Create in-app notifications for one workflow event (1 row per recipient)."""
    db = SessionLocal()

    try:
        dispatcher = NotificationDispatcher(
            db,
            SqlRecipientResolver(db),
            schedule_delivery=enqueue_delivery,
        )
        rows = dispatcher.handle_event(event, payload)
        logger.info(f"Dispatched '{event}' to {len(rows)} recipient(s)")
        return {"event": event, "created": len(rows)}

    except Exception as e:
        db.rollback()
        logger.error(f"Error dispatching '{event}' notification: {e}", exc_info=True)
        raise

    finally:
        db.close()


@celery_app.task(name="deliver_notification")
def deliver_notification(delivery: dict[str, Any]):
    """Best-effort push + email for notifications already stored in-app."""
    db = SessionLocal()

    try:
        return deliver_external(db, OneSignalClient.from_settings(), delivery)

    finally:
        db.close()


class CeleryWorkflowNotifier:
    """Workflow notifier that hands events to the worker."""

    def notify(self, event: str, payload: dict[str, Any]) -> None:
        dispatch_workflow_notification.delay(event, payload)
