"""
Notification dispatcher.

Turns a workflow event into per-user in-app notifications and hands the
external push/email delivery to a scheduler. Row creation is durable and
its failures propagate; external delivery is best-effort and its failures
stop here.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..domain_errors import DeliveryFailure
from ..models import NOTIFICATION_ENTITY_TYPES, Notification, utcnow
from .notification_templates import (
    NotificationContent,
    default_priority,
    get_email_html_content,
    get_notification_content,
)
from .onesignal import OneSignalClient, tag_filter
from .recipients import RecipientResolver

logger = logging.getLogger(__name__)

# Receives a JSON-serializable delivery description; must not block on the provider.
DeliveryScheduler = Callable[[dict[str, Any]], None]


def _as_uuid(value: UUID | str | None) -> UUID | None:
    if value is None or isinstance(value, UUID):
        return value
    return UUID(str(value))


class NotificationDispatcher:
    def __init__(
        self,
        db: Session,
        recipients: RecipientResolver,
        schedule_delivery: DeliveryScheduler | None = None,
    ) -> None:
        self.db = db
        self.recipients = recipients
        self.schedule_delivery = schedule_delivery

    # ------------------------------------------------------------------
    # Fan-out primitives
    # ------------------------------------------------------------------

    def send(
        self,
        *,
        user_id: UUID | str,
        type: str,
        context: dict[str, str | None],
        priority: str | None = None,
        entity_type: str | None = None,
        entity_id: UUID | str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Notification:
        """Notify one user. Returns the stored row before external delivery runs."""
        content = get_notification_content(type, context)
        priority = priority or default_priority(type)
        rows = self._create_rows(
            [_as_uuid(user_id)],
            type=type,
            content=content,
            priority=priority,
            entity_type=entity_type,
            entity_id=entity_id,
            metadata=metadata,
        )
        self._schedule(
            {"external_user_ids": [str(user_id)]},
            rows=rows,
            content=content,
            priority=priority,
            entity_type=entity_type,
            entity_id=entity_id,
        )
        return rows[0]

    def broadcast(
        self,
        *,
        type: str,
        context: dict[str, str | None],
        priority: str | None = None,
        entity_type: str | None = None,
        entity_id: UUID | str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> list[Notification]:
        """Notify every active staff user."""
        content = get_notification_content(type, context)
        priority = priority or default_priority(type)
        staff = self.recipients.resolve_staff_recipients()
        rows = self._create_rows(
            [recipient.id for recipient in staff],
            type=type,
            content=content,
            priority=priority,
            entity_type=entity_type,
            entity_id=entity_id,
            metadata=metadata,
        )
        self._schedule(
            {"filters": [tag_filter("user_role", "admin")]},
            rows=rows,
            content=content,
            priority=priority,
            entity_type=entity_type,
            entity_id=entity_id,
        )
        return rows

    def notify_company(
        self,
        *,
        company_id: UUID | str,
        type: str,
        context: dict[str, str | None],
        priority: str | None = None,
        entity_type: str | None = None,
        entity_id: UUID | str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> list[Notification]:
        """Notify every active user of a client company."""
        content = get_notification_content(type, context)
        priority = priority or default_priority(type)
        members = self.recipients.resolve_company_recipients(_as_uuid(company_id))
        rows = self._create_rows(
            [recipient.id for recipient in members],
            type=type,
            content=content,
            priority=priority,
            entity_type=entity_type,
            entity_id=entity_id,
            metadata=metadata,
        )
        self._schedule(
            {"filters": [tag_filter("company_id", str(company_id))]},
            rows=rows,
            content=content,
            priority=priority,
            entity_type=entity_type,
            entity_id=entity_id,
        )
        return rows

    # ------------------------------------------------------------------
    # Workflow events
    # ------------------------------------------------------------------

    def handle_event(self, event: str, payload: dict[str, Any]) -> list[Notification]:
        handler = self._event_handlers().get(event)
        if handler is None:
            raise ValueError(f"Unknown workflow notification event: {event!r}")
        return handler(payload)

    def _event_handlers(self) -> dict[str, Callable[[dict[str, Any]], list[Notification]]]:
        return {
            "request_submitted": self.on_request_submitted,
            "quote_sent": self.on_quote_sent,
            "quote_accepted": lambda payload: self._on_quote_response("quote_accepted", payload),
            "quote_declined": lambda payload: self._on_quote_response("quote_declined", payload),
            "quote_revision_requested": lambda payload: self._on_quote_response(
                "quote_revision_requested", payload
            ),
            "pickup_scheduled": self.on_pickup_scheduled,
            "pickup_complete": lambda payload: self._on_job_event("pickup_complete", payload),
            "job_complete": lambda payload: self._on_job_event("job_complete", payload),
            "invoice_overdue": self.on_invoice_overdue,
            "document_uploaded": self.on_document_uploaded,
        }

    def on_request_submitted(self, payload: dict[str, Any]) -> list[Notification]:
        return self.broadcast(
            type="request_submitted",
            context={
                "request_number": payload.get("request_number"),
                "company_name": payload.get("company_name"),
                "entity_id": payload["request_id"],
            },
            entity_type="request",
            entity_id=payload["request_id"],
        )

    def on_quote_sent(self, payload: dict[str, Any]) -> list[Notification]:
        # Clients review quotes from the request page, so the link targets the request.
        return self.notify_company(
            company_id=payload["company_id"],
            type="quote_sent",
            context={
                "quote_number": payload.get("quote_number"),
                "entity_id": payload["request_id"],
            },
            entity_type="quote",
            entity_id=payload["quote_id"],
        )

    def _on_quote_response(self, event: str, payload: dict[str, Any]) -> list[Notification]:
        return self.broadcast(
            type=event,
            context={
                "quote_number": payload.get("quote_number"),
                "company_name": payload.get("company_name"),
                "entity_id": payload["quote_id"],
            },
            entity_type="quote",
            entity_id=payload["quote_id"],
        )

    def on_pickup_scheduled(self, payload: dict[str, Any]) -> list[Notification]:
        return self.notify_company(
            company_id=payload["company_id"],
            type="pickup_scheduled",
            context={
                "job_number": payload.get("job_number"),
                "scheduled_date": payload.get("scheduled_date"),
                "entity_id": payload["job_id"],
            },
            entity_type="job",
            entity_id=payload["job_id"],
        )

    def _on_job_event(self, event: str, payload: dict[str, Any]) -> list[Notification]:
        return self.notify_company(
            company_id=payload["company_id"],
            type=event,
            context={
                "job_number": payload.get("job_number"),
                "entity_id": payload["job_id"],
            },
            entity_type="job",
            entity_id=payload["job_id"],
        )

    def on_invoice_overdue(self, payload: dict[str, Any]) -> list[Notification]:
        return self.notify_company(
            company_id=payload["company_id"],
            type="invoice_overdue",
            context={
                "invoice_number": payload.get("invoice_number"),
                "entity_id": payload["invoice_id"],
            },
            entity_type="invoice",
            entity_id=payload["invoice_id"],
        )

    def on_document_uploaded(self, payload: dict[str, Any]) -> list[Notification]:
        # Documents are listed on their job page.
        return self.notify_company(
            company_id=payload["company_id"],
            type="document_uploaded",
            context={
                "document_type": payload.get("document_type"),
                "job_number": payload.get("job_number"),
                "entity_id": payload["job_id"],
            },
            entity_type="document",
            entity_id=payload["document_id"],
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _create_rows(
        self,
        user_ids: list[UUID | None],
        *,
        type: str,
        content: NotificationContent,
        priority: str,
        entity_type: str | None,
        entity_id: UUID | str | None,
        metadata: dict[str, Any] | None,
    ) -> list[Notification]:
        if entity_type is not None and entity_type not in NOTIFICATION_ENTITY_TYPES:
            raise ValueError(f"Unknown notification entity type: {entity_type!r}")

        rows = [
            Notification(
                user_id=user_id,
                type=type,
                title=content.title,
                message=content.message,
                priority=priority,
                action_url=content.action_url,
                entity_type=entity_type,
                entity_id=_as_uuid(entity_id),
                meta_data=metadata or {},
            )
            for user_id in user_ids
        ]
        try:
            for row in rows:
                self.db.add(row)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        logger.info("Created %s '%s' notification(s)", len(rows), type)
        return rows

    def _schedule(
        self,
        target: dict[str, Any],
        *,
        rows: list[Notification],
        content: NotificationContent,
        priority: str,
        entity_type: str | None,
        entity_id: UUID | str | None,
    ) -> None:
        if self.schedule_delivery is None:
            return
        delivery = {
            "target": target,
            "notification_ids": [str(row.id) for row in rows],
            "title": content.title,
            "message": content.message,
            "action_url": content.action_url,
            "priority": priority,
            "data": {
                "entity_type": entity_type,
                "entity_id": str(entity_id) if entity_id else None,
            },
        }
        try:
            self.schedule_delivery(delivery)
        except Exception:
            logger.exception("Scheduling external delivery failed (in-app notifications kept)")


def deliver_external(
    db: Session,
    client: OneSignalClient,
    delivery: dict[str, Any],
    *,
    app_url: str | None = None,
    sender_name: str | None = None,
) -> dict[str, bool]:
    """Push + email one scheduled delivery and flag the in-app rows it covers.

    Provider errors are logged and swallowed; the returned flags say which
    channel went out.
    """
    app_url = app_url if app_url is not None else settings.APP_URL
    sender_name = sender_name or settings.EMAIL_FROM_NAME
    content = NotificationContent(
        title=delivery["title"],
        message=delivery["message"],
        action_url=delivery.get("action_url"),
    )
    target = delivery.get("target") or {}
    recipients = {
        "external_user_ids": target.get("external_user_ids"),
        "filters": target.get("filters"),
    }
    url = f"{app_url}{content.action_url}" if content.action_url else None
    data = dict(delivery.get("data") or {})

    pushed = False
    emailed = False
    try:
        pushed = client.send_push(
            title=content.title,
            message=content.message,
            url=url,
            data=data,
            priority=delivery.get("priority", "normal"),
            **recipients,
        ) is not None
    except DeliveryFailure as exc:
        logger.warning("Push delivery failed: %s", exc)

    try:
        emailed = client.send_email(
            subject=content.title,
            body=get_email_html_content(content, app_url, sender_name=sender_name),
            **recipients,
        ) is not None
    except DeliveryFailure as exc:
        logger.warning("Email delivery failed: %s", exc)

    notification_ids = [UUID(value) for value in delivery.get("notification_ids") or []]
    if notification_ids and (pushed or emailed):
        now = utcnow()
        values: dict[str, Any] = {}
        if pushed:
            values.update({"push_sent": True, "push_sent_at": now})
        if emailed:
            values.update({"email_sent": True, "email_sent_at": now})
        try:
            db.query(Notification).filter(Notification.id.in_(notification_ids)).update(
                values,
                synchronize_session=False,
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to record delivery flags for %s notification(s)", len(notification_ids))

    logger.info(
        "External notification sent: push=%s email=%s target=%s",
        pushed,
        emailed,
        target,
    )
    return {"push": pushed, "email": emailed}
