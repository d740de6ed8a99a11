"""Notification content: (type, context) -> title, message, deep link."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from html import escape


NOTIFICATION_TYPES: tuple[str, ...] = (
    "request_submitted",
    "quote_sent",
    "quote_accepted",
    "quote_declined",
    "quote_revision_requested",
    "pickup_scheduled",
    "pickup_complete",
    "job_complete",
    "invoice_overdue",
    "document_uploaded",
)

_HIGH_PRIORITY_TYPES = frozenset({"quote_sent", "quote_accepted", "job_complete", "invoice_overdue"})
_LOW_PRIORITY_TYPES = frozenset({"pickup_complete"})


@dataclass(frozen=True)
class NotificationContent:
    title: str
    message: str
    action_url: str | None = None


Context = Mapping[str, str | None]


def _ref(ctx: Context, key: str, template: str) -> str:
    value = ctx.get(key)
    return template.format(value) if value else ""


def _link(ctx: Context, base: str) -> str:
    entity_id = ctx.get("entity_id")
    return f"{base}/{entity_id}" if entity_id else base


_TEMPLATES: dict[str, Callable[[Context], NotificationContent]] = {
    "request_submitted": lambda ctx: NotificationContent(
        title="New Request Submitted",
        message=(
            f"A new pickup request{_ref(ctx, 'request_number', ' #{}')} has been submitted"
            f"{_ref(ctx, 'company_name', ' by {}')}."
        ),
        action_url=_link(ctx, "/admin/requests"),
    ),
    "quote_sent": lambda ctx: NotificationContent(
        title="Quote Ready for Review",
        message=f"Your quote{_ref(ctx, 'quote_number', ' #{}')} is ready for review.",
        action_url=_link(ctx, "/requests"),
    ),
    "quote_accepted": lambda ctx: NotificationContent(
        title="Quote Accepted",
        message=(
            f"Quote{_ref(ctx, 'quote_number', ' #{}')}{_ref(ctx, 'company_name', ' from {}')} has been accepted."
        ),
        action_url=_link(ctx, "/admin/quotes"),
    ),
    "quote_declined": lambda ctx: NotificationContent(
        title="Quote Declined",
        message=(
            f"Quote{_ref(ctx, 'quote_number', ' #{}')}{_ref(ctx, 'company_name', ' from {}')} has been declined."
        ),
        action_url=_link(ctx, "/admin/quotes"),
    ),
    "quote_revision_requested": lambda ctx: NotificationContent(
        title="Quote Revision Requested",
        message=(
            f"A revision has been requested for quote{_ref(ctx, 'quote_number', ' #{}')}"
            f"{_ref(ctx, 'company_name', ' by {}')}."
        ),
        action_url=_link(ctx, "/admin/quotes"),
    ),
    "pickup_scheduled": lambda ctx: NotificationContent(
        title="Pickup Scheduled",
        message=(
            f"Your pickup{_ref(ctx, 'job_number', ' for job #{}')} has been scheduled"
            f"{_ref(ctx, 'scheduled_date', ' for {}')}."
        ),
        action_url=_link(ctx, "/jobs"),
    ),
    "pickup_complete": lambda ctx: NotificationContent(
        title="Pickup Complete",
        message=(
            f"The pickup{_ref(ctx, 'job_number', ' for job #{}')} has been completed. "
            "Processing will begin shortly."
        ),
        action_url=_link(ctx, "/jobs"),
    ),
    "job_complete": lambda ctx: NotificationContent(
        title="Job Complete",
        message=(
            f"Job{_ref(ctx, 'job_number', ' #{}')} has been completed. Your documents are ready for download."
        ),
        action_url=_link(ctx, "/jobs"),
    ),
    "invoice_overdue": lambda ctx: NotificationContent(
        title="Invoice Overdue",
        message=f"Invoice{_ref(ctx, 'invoice_number', ' #{}')} is overdue. Please review and process payment.",
        action_url=_link(ctx, "/invoices"),
    ),
    "document_uploaded": lambda ctx: NotificationContent(
        title="New Document Available",
        message=(
            f"A new {ctx.get('document_type') or 'document'}{_ref(ctx, 'job_number', ' for job #{}')} "
            "has been uploaded."
        ),
        action_url=_link(ctx, "/jobs"),
    ),
}

# Every declared type must have a template; fail at import, not at send time.
_missing = set(NOTIFICATION_TYPES) - set(_TEMPLATES)
_unknown = set(_TEMPLATES) - set(NOTIFICATION_TYPES)
if _missing or _unknown:
    raise RuntimeError(
        f"Notification templates out of sync: missing={sorted(_missing)} unknown={sorted(_unknown)}"
    )


def get_notification_content(notification_type: str, context: Context | None = None) -> NotificationContent:
    try:
        template = _TEMPLATES[notification_type]
    except KeyError:
        raise ValueError(f"Unknown notification type: {notification_type!r}") from None
    return template(context or {})


def default_priority(notification_type: str) -> str:
    if notification_type in _HIGH_PRIORITY_TYPES:
        return "high"
    if notification_type in _LOW_PRIORITY_TYPES:
        return "low"
    return "normal"


def get_email_html_content(content: NotificationContent, app_url: str, *, sender_name: str) -> str:
    safe_title = escape(content.title)
    safe_message = escape(content.message)

    action_link = ""
    if content.action_url:
        href = escape(f"{app_url}{content.action_url}")
        action_link = (
            f'<p style="margin-top: 20px;"><a href="{href}" style="background-color: #2563eb; '
            'color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; '
            'display: inline-block;">View Details</a></p>'
        )

    return f"""<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
  </head>
  <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Helvetica, Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="background-color: #f8fafc; border-radius: 8px; padding: 32px; margin-bottom: 20px;">
      <h1 style="margin: 0 0 16px; color: #1e293b; font-size: 24px;">{safe_title}</h1>
      <p style="margin: 0; color: #475569; font-size: 16px;">{safe_message}</p>
      {action_link}
    </div>
    <p style="color: #94a3b8; font-size: 12px; text-align: center;">
      {escape(sender_name)}<br>
      You're receiving this email because you have notifications enabled.
    </p>
  </body>
</html>
"""
