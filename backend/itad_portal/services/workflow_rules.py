"""Request/quote/job transition invariants."""

from __future__ import annotations

import secrets
from datetime import datetime, timezone


QUOTE_SENDABLE_STATUSES: frozenset[str] = frozenset({"draft", "revision_requested"})
QUOTE_AWAITING_RESPONSE_STATUSES: frozenset[str] = frozenset({"sent"})
QUOTE_EDITABLE_STATUSES: frozenset[str] = frozenset({"draft", "revision_requested"})
# A request carries at most one quote in these statuses at a time.
QUOTE_OPEN_STATUSES: frozenset[str] = frozenset({"draft", "sent", "revision_requested"})

REQUEST_TERMINAL_STATUSES: frozenset[str] = frozenset({"accepted", "declined"})
# Request states a quote may still be sent or answered from.
REQUEST_OPEN_STATUSES: frozenset[str] = frozenset({"pending", "quote_ready", "revision_requested"})

_JOB_TRANSITIONS: dict[str, frozenset[str]] = {
    "pickup_scheduled": frozenset({"pickup_complete"}),
    "pickup_complete": frozenset({"processing"}),
    "processing": frozenset({"pending_cod", "complete"}),
    "pending_cod": frozenset({"complete"}),
    "complete": frozenset(),
}
_JOB_STAGE_COLUMNS: dict[str, str] = {
    "pickup_complete": "pickup_complete_at",
    "processing": "processing_started_at",
    "complete": "completed_at",
}

# Company-facing notification per job status; other statuses notify nobody.
JOB_STATUS_NOTIFICATIONS: dict[str, str] = {
    "pickup_scheduled": "pickup_scheduled",
    "pickup_complete": "pickup_complete",
    "complete": "job_complete",
}

QUOTE_RESPONSE_NOTIFICATIONS: dict[str, str] = {
    "accepted": "quote_accepted",
    "declined": "quote_declined",
    "revision_requested": "quote_revision_requested",
}


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def normalize_status(status: str | None) -> str:
    return (status or "").strip().lower()


def allowed_job_transitions(current_status: str | None) -> frozenset[str]:
    return _JOB_TRANSITIONS.get(normalize_status(current_status), frozenset())


def validate_job_transition(*, current_status: str | None, next_status: str | None) -> str:
    """Return the normalized next status or raise ValueError.

    Jobs only move forward one stage at a time; re-setting the current
    status counts as an invalid transition.
    """
    current = normalize_status(current_status)
    nxt = normalize_status(next_status)

    if nxt not in _JOB_TRANSITIONS:
        raise ValueError(f"Unknown job status: {next_status!r}")
    if nxt not in allowed_job_transitions(current):
        raise ValueError(f"Invalid job status transition: {current} -> {nxt}")
    return nxt


def job_stage_timestamps(*, next_status: str, at: datetime | None = None) -> dict[str, datetime]:
    column = _JOB_STAGE_COLUMNS.get(normalize_status(next_status))
    if column is None:
        return {}
    return {column: at or now_utc()}


def is_job_picked_up(status: str | None) -> bool:
    return normalize_status(status) != "pickup_scheduled"


def append_note(existing: str | None, label: str, text: str | None) -> str | None:
    """Append ``label: text`` below existing notes; never overwrite them."""
    if not text:
        return existing
    return f"{existing or ''}\n\n{label}: {text}".strip()


def generate_reference(prefix: str, *, at: datetime | None = None) -> str:
    ts = at or now_utc()
    return f"{prefix}-{ts:%Y%m%d}-{secrets.token_hex(3).upper()}"
