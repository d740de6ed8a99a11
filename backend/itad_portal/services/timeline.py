"""
Timeline recorder.

Append-only audit log per request/quote/job. Events are added to the
caller's session so they commit (or roll back) together with the status
write that produced them; the recorder itself never commits.
"""
from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from ..models import TIMELINE_ENTITY_TYPES, TimelineEvent


def _record(
    db: Session,
    *,
    entity_type: str,
    entity_id: UUID,
    event_type: str,
    previous_value: str | None = None,
    new_value: str | None = None,
    actor_id: UUID | None = None,
) -> TimelineEvent:
    if entity_type not in TIMELINE_ENTITY_TYPES:
        raise ValueError(f"Unknown timeline entity type: {entity_type!r}")

    event = TimelineEvent(
        entity_type=entity_type,
        entity_id=entity_id,
        event_type=event_type,
        previous_value=previous_value,
        new_value=new_value,
        actor_id=actor_id,
    )
    db.add(event)
    return event


def create_status_change(
    db: Session,
    entity_type: str,
    entity_id: UUID,
    previous_status: str | None,
    new_status: str,
    actor_id: UUID | None = None,
) -> TimelineEvent:
    return _record(
        db,
        entity_type=entity_type,
        entity_id=entity_id,
        event_type="status_change",
        previous_value=previous_status,
        new_value=new_status,
        actor_id=actor_id,
    )


def create_declined_event(
    db: Session,
    entity_type: str,
    entity_id: UUID,
    reason: str | None,
    actor_id: UUID | None = None,
) -> TimelineEvent:
    return _record(
        db,
        entity_type=entity_type,
        entity_id=entity_id,
        event_type="declined",
        new_value=reason,
        actor_id=actor_id,
    )


def create_note(
    db: Session,
    entity_type: str,
    entity_id: UUID,
    note: str,
    actor_id: UUID | None = None,
) -> TimelineEvent:
    return _record(
        db,
        entity_type=entity_type,
        entity_id=entity_id,
        event_type="note",
        new_value=note,
        actor_id=actor_id,
    )


def create_created_event(
    db: Session,
    entity_type: str,
    entity_id: UUID,
    actor_id: UUID | None = None,
) -> TimelineEvent:
    return _record(
        db,
        entity_type=entity_type,
        entity_id=entity_id,
        event_type="created",
        actor_id=actor_id,
    )


def list_for_entity(db: Session, entity_type: str, entity_id: UUID) -> list[TimelineEvent]:
    """Events for one entity, oldest first."""
    return (
        db.query(TimelineEvent)
        .filter(
            TimelineEvent.entity_type == entity_type,
            TimelineEvent.entity_id == entity_id,
        )
        .order_by(TimelineEvent.created_at.asc(), TimelineEvent.sequence.asc())
        .all()
    )
