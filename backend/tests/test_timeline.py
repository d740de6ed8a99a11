from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from itad_portal.services import timeline


def test_events_are_added_to_the_session_without_committing(db, world) -> None:
    request_id = world["request"].id

    event = timeline.create_status_change(db, "request", request_id, "pending", "quote_ready", world["admin"].id)
    db.rollback()

    assert event.event_type == "status_change"
    assert timeline.list_for_entity(db, "request", request_id) == []


def test_list_for_entity_is_oldest_first_and_scoped(db, world) -> None:
    job_id = uuid4()
    base = datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)
    second = timeline.create_note(db, "job", job_id, "Truck dispatched")
    second.created_at = base + timedelta(minutes=5)
    first = timeline.create_created_event(db, "job", job_id)
    first.created_at = base
    declined = timeline.create_declined_event(db, "quote", uuid4(), "Too expensive")
    db.commit()

    events = timeline.list_for_entity(db, "job", job_id)

    assert [e.event_type for e in events] == ["created", "note"]
    assert events[1].new_value == "Truck dispatched"
    assert declined.new_value == "Too expensive"


def test_unknown_entity_type_is_rejected(db) -> None:
    with pytest.raises(ValueError, match="Unknown timeline entity type"):
        timeline.create_note(db, "invoice", uuid4(), "nope")


def test_events_sharing_a_timestamp_keep_insertion_order(db, world) -> None:
    quote_id = uuid4()
    same_instant = datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)
    for note in ("first", "second", "third", "fourth"):
        event = timeline.create_note(db, "quote", quote_id, note)
        event.created_at = same_instant
    db.commit()

    events = timeline.list_for_entity(db, "quote", quote_id)

    assert [e.new_value for e in events] == ["first", "second", "third", "fourth"]
    sequences = [e.sequence for e in events]
    assert sequences == sorted(sequences)
    assert len(set(sequences)) == 4
