from datetime import datetime, timezone

import pytest

from itad_portal.services.workflow_rules import (
    allowed_job_transitions,
    append_note,
    generate_reference,
    is_job_picked_up,
    job_stage_timestamps,
    validate_job_transition,
)


@pytest.mark.parametrize(
    ("current", "nxt"),
    [
        ("pickup_scheduled", "pickup_complete"),
        ("pickup_complete", "processing"),
        ("processing", "complete"),
        ("processing", "pending_cod"),
        ("pending_cod", "complete"),
    ],
)
def test_forward_job_transitions_are_allowed(current: str, nxt: str) -> None:
    assert validate_job_transition(current_status=current, next_status=nxt) == nxt


def test_transition_input_is_normalized() -> None:
    assert validate_job_transition(current_status="Pickup_Scheduled", next_status=" PICKUP_COMPLETE ") == "pickup_complete"


@pytest.mark.parametrize(
    ("current", "nxt"),
    [
        ("pickup_scheduled", "processing"),
        ("pickup_scheduled", "complete"),
        ("processing", "processing"),
        ("processing", "pickup_complete"),
        ("complete", "processing"),
    ],
)
def test_skipping_repeating_or_going_back_is_rejected(current: str, nxt: str) -> None:
    with pytest.raises(ValueError, match="Invalid job status transition"):
        validate_job_transition(current_status=current, next_status=nxt)


def test_unknown_job_status_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown job status"):
        validate_job_transition(current_status="processing", next_status="shipped")


def test_complete_is_terminal() -> None:
    assert allowed_job_transitions("complete") == frozenset()
    assert allowed_job_transitions(None) == frozenset()


def test_stage_timestamps_cover_each_stage_column() -> None:
    at = datetime(2026, 10, 1, 9, 30, tzinfo=timezone.utc)
    assert job_stage_timestamps(next_status="pickup_complete", at=at) == {"pickup_complete_at": at}
    assert job_stage_timestamps(next_status="processing", at=at) == {"processing_started_at": at}
    assert job_stage_timestamps(next_status="complete", at=at) == {"completed_at": at}
    assert job_stage_timestamps(next_status="pending_cod", at=at) == {}


def test_only_pickup_scheduled_jobs_are_not_picked_up() -> None:
    assert not is_job_picked_up("pickup_scheduled")
    assert is_job_picked_up("pickup_complete")
    assert is_job_picked_up("complete")


def test_append_note_keeps_existing_text() -> None:
    assert append_note(None, "Declined", "No capacity") == "Declined: No capacity"
    assert append_note("Gate code 1234", "Declined", "No capacity") == "Gate code 1234\n\nDeclined: No capacity"
    assert append_note("Gate code 1234", "Declined", None) == "Gate code 1234"
    assert append_note(None, "Declined", "") is None


def test_reference_embeds_prefix_and_date() -> None:
    reference = generate_reference("JOB", at=datetime(2026, 3, 5, tzinfo=timezone.utc))
    prefix, day, suffix = reference.split("-")
    assert prefix == "JOB"
    assert day == "20260305"
    assert len(suffix) == 6
    assert generate_reference("JOB") != generate_reference("JOB")
