"""Request -> quote -> job workflow use-cases.

Every operation re-reads the entity, checks its precondition, then writes
the new status with a conditional ``UPDATE ... WHERE status IN (...)`` so a
concurrent caller that already moved the entity makes this one fail
closed. Timeline events and the job row go into the same transaction.
Notifications are handed to the notifier only after the commit and their
failure is logged, never raised.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..domain_errors import InvalidTransitionError, NotFoundError, UnauthorizedError, ValidationFailedError
from ..models import Company, Job, Quote, Request, User
from ..schemas import AcceptQuote, DeclineQuote, RequestCreate, RequestQuoteRevision
from ..services import timeline
from ..services.quote_pricing import QuoteTotals, compute_totals
from ..services.workflow_rules import (
    JOB_STATUS_NOTIFICATIONS,
    QUOTE_AWAITING_RESPONSE_STATUSES,
    QUOTE_RESPONSE_NOTIFICATIONS,
    QUOTE_SENDABLE_STATUSES,
    REQUEST_OPEN_STATUSES,
    append_note,
    generate_reference,
    is_job_picked_up,
    job_stage_timestamps,
    now_utc,
    validate_job_transition,
)
from .quote_drafting import get_active_quote

logger = logging.getLogger(__name__)


class WorkflowNotifier(Protocol):
    def notify(self, event: str, payload: dict[str, Any]) -> None: ...


@dataclass(frozen=True)
class QuoteResponseResult:
    job_id: UUID | None


def _get_quote_or_404(*, db: Session, quote_id: UUID) -> Quote:
    quote = db.query(Quote).filter(Quote.id == quote_id).first()
    if not quote:
        raise NotFoundError("Quote not found", code="QUOTE_NOT_FOUND")
    return quote


def _get_request_or_404(*, db: Session, request_id: UUID) -> Request:
    request = db.query(Request).filter(Request.id == request_id).first()
    if not request:
        raise NotFoundError("Request not found", code="REQUEST_NOT_FOUND")
    return request


def _get_job_or_404(*, db: Session, job_id: UUID) -> Job:
    job = db.query(Job).filter(Job.id == job_id).first()
    if not job:
        raise NotFoundError("Job not found", code="JOB_NOT_FOUND")
    return job


def _conditional_status_update(
    db: Session,
    model: type[Request] | type[Quote] | type[Job],
    entity_id: UUID,
    *,
    expected: Iterable[str],
    values: dict[str, Any],
) -> bool:
    """Write ``values`` only if the row is still in one of ``expected`` statuses."""
    updated = db.query(model).filter(
        model.id == entity_id,
        model.status.in_(tuple(expected)),
    ).update(values, synchronize_session=False)
    return updated == 1


def _ensure_active_quote(db: Session, quote: Quote) -> None:
    active = get_active_quote(db, quote.request_id)
    if active is not None and active.id != quote.id:
        raise InvalidTransitionError(
            "Quote has been superseded by a newer quote",
            code="QUOTE_SUPERSEDED",
            details={"active_quote_id": str(active.id)},
        )


def _notify_after_commit(notifier: WorkflowNotifier | None, event: str, payload: dict[str, Any]) -> None:
    if notifier is None:
        return
    try:
        notifier.notify(event, payload)
    except Exception:
        logger.exception("Notification '%s' failed; the transition is already committed", event)


def recompute_quote_totals(quote: Quote) -> QuoteTotals:
    """Totals from the stored line items; a percentage discount is re-applied from its rate."""
    if quote.discount_type == "percentage":
        discount = quote.discount_rate if quote.discount_rate is not None else 0
    else:
        discount = quote.discount
    try:
        return compute_totals(quote.line_items, discount=discount, discount_type=quote.discount_type)
    except ValueError as exc:
        raise ValidationFailedError(str(exc), code="QUOTE_INVALID_DISCOUNT") from exc


def submit_request_use_case(
    *,
    db: Session,
    data: RequestCreate,
    current_user: User,
    notifier: WorkflowNotifier | None = None,
) -> Request:
    """Create a pending request for the caller's company and tell staff."""
    if current_user.company_id is None:
        raise UnauthorizedError(
            "Only company users can submit requests",
            code="COMPANY_MEMBERSHIP_REQUIRED",
        )

    request = Request(
        request_number=generate_reference("REQ"),
        company_id=current_user.company_id,
        submitted_by=current_user.id,
        status="pending",
        **data.model_dump(mode="json", exclude={"preferred_date"}),
        preferred_date=data.preferred_date,
    )
    db.add(request)
    db.flush()
    timeline.create_created_event(db, "request", request.id, current_user.id)

    company = db.query(Company).filter(Company.id == current_user.company_id).first()
    payload = {
        "request_id": str(request.id),
        "request_number": request.request_number,
        "company_name": company.name if company else None,
    }
    db.commit()
    logger.info("Request %s submitted by %s", payload["request_number"], current_user.id)

    _notify_after_commit(notifier, "request_submitted", payload)
    db.refresh(request)
    return request


def send_quote_use_case(
    *,
    db: Session,
    quote_id: UUID,
    actor_id: UUID | None = None,
    notifier: WorkflowNotifier | None = None,
) -> None:
    """Send a draft (or revised) quote to the client; the request becomes quote_ready."""
    quote = _get_quote_or_404(db=db, quote_id=quote_id)

    if quote.status not in QUOTE_SENDABLE_STATUSES:
        raise InvalidTransitionError(
            "Quote is not in a sendable status",
            code="QUOTE_NOT_SENDABLE",
            details={"status": quote.status},
        )
    if not quote.line_items:
        raise InvalidTransitionError(
            "Quote must have at least one line item before it is sent",
            code="QUOTE_HAS_NO_LINE_ITEMS",
        )
    _ensure_active_quote(db, quote)

    request = _get_request_or_404(db=db, request_id=quote.request_id)
    if request.status not in REQUEST_OPEN_STATUSES:
        raise InvalidTransitionError(
            "Request is already closed",
            code="REQUEST_CLOSED",
            details={"status": request.status},
        )

    totals = recompute_quote_totals(quote)
    old_quote_status = quote.status
    old_request_status = request.status
    now = now_utc()

    if not _conditional_status_update(
        db,
        Quote,
        quote.id,
        expected=QUOTE_SENDABLE_STATUSES,
        values={
            "status": "sent",
            "sent_at": now,
            "subtotal": totals.subtotal,
            "discount": totals.discount,
            "total": totals.total,
            "revision_message": None,
            "updated_at": now,
        },
    ):
        db.rollback()
        raise InvalidTransitionError("Quote is not in a sendable status", code="QUOTE_NOT_SENDABLE")
    timeline.create_status_change(db, "quote", quote.id, old_quote_status, "sent", actor_id)

    if old_request_status != "quote_ready":
        if not _conditional_status_update(
            db,
            Request,
            request.id,
            expected=REQUEST_OPEN_STATUSES,
            values={"status": "quote_ready", "updated_at": now},
        ):
            db.rollback()
            raise InvalidTransitionError("Request is already closed", code="REQUEST_CLOSED")
        timeline.create_status_change(db, "request", request.id, old_request_status, "quote_ready", actor_id)

    payload = {
        "quote_id": str(quote.id),
        "quote_number": quote.quote_number,
        "company_id": str(quote.company_id),
        "request_id": str(request.id),
    }
    db.commit()
    logger.info("Quote %s sent (%s -> sent)", payload["quote_number"], old_quote_status)

    _notify_after_commit(notifier, "quote_sent", payload)


def _create_job_for_quote(*, quote: Quote, request: Request, at: datetime) -> Job:
    return Job(
        job_number=generate_reference("JOB", at=at),
        quote_id=quote.id,
        request_id=request.id,
        company_id=quote.company_id,
        status="pickup_scheduled",
        pickup_date=quote.pickup_date or request.preferred_date,
        pickup_time_window=quote.pickup_time_window,
        location={
            "address": request.address,
            "city": request.city,
            "state": request.state,
            "zip_code": request.zip_code,
        },
        contact={
            "name": request.on_site_contact_name,
            "email": request.on_site_contact_email,
            "phone": request.on_site_contact_phone,
        },
        equipment=list(request.equipment or []),
        services=[item.description for item in quote.line_items],
        pickup_scheduled_at=at,
    )


def respond_to_quote_use_case(
    *,
    db: Session,
    quote_id: UUID,
    response: AcceptQuote | DeclineQuote | RequestQuoteRevision,
    acting_user_id: UUID,
    notifier: WorkflowNotifier | None = None,
) -> QuoteResponseResult:
    """Accept, decline or ask for a revision of a sent quote.

    Acceptance creates the job in the same transaction as the status write.
    A second acceptance fails on the status guard, and a racing one on the
    unique ``jobs.quote_id`` constraint, so a quote never gets two jobs.
    """
    quote = _get_quote_or_404(db=db, quote_id=quote_id)

    if quote.status not in QUOTE_AWAITING_RESPONSE_STATUSES:
        raise InvalidTransitionError(
            "Quote is not awaiting response",
            code="QUOTE_NOT_AWAITING_RESPONSE",
            details={"status": quote.status},
        )

    acting_user = db.query(User).filter(User.id == acting_user_id).first()
    if acting_user is None or acting_user.company_id != quote.company_id:
        raise UnauthorizedError(
            "User is not authorized to respond to this quote",
            code="QUOTE_RESPONSE_FORBIDDEN",
        )
    _ensure_active_quote(db, quote)

    request = _get_request_or_404(db=db, request_id=quote.request_id)
    now = now_utc()
    values: dict[str, Any] = {"status": response.status, "updated_at": now}
    if isinstance(response, AcceptQuote):
        values.update(accepted_at=now, accepted_by=acting_user.id, signature_name=response.signature_name)
    elif isinstance(response, DeclineQuote):
        values.update(decline_reason=response.decline_reason)
    else:
        values.update(revision_message=response.revision_message)

    if not _conditional_status_update(
        db,
        Quote,
        quote.id,
        expected=QUOTE_AWAITING_RESPONSE_STATUSES,
        values=values,
    ):
        db.rollback()
        raise InvalidTransitionError("Quote is not awaiting response", code="QUOTE_NOT_AWAITING_RESPONSE")

    new_status = response.status
    if isinstance(response, DeclineQuote):
        timeline.create_declined_event(db, "quote", quote.id, response.decline_reason, acting_user.id)
    else:
        timeline.create_status_change(db, "quote", quote.id, "sent", new_status, acting_user.id)
    if isinstance(response, RequestQuoteRevision):
        # The column is cleared on the next send; the timeline keeps the request.
        timeline.create_note(
            db, "quote", quote.id, f"Revision requested: {response.revision_message}", acting_user.id
        )

    # The request follows accept/decline only; a revision keeps it quote_ready.
    if new_status in ("accepted", "declined"):
        old_request_status = request.status
        if not _conditional_status_update(
            db,
            Request,
            request.id,
            expected=REQUEST_OPEN_STATUSES,
            values={"status": new_status, "updated_at": now},
        ):
            db.rollback()
            raise InvalidTransitionError("Request is already closed", code="REQUEST_CLOSED")
        timeline.create_status_change(db, "request", request.id, old_request_status, new_status, acting_user.id)

    job_id: UUID | None = None
    if isinstance(response, AcceptQuote):
        job = _create_job_for_quote(quote=quote, request=request, at=now)
        db.add(job)
        try:
            db.flush()
        except IntegrityError as exc:
            db.rollback()
            raise InvalidTransitionError(
                "Quote has already been accepted",
                code="QUOTE_ALREADY_ACCEPTED",
            ) from exc
        job_id = job.id
        timeline.create_created_event(db, "job", job.id, acting_user.id)

    payload = {
        "quote_id": str(quote.id),
        "quote_number": quote.quote_number,
        "company_name": quote.company.name if quote.company else None,
    }
    db.commit()
    logger.info("Quote %s %s by %s", payload["quote_number"], new_status, acting_user.id)

    _notify_after_commit(notifier, QUOTE_RESPONSE_NOTIFICATIONS[new_status], payload)
    return QuoteResponseResult(job_id=job_id)


def update_job_status_use_case(
    *,
    db: Session,
    job_id: UUID,
    new_status: str,
    actor_id: UUID | None = None,
    notifier: WorkflowNotifier | None = None,
) -> Job:
    """Advance a job one stage and stamp that stage's timestamp."""
    job = _get_job_or_404(db=db, job_id=job_id)

    try:
        next_status = validate_job_transition(current_status=job.status, next_status=new_status)
    except ValueError as exc:
        raise InvalidTransitionError(
            str(exc),
            code="JOB_INVALID_STATUS_TRANSITION",
            details={"from": job.status, "to": new_status},
        ) from exc

    old_status = job.status
    now = now_utc()
    values: dict[str, Any] = {"status": next_status, "updated_at": now}
    values.update(job_stage_timestamps(next_status=next_status, at=now))

    if not _conditional_status_update(db, Job, job.id, expected=(old_status,), values=values):
        db.rollback()
        raise InvalidTransitionError(
            "Job status changed concurrently",
            code="JOB_STATUS_CONFLICT",
        )
    timeline.create_status_change(db, "job", job.id, old_status, next_status, actor_id)

    payload = {
        "job_id": str(job.id),
        "job_number": job.job_number,
        "company_id": str(job.company_id),
    }
    db.commit()
    logger.info("Job %s status %s -> %s", payload["job_number"], old_status, next_status)

    event = JOB_STATUS_NOTIFICATIONS.get(next_status)
    if event:
        _notify_after_commit(notifier, event, payload)

    db.refresh(job)
    return job


def schedule_pickup_use_case(
    *,
    db: Session,
    job_id: UUID,
    pickup_date: date,
    pickup_time_window: str | None = None,
    actor_id: UUID | None = None,
    notifier: WorkflowNotifier | None = None,
) -> Job:
    """Set or move the pickup date of a job that has not been picked up yet."""
    job = _get_job_or_404(db=db, job_id=job_id)

    if is_job_picked_up(job.status):
        raise InvalidTransitionError(
            "Pickup can only be scheduled before it is complete",
            code="JOB_ALREADY_PICKED_UP",
            details={"status": job.status},
        )

    now = now_utc()
    if not _conditional_status_update(
        db,
        Job,
        job.id,
        expected=("pickup_scheduled",),
        values={
            "pickup_date": pickup_date,
            "pickup_time_window": pickup_time_window,
            "pickup_scheduled_at": now,
            "updated_at": now,
        },
    ):
        db.rollback()
        raise InvalidTransitionError("Job status changed concurrently", code="JOB_STATUS_CONFLICT")

    note = f"Pickup scheduled for {pickup_date.isoformat()}"
    if pickup_time_window:
        note = f"{note} ({pickup_time_window})"
    timeline.create_note(db, "job", job.id, note, actor_id)

    payload = {
        "job_id": str(job.id),
        "job_number": job.job_number,
        "company_id": str(job.company_id),
        "scheduled_date": pickup_date.isoformat(),
    }
    db.commit()

    _notify_after_commit(notifier, "pickup_scheduled", payload)
    db.refresh(job)
    return job


def decline_request_use_case(
    *,
    db: Session,
    request_id: UUID,
    reason: str | None = None,
    actor_id: UUID | None = None,
) -> Request:
    """Decline a pending request outright (no quote involved)."""
    request = _get_request_or_404(db=db, request_id=request_id)

    if request.status != "pending":
        raise InvalidTransitionError(
            "Request is not in pending status",
            code="REQUEST_NOT_PENDING",
            details={"status": request.status},
        )

    if not _conditional_status_update(
        db,
        Request,
        request.id,
        expected=("pending",),
        values={
            "status": "declined",
            "additional_notes": append_note(request.additional_notes, "Declined", reason),
            "updated_at": now_utc(),
        },
    ):
        db.rollback()
        raise InvalidTransitionError("Request is not in pending status", code="REQUEST_NOT_PENDING")
    timeline.create_declined_event(db, "request", request.id, reason, actor_id)

    db.commit()
    logger.info("Request %s declined", request.id)
    db.refresh(request)
    return request
