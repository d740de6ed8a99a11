"""Staff-side quote drafting: create, revise and read quotes."""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from ..config import settings
from ..domain_errors import InvalidTransitionError, NotFoundError, ValidationFailedError
from ..models import Quote, QuoteLineItem, Request, User
from ..schemas import QuoteCreate, QuoteDraft
from ..services import timeline
from ..services.quote_pricing import QuoteTotals, compute_totals, line_total, to_money
from ..services.workflow_rules import (
    QUOTE_EDITABLE_STATUSES,
    QUOTE_OPEN_STATUSES,
    REQUEST_TERMINAL_STATUSES,
    generate_reference,
    now_utc,
)

logger = logging.getLogger(__name__)


def _price_draft(draft: QuoteDraft) -> QuoteTotals:
    try:
        return compute_totals(draft.line_items, discount=draft.discount, discount_type=draft.discount_type)
    except ValueError as exc:
        raise ValidationFailedError(str(exc), code="QUOTE_INVALID_DISCOUNT") from exc


def _build_line_items(draft: QuoteDraft) -> list[QuoteLineItem]:
    return [
        QuoteLineItem(
            description=item.description,
            quantity=item.quantity,
            unit_price=to_money(item.unit_price),
            total=line_total(item.quantity, item.unit_price),
            sort_order=index,
        )
        for index, item in enumerate(draft.line_items)
    ]


def _pricing_columns(draft: QuoteDraft, totals: QuoteTotals) -> dict[str, Any]:
    return {
        "subtotal": totals.subtotal,
        "discount": totals.discount,
        "discount_type": draft.discount_type,
        "discount_rate": to_money(draft.discount) if draft.discount_type == "percentage" else None,
        "total": totals.total,
    }


def get_active_quote(db: Session, request_id: UUID) -> Quote | None:
    """The most recently created quote of a request."""
    return (
        db.query(Quote)
        .filter(Quote.request_id == request_id)
        .order_by(Quote.created_at.desc(), Quote.quote_number.desc())
        .first()
    )


def create_quote_use_case(*, db: Session, data: QuoteCreate, current_user: User) -> Quote:
    request = db.query(Request).filter(Request.id == data.request_id).first()
    if not request:
        raise NotFoundError("Request not found", code="REQUEST_NOT_FOUND")
    if request.status in REQUEST_TERMINAL_STATUSES:
        raise InvalidTransitionError(
            "Request is already closed",
            code="REQUEST_CLOSED",
            details={"status": request.status},
        )
    open_quote = (
        db.query(Quote)
        .filter(Quote.request_id == request.id, Quote.status.in_(tuple(QUOTE_OPEN_STATUSES)))
        .first()
    )
    if open_quote:
        raise InvalidTransitionError(
            "Request already has an open quote",
            code="QUOTE_ALREADY_OPEN",
            details={"quote_id": str(open_quote.id), "status": open_quote.status},
        )

    totals = _price_draft(data)
    quote = Quote(
        quote_number=generate_reference("QTE"),
        request_id=request.id,
        company_id=request.company_id,
        created_by=current_user.id,
        status="draft",
        pickup_date=data.pickup_date or request.preferred_date,
        pickup_time_window=data.pickup_time_window,
        valid_until=data.valid_until or (now_utc().date() + timedelta(days=settings.QUOTE_VALIDITY_DAYS)),
        terms=data.terms,
        line_items=_build_line_items(data),
        **_pricing_columns(data, totals),
    )
    db.add(quote)
    db.flush()
    timeline.create_created_event(db, "quote", quote.id, current_user.id)
    db.commit()
    db.refresh(quote)

    logger.info("Quote %s drafted for request %s (total %s)", quote.quote_number, request.id, quote.total)
    return quote


def update_quote_use_case(*, db: Session, quote_id: UUID, data: QuoteDraft, current_user: User) -> Quote:
    """Replace a draft's pricing and line items. Only unsent or revision-requested quotes change."""
    quote = db.query(Quote).filter(Quote.id == quote_id).first()
    if not quote:
        raise NotFoundError("Quote not found", code="QUOTE_NOT_FOUND")
    if quote.status not in QUOTE_EDITABLE_STATUSES:
        raise InvalidTransitionError(
            "Quote can only be edited before it is sent or after a revision request",
            code="QUOTE_NOT_EDITABLE",
            details={"status": quote.status},
        )

    totals = _price_draft(data)
    values = {
        "pickup_date": data.pickup_date,
        "pickup_time_window": data.pickup_time_window,
        "terms": data.terms,
        "updated_at": now_utc(),
        **_pricing_columns(data, totals),
    }
    if data.valid_until is not None:
        values["valid_until"] = data.valid_until

    updated = db.query(Quote).filter(
        Quote.id == quote.id,
        Quote.status.in_(tuple(QUOTE_EDITABLE_STATUSES)),
    ).update(values, synchronize_session=False)
    if updated != 1:
        db.rollback()
        raise InvalidTransitionError("Quote is no longer editable", code="QUOTE_NOT_EDITABLE")

    db.query(QuoteLineItem).filter(QuoteLineItem.quote_id == quote.id).delete(synchronize_session=False)
    for item in _build_line_items(data):
        item.quote_id = quote.id
        db.add(item)
    timeline.create_note(db, "quote", quote.id, "Quote updated", current_user.id)

    db.commit()
    db.refresh(quote)
    logger.info("Quote %s updated (total %s)", quote.quote_number, quote.total)
    return quote


def get_quote_use_case(*, db: Session, quote_id: UUID, current_user: User) -> Quote:
    query = db.query(Quote).filter(Quote.id == quote_id)
    # Clients see their own company's quotes; anything else reads as missing.
    if current_user.role != "admin":
        query = query.filter(Quote.company_id == current_user.company_id)
    quote = query.first()
    if not quote:
        raise NotFoundError("Quote not found", code="QUOTE_NOT_FOUND")
    return quote
