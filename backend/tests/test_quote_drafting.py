from __future__ import annotations

from decimal import Decimal

import pytest

from itad_portal.domain_errors import InvalidTransitionError, NotFoundError, ValidationFailedError
from itad_portal.models import Quote, QuoteLineItem, TimelineEvent
from itad_portal.schemas import LineItemInput, QuoteCreate, QuoteDraft
from itad_portal.use_cases.quote_drafting import (
    create_quote_use_case,
    get_active_quote,
    get_quote_use_case,
    update_quote_use_case,
)
from itad_portal.use_cases.workflow import send_quote_use_case


def _draft(**overrides) -> dict:
    data = {
        "line_items": [
            LineItemInput(description="Laptop wipe", quantity=10, unit_price=Decimal("15.00")),
            LineItemInput(description="Server pickup", quantity=2, unit_price=Decimal("75.00")),
        ],
    }
    data.update(overrides)
    return data


def test_create_quote_prices_lines_and_records_creation(db, world) -> None:
    quote = create_quote_use_case(
        db=db,
        data=QuoteCreate(request_id=world["request"].id, **_draft(discount=Decimal("10"), discount_type="percentage")),
        current_user=world["admin"],
    )

    assert quote.status == "draft"
    assert quote.company_id == world["company"].id
    assert quote.subtotal == Decimal("300.00")
    assert quote.discount == Decimal("30.00")
    assert quote.discount_rate == Decimal("10.00")
    assert quote.total == Decimal("270.00")
    assert [item.description for item in quote.line_items] == ["Laptop wipe", "Server pickup"]
    assert [item.total for item in quote.line_items] == [Decimal("150.00"), Decimal("150.00")]
    assert quote.valid_until is not None
    assert quote.pickup_date == world["request"].preferred_date
    events = db.query(TimelineEvent).filter(TimelineEvent.entity_id == quote.id).all()
    assert [e.event_type for e in events] == ["created"]


def test_discount_larger_than_subtotal_is_rejected(db, world) -> None:
    with pytest.raises(ValidationFailedError) as exc:
        create_quote_use_case(
            db=db,
            data=QuoteCreate(request_id=world["request"].id, **_draft(discount=Decimal("1000"))),
            current_user=world["admin"],
        )

    assert exc.value.code == "QUOTE_INVALID_DISCOUNT"
    assert exc.value.http_status == 422
    assert db.query(Quote).count() == 0


def test_create_quote_for_closed_request_is_rejected(db, world) -> None:
    world["request"].status = "declined"
    db.commit()

    with pytest.raises(InvalidTransitionError) as exc:
        create_quote_use_case(
            db=db,
            data=QuoteCreate(request_id=world["request"].id, **_draft()),
            current_user=world["admin"],
        )

    assert exc.value.code == "REQUEST_CLOSED"


def test_update_quote_replaces_line_items(db, world, make_quote) -> None:
    quote = make_quote()

    updated = update_quote_use_case(
        db=db,
        quote_id=quote.id,
        data=QuoteDraft(
            line_items=[LineItemInput(description="Hard drive shredding", quantity=4, unit_price=Decimal("12.50"))],
            discount=Decimal("5"),
            terms="Net 30",
        ),
        current_user=world["admin"],
    )

    assert updated.total == Decimal("45.00")
    assert updated.terms == "Net 30"
    assert [item.description for item in updated.line_items] == ["Hard drive shredding"]
    assert db.query(QuoteLineItem).filter(QuoteLineItem.quote_id == quote.id).count() == 1


def test_sent_quote_cannot_be_edited(db, world, make_quote) -> None:
    quote = make_quote()
    send_quote_use_case(db=db, quote_id=quote.id)

    with pytest.raises(InvalidTransitionError) as exc:
        update_quote_use_case(db=db, quote_id=quote.id, data=QuoteDraft(**_draft()), current_user=world["admin"])

    assert exc.value.code == "QUOTE_NOT_EDITABLE"


def test_active_quote_is_the_latest(db, world, make_quote) -> None:
    make_quote(status="declined")
    latest = create_quote_use_case(
        db=db,
        data=QuoteCreate(request_id=world["request"].id, **_draft()),
        current_user=world["admin"],
    )

    assert get_active_quote(db, world["request"].id).id == latest.id


def test_clients_only_read_their_own_company_quotes(db, world, make_quote) -> None:
    quote = make_quote()

    assert get_quote_use_case(db=db, quote_id=quote.id, current_user=world["client"]).id == quote.id
    assert get_quote_use_case(db=db, quote_id=quote.id, current_user=world["admin"]).id == quote.id
    with pytest.raises(NotFoundError):
        get_quote_use_case(db=db, quote_id=quote.id, current_user=world["outsider"])


def test_second_quote_is_rejected_while_one_is_open(db, world) -> None:
    first = create_quote_use_case(
        db=db,
        data=QuoteCreate(request_id=world["request"].id, **_draft()),
        current_user=world["admin"],
    )
    send_quote_use_case(db=db, quote_id=first.id)

    with pytest.raises(InvalidTransitionError) as exc:
        create_quote_use_case(
            db=db,
            data=QuoteCreate(
                request_id=world["request"].id,
                line_items=[LineItemInput(description="Cheaper pickup", quantity=1, unit_price=Decimal("300.00"))],
            ),
            current_user=world["admin"],
        )

    assert exc.value.code == "QUOTE_ALREADY_OPEN"
    assert exc.value.http_status == 409
    assert exc.value.details == {"quote_id": str(first.id), "status": "sent"}
    assert db.query(Quote).filter(Quote.request_id == world["request"].id).count() == 1
