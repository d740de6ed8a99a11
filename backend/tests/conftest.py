from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "true")

from datetime import date  # noqa: E402
from decimal import Decimal  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from itad_portal.database import Base  # noqa: E402
from itad_portal.models import Company, Quote, QuoteLineItem, Request, User  # noqa: E402
from itad_portal.services.quote_pricing import line_total  # noqa: E402


class RecordingNotifier:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def notify(self, event: str, payload: dict[str, Any]) -> None:
        self.calls.append((event, payload))
        if self.fail:
            raise RuntimeError("notifier unavailable")

    @property
    def events(self) -> list[str]:
        return [event for event, _ in self.calls]


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def failing_notifier() -> RecordingNotifier:
    return RecordingNotifier(fail=True)


@pytest.fixture()
def world(db):
    """One client company with a member, a second company, a staff user and a pending request."""
    company = Company(name="Acme Corp")
    other_company = Company(name="Globex")
    db.add_all([company, other_company])
    db.flush()

    admin = User(email="ops@itad.test", full_name="Ops Admin", role="admin")
    client = User(email="it@acme.test", full_name="Alice Client", role="client", company_id=company.id)
    outsider = User(email="it@globex.test", full_name="Olga Outsider", role="client", company_id=other_company.id)
    db.add_all([admin, client, outsider])
    db.flush()

    request = Request(
        request_number="REQ-20260101-AAAAAA",
        company_id=company.id,
        submitted_by=client.id,
        status="pending",
        address="1 Main St",
        city="Springfield",
        on_site_contact_name="Alice Client",
        preferred_date=date(2026, 11, 2),
        equipment=[{"type": "laptop", "quantity": 10}],
    )
    db.add(request)
    db.commit()

    return {
        "company": company,
        "other_company": other_company,
        "admin": admin,
        "client": client,
        "outsider": outsider,
        "request": request,
    }


@pytest.fixture()
def make_quote(db, world):
    counter = {"n": 0}

    def _make(
        *,
        status: str = "draft",
        items: list[tuple[str, int, str]] | None = None,
        request: Request | None = None,
        discount: str = "0",
    ) -> Quote:
        counter["n"] += 1
        request = request or world["request"]
        items = [("Laptop recycling", 2, "100.00")] if items is None else items
        line_items = [
            QuoteLineItem(
                description=description,
                quantity=quantity,
                unit_price=Decimal(price),
                total=line_total(quantity, price),
                sort_order=index,
            )
            for index, (description, quantity, price) in enumerate(items)
        ]
        quote = Quote(
            quote_number=f"QTE-20260101-{counter['n']:06d}",
            request_id=request.id,
            company_id=request.company_id,
            created_by=world["admin"].id,
            status=status,
            valid_until=date(2026, 12, 31),
            discount=Decimal(discount),
            discount_type="amount",
            line_items=line_items,
        )
        db.add(quote)
        db.commit()
        return quote

    return _make
