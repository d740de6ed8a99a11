"""SQLAlchemy models for the request -> quote -> job workflow."""
from sqlalchemy import (
    JSON, Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Index,
    BigInteger, Integer, Numeric, String, Text, UniqueConstraint, Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import threading
import time
import uuid
from datetime import datetime, timezone
from .database import Base


# JSONB on Postgres, plain JSON elsewhere (SQLite in tests).
JSONType = JSON().with_variant(JSONB(), "postgresql")

USER_ROLES = ("admin", "client")
REQUEST_STATUSES = ("pending", "quote_ready", "revision_requested", "accepted", "declined")
QUOTE_STATUSES = ("draft", "sent", "accepted", "declined", "revision_requested")
JOB_STATUSES = ("pickup_scheduled", "pickup_complete", "processing", "pending_cod", "complete")
DISCOUNT_TYPES = ("amount", "percentage")
FORM_TYPES = ("standard", "logistics", "materials")
TIMELINE_ENTITY_TYPES = ("request", "quote", "job")
TIMELINE_EVENT_TYPES = ("created", "status_change", "declined", "note")
NOTIFICATION_PRIORITIES = ("low", "normal", "high")
NOTIFICATION_ENTITY_TYPES = ("request", "quote", "job", "invoice", "document")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


_sequence_lock = threading.Lock()
_last_sequence = 0


def next_sequence() -> int:
    """Strictly increasing within the process, tracking wall-clock nanoseconds."""
    global _last_sequence
    with _sequence_lock:
        _last_sequence = max(_last_sequence + 1, time.time_ns())
        return _last_sequence


def _in(column: str, values: tuple[str, ...]) -> str:
    quoted = ", ".join(f"'{value}'" for value in values)
    return f"{column} IN ({quoted})"


class Company(Base):
    """Client company (tenant)."""
    __tablename__ = "companies"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    users = relationship("User", back_populates="company")


class User(Base):
    """Portal user: staff (admin) or a member of a client company."""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(Uuid, ForeignKey("companies.id"), nullable=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default="client", index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    __table_args__ = (
        CheckConstraint(_in("role", USER_ROLES), name="chk_user_role"),
    )

    company = relationship("Company", back_populates="users")


class Request(Base):
    """Customer-submitted pickup/drop-off request."""
    __tablename__ = "requests"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    request_number = Column(String(50), unique=True, nullable=False)
    company_id = Column(Uuid, ForeignKey("companies.id"), nullable=False, index=True)
    submitted_by = Column(Uuid, ForeignKey("users.id"), nullable=False)
    status = Column(String(30), nullable=False, default="pending", index=True)
    form_type = Column(String(20), nullable=False, default="standard")
    form_data = Column(JSONType, nullable=False, default=dict)

    address = Column(String(500), nullable=False)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    zip_code = Column(String(20), nullable=True)
    on_site_contact_name = Column(String(255), nullable=True)
    on_site_contact_email = Column(String(255), nullable=True)
    on_site_contact_phone = Column(String(50), nullable=True)
    preferred_date = Column(Date, nullable=True)
    equipment = Column(JSONType, nullable=False, default=list)
    additional_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(_in("status", REQUEST_STATUSES), name="chk_request_status"),
        CheckConstraint(_in("form_type", FORM_TYPES), name="chk_request_form_type"),
    )

    company = relationship("Company")
    quotes = relationship("Quote", back_populates="request", order_by="Quote.created_at")


class Quote(Base):
    """Priced proposal for a request. Money columns always hold amounts."""
    __tablename__ = "quotes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    quote_number = Column(String(50), unique=True, nullable=False)
    request_id = Column(Uuid, ForeignKey("requests.id"), nullable=False, index=True)
    company_id = Column(Uuid, ForeignKey("companies.id"), nullable=False, index=True)
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=False)
    status = Column(String(30), nullable=False, default="draft", index=True)

    pickup_date = Column(Date, nullable=True)
    pickup_time_window = Column(String(100), nullable=True)
    valid_until = Column(Date, nullable=False)

    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    discount_type = Column(String(20), nullable=False, default="amount")
    # Percentage as entered by staff; ``discount`` keeps the normalized amount.
    discount_rate = Column(Numeric(5, 2), nullable=True)
    total = Column(Numeric(12, 2), nullable=False, default=0)
    terms = Column(Text, nullable=True)

    revision_message = Column(Text, nullable=True)
    decline_reason = Column(Text, nullable=True)
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    accepted_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    signature_name = Column(String(255), nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(_in("status", QUOTE_STATUSES), name="chk_quote_status"),
        CheckConstraint(_in("discount_type", DISCOUNT_TYPES), name="chk_quote_discount_type"),
    )

    request = relationship("Request", back_populates="quotes")
    company = relationship("Company")
    line_items = relationship(
        "QuoteLineItem",
        back_populates="quote",
        order_by="QuoteLineItem.sort_order",
        cascade="all, delete-orphan",
    )


class QuoteLineItem(Base):
    __tablename__ = "quote_line_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    quote_id = Column(Uuid, ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(String(500), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)

    quote = relationship("Quote", back_populates="line_items")


class Job(Base):
    """Fulfillment record created when a quote is accepted."""
    __tablename__ = "jobs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    job_number = Column(String(50), unique=True, nullable=False)
    # UNIQUE: at most one job per quote, even under concurrent acceptance.
    quote_id = Column(Uuid, ForeignKey("quotes.id"), nullable=False)
    request_id = Column(Uuid, ForeignKey("requests.id"), nullable=False, index=True)
    company_id = Column(Uuid, ForeignKey("companies.id"), nullable=False, index=True)
    status = Column(String(30), nullable=False, default="pickup_scheduled", index=True)

    pickup_date = Column(Date, nullable=True)
    pickup_time_window = Column(String(100), nullable=True)
    location = Column(JSONType, nullable=False, default=dict)
    contact = Column(JSONType, nullable=False, default=dict)
    equipment = Column(JSONType, nullable=False, default=list)
    services = Column(JSONType, nullable=False, default=list)

    pickup_scheduled_at = Column(DateTime(timezone=True), nullable=True)
    pickup_complete_at = Column(DateTime(timezone=True), nullable=True)
    processing_started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    admin_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("quote_id", name="uq_jobs_quote_id"),
        CheckConstraint(_in("status", JOB_STATUSES), name="chk_job_status"),
    )

    quote = relationship("Quote")
    company = relationship("Company")


class TimelineEvent(Base):
    """Append-only audit record for a request, quote or job."""
    __tablename__ = "timeline_events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    entity_type = Column(String(20), nullable=False)
    entity_id = Column(Uuid, nullable=False)
    event_type = Column(String(20), nullable=False)
    previous_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    actor_id = Column(Uuid, ForeignKey("users.id"), nullable=True)
    # Python-side default: microsecond ordering even where the server clock is coarse.
    # Tie-breaker for events sharing a timestamp; follows insertion order.
    sequence = Column(BigInteger, nullable=False, default=next_sequence)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint(_in("entity_type", TIMELINE_ENTITY_TYPES), name="chk_timeline_entity_type"),
        CheckConstraint(_in("event_type", TIMELINE_EVENT_TYPES), name="chk_timeline_event_type"),
        Index("idx_timeline_entity", "entity_type", "entity_id", "created_at", "sequence"),
    )

    actor = relationship("User")


class Notification(Base):
    """In-app notification, one row per recipient."""
    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    priority = Column(String(10), nullable=False, default="normal")
    action_url = Column(String(500), nullable=True)
    entity_type = Column(String(20), nullable=True)
    entity_id = Column(Uuid, nullable=True)
    meta_data = Column(JSONType, nullable=False, default=dict)  # 'metadata' is reserved by SQLAlchemy

    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(timezone=True), nullable=True)
    is_dismissed = Column(Boolean, nullable=False, default=False)
    dismissed_at = Column(DateTime(timezone=True), nullable=True)
    email_sent = Column(Boolean, nullable=False, default=False)
    email_sent_at = Column(DateTime(timezone=True), nullable=True)
    push_sent = Column(Boolean, nullable=False, default=False)
    push_sent_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(_in("priority", NOTIFICATION_PRIORITIES), name="chk_notification_priority"),
        Index("idx_notifications_user_unread", "user_id", "is_read", "is_dismissed"),
    )


class NotificationPreference(Base):
    """Per-user delivery switches; users without a row get the defaults."""
    __tablename__ = "notification_preferences"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    email_enabled = Column(Boolean, nullable=False, default=True)
    push_enabled = Column(Boolean, nullable=False, default=True)
    onesignal_player_id = Column(String(255), nullable=True)
    onesignal_email_id = Column(String(255), nullable=True)
    # notification type -> enabled; missing types count as enabled
    type_preferences = Column(JSONType, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user = relationship("User")
