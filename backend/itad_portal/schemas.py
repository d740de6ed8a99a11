"""Pydantic schemas for API."""
from pydantic import BaseModel, Field, ConfigDict
from typing import Annotated, Any, Literal, Optional, Union
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID


class _CamelInput(BaseModel):
    """Portal clients post camelCase ids; snake_case is accepted too."""
    model_config = ConfigDict(populate_by_name=True)


# Request schemas
class RequestCreate(BaseModel):
    form_type: Literal["standard", "logistics", "materials"] = "standard"
    form_data: dict[str, Any] = Field(default_factory=dict)
    address: str = Field(min_length=1)
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    on_site_contact_name: Optional[str] = None
    on_site_contact_email: Optional[str] = None
    on_site_contact_phone: Optional[str] = None
    preferred_date: Optional[date] = None
    equipment: list[dict[str, Any]] = Field(default_factory=list)
    additional_notes: Optional[str] = None


class RequestResponse(BaseModel):
    id: UUID
    request_number: str
    company_id: UUID
    submitted_by: UUID
    status: str
    form_type: str
    form_data: dict[str, Any]
    address: str
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    preferred_date: Optional[date] = None
    equipment: list[dict[str, Any]]
    additional_notes: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# Quote schemas
class LineItemInput(BaseModel):
    description: str = Field(min_length=1, max_length=500)
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)


class QuoteDraft(BaseModel):
    """Staff-entered quote body. Totals are always recomputed server-side."""
    line_items: list[LineItemInput] = Field(default_factory=list)
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    discount_type: Literal["amount", "percentage"] = "amount"
    valid_until: Optional[date] = None
    terms: Optional[str] = None
    pickup_date: Optional[date] = None
    pickup_time_window: Optional[str] = None


class QuoteCreate(QuoteDraft):
    request_id: UUID


class QuoteLineItemResponse(BaseModel):
    id: UUID
    description: str
    quantity: int
    unit_price: Decimal
    total: Decimal
    sort_order: int
    model_config = ConfigDict(from_attributes=True)


class QuoteResponse(BaseModel):
    id: UUID
    quote_number: str
    request_id: UUID
    company_id: UUID
    created_by: UUID
    status: str
    pickup_date: Optional[date] = None
    pickup_time_window: Optional[str] = None
    valid_until: date
    subtotal: Decimal
    discount: Decimal
    discount_type: str
    discount_rate: Optional[Decimal] = None
    total: Decimal
    terms: Optional[str] = None
    revision_message: Optional[str] = None
    decline_reason: Optional[str] = None
    accepted_at: Optional[datetime] = None
    accepted_by: Optional[UUID] = None
    signature_name: Optional[str] = None
    sent_at: Optional[datetime] = None
    line_items: list[QuoteLineItemResponse] = Field(default_factory=list)
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# Client responses to a sent quote (tagged by ``status``)
class AcceptQuote(BaseModel):
    status: Literal["accepted"]
    signature_name: str = Field(min_length=1, max_length=255)


class DeclineQuote(BaseModel):
    status: Literal["declined"]
    decline_reason: Optional[str] = None


class RequestQuoteRevision(BaseModel):
    status: Literal["revision_requested"]
    revision_message: str = Field(min_length=1)


QuoteClientResponse = Annotated[
    Union[AcceptQuote, DeclineQuote, RequestQuoteRevision],
    Field(discriminator="status"),
]


# Workflow endpoint payloads
class SendQuoteRequest(_CamelInput):
    quote_id: UUID = Field(alias="quoteId")


class RespondToQuoteRequest(_CamelInput):
    quote_id: UUID = Field(alias="quoteId")
    response: QuoteClientResponse


class RespondToQuoteResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    job_id: Optional[UUID] = Field(default=None, alias="jobId")


class UpdateJobStatusRequest(_CamelInput):
    job_id: UUID = Field(alias="jobId")
    status: str = Field(min_length=1)


class DeclineRequestRequest(_CamelInput):
    request_id: UUID = Field(alias="requestId")
    reason: Optional[str] = None


class SchedulePickupRequest(_CamelInput):
    job_id: UUID = Field(alias="jobId")
    pickup_date: date = Field(alias="pickupDate")
    pickup_time_window: Optional[str] = Field(default=None, alias="pickupTimeWindow")


class SuccessResponse(BaseModel):
    success: bool = True


# Job schemas
class JobResponse(BaseModel):
    id: UUID
    job_number: str
    quote_id: UUID
    request_id: UUID
    company_id: UUID
    status: str
    pickup_date: Optional[date] = None
    pickup_time_window: Optional[str] = None
    location: dict[str, Any]
    contact: dict[str, Any]
    equipment: list[dict[str, Any]]
    services: list[str]
    pickup_scheduled_at: Optional[datetime] = None
    pickup_complete_at: Optional[datetime] = None
    processing_started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class JobStatusResult(BaseModel):
    success: bool = True
    job: JobResponse


# Timeline schemas
class TimelineEventResponse(BaseModel):
    id: UUID
    entity_type: str
    entity_id: UUID
    event_type: str
    previous_value: Optional[str] = None
    new_value: Optional[str] = None
    actor_id: Optional[UUID] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# Notification schemas
class NotificationResponse(BaseModel):
    id: UUID
    type: str
    title: str
    message: str
    priority: str
    action_url: Optional[str] = None
    entity_type: Optional[str] = None
    entity_id: Optional[UUID] = None
    is_read: bool
    read_at: Optional[datetime] = None
    is_dismissed: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class UnreadCountResponse(BaseModel):
    count: int


class MarkAllReadResponse(BaseModel):
    updated: int


class NotificationPreferencesResponse(BaseModel):
    user_id: UUID
    email_enabled: bool = True
    push_enabled: bool = True
    onesignal_player_id: Optional[str] = None
    onesignal_email_id: Optional[str] = None
    type_preferences: dict[str, bool] = Field(default_factory=dict)
    model_config = ConfigDict(from_attributes=True)


class NotificationPreferencesUpdate(BaseModel):
    email_enabled: Optional[bool] = None
    push_enabled: Optional[bool] = None
    onesignal_player_id: Optional[str] = Field(default=None, max_length=255)
    onesignal_email_id: Optional[str] = Field(default=None, max_length=255)
    type_preferences: Optional[dict[str, bool]] = None
