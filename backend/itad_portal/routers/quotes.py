"""Quote drafting endpoints (staff) and quote read access."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth import PermissionChecker, get_current_user
from ..database import get_db
from ..models import User
from ..schemas import QuoteCreate, QuoteDraft, QuoteResponse
from ..use_cases.quote_drafting import create_quote_use_case, get_quote_use_case, update_quote_use_case

router = APIRouter(prefix="/quotes", tags=["quotes"])


@router.post("", response_model=QuoteResponse, status_code=status.HTTP_201_CREATED)
def create_quote(
    data: QuoteCreate,
    current_user: User = Depends(PermissionChecker("canManageWorkflow")),
    db: Session = Depends(get_db),
):
    """Draft a quote for a request."""
    return create_quote_use_case(db=db, data=data, current_user=current_user)


@router.put("/{quote_id}", response_model=QuoteResponse)
def update_quote(
    quote_id: UUID,
    data: QuoteDraft,
    current_user: User = Depends(PermissionChecker("canManageWorkflow")),
    db: Session = Depends(get_db),
):
    """Replace pricing and line items of an editable quote."""
    return update_quote_use_case(db=db, quote_id=quote_id, data=data, current_user=current_user)


@router.get("/{quote_id}", response_model=QuoteResponse)
def get_quote(
    quote_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_quote_use_case(db=db, quote_id=quote_id, current_user=current_user)
