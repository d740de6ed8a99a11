"""Timeline (audit trail) read endpoint."""
from __future__ import annotations

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import check_permission, get_current_user
from ..database import get_db
from ..domain_errors import NotFoundError
from ..models import Job, Quote, Request, User
from ..schemas import TimelineEventResponse
from ..services import timeline

router = APIRouter(prefix="/timeline", tags=["timeline"])

_ENTITY_MODELS = {"request": Request, "quote": Quote, "job": Job}


def _ensure_entity_visible(db: Session, entity_type: str, entity_id: UUID, user: User) -> None:
    model = _ENTITY_MODELS[entity_type]
    query = db.query(model.id).filter(model.id == entity_id)
    if not check_permission(user, "canViewAllCompanies"):
        query = query.filter(model.company_id == user.company_id)
    if query.first() is None:
        raise NotFoundError(f"{entity_type.capitalize()} not found", code=f"{entity_type.upper()}_NOT_FOUND")


@router.get("/{entity_type}/{entity_id}", response_model=list[TimelineEventResponse])
def get_timeline(
    entity_type: Literal["request", "quote", "job"],
    entity_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Events for one request, quote or job, oldest first."""
    _ensure_entity_visible(db, entity_type, entity_id, current_user)
    return timeline.list_for_entity(db, entity_type, entity_id)
