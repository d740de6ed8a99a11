"""Per-user notification delivery preferences."""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..domain_errors import ValidationFailedError
from ..models import NotificationPreference, User
from ..schemas import NotificationPreferencesResponse, NotificationPreferencesUpdate
from ..services.notification_templates import NOTIFICATION_TYPES

logger = logging.getLogger(__name__)


def _find(db: Session, user: User) -> NotificationPreference | None:
    return db.query(NotificationPreference).filter(NotificationPreference.user_id == user.id).first()


def get_preferences(*, db: Session, user: User) -> NotificationPreferencesResponse:
    """Stored preferences, or the defaults (everything enabled) when the user has none."""
    row = _find(db, user)
    if row is None:
        return NotificationPreferencesResponse(user_id=user.id)
    return NotificationPreferencesResponse.model_validate(row)


def update_preferences(
    *,
    db: Session,
    user: User,
    data: NotificationPreferencesUpdate,
) -> NotificationPreferencesResponse:
    """Apply the fields present in ``data``; creates the row on first use."""
    values: dict[str, Any] = data.model_dump(exclude_unset=True)
    unknown = sorted(set(values.get("type_preferences") or {}) - set(NOTIFICATION_TYPES))
    if unknown:
        raise ValidationFailedError(
            "Unknown notification type in preferences",
            code="NOTIFICATION_PREFERENCES_INVALID",
            details={"unknown_types": unknown},
        )
    for key in ("email_enabled", "push_enabled", "type_preferences"):
        if key in values and values[key] is None:
            del values[key]

    row = _find(db, user)
    if row is None:
        row = NotificationPreference(user_id=user.id, **values)
        db.add(row)
        try:
            db.commit()
        except IntegrityError:
            # Another request created the row first; update that one instead.
            db.rollback()
            row = _find(db, user)
            for key, value in values.items():
                setattr(row, key, value)
            db.commit()
    else:
        for key, value in values.items():
            setattr(row, key, value)
        db.commit()

    db.refresh(row)
    logger.info("Notification preferences updated for user %s (%s)", user.id, ", ".join(sorted(values)) or "no changes")
    return NotificationPreferencesResponse.model_validate(row)
