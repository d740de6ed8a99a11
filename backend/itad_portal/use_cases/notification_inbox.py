"""In-app notification inbox for the current user."""
from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from ..domain_errors import NotFoundError
from ..models import Notification, User, utcnow


def _own_visible(db: Session, user: User):
    return db.query(Notification).filter(
        Notification.user_id == user.id,
        Notification.is_dismissed == False,  # noqa: E712
    )


def _get_own_or_404(*, db: Session, user: User, notification_id: UUID) -> Notification:
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == user.id,
    ).first()
    if not notification:
        raise NotFoundError("Notification not found", code="NOTIFICATION_NOT_FOUND")
    return notification


def list_notifications(
    *,
    db: Session,
    user: User,
    unread_only: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> list[Notification]:
    query = _own_visible(db, user)
    if unread_only:
        query = query.filter(Notification.is_read == False)  # noqa: E712
    return (
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def unread_count(*, db: Session, user: User) -> int:
    return _own_visible(db, user).filter(Notification.is_read == False).count()  # noqa: E712


def mark_read(*, db: Session, user: User, notification_id: UUID) -> Notification:
    notification = _get_own_or_404(db=db, user=user, notification_id=notification_id)
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = utcnow()
        db.commit()
        db.refresh(notification)
    return notification


def mark_all_read(*, db: Session, user: User) -> int:
    updated = _own_visible(db, user).filter(Notification.is_read == False).update(  # noqa: E712
        {"is_read": True, "read_at": utcnow()},
        synchronize_session=False,
    )
    db.commit()
    return updated


def dismiss(*, db: Session, user: User, notification_id: UUID) -> Notification:
    notification = _get_own_or_404(db=db, user=user, notification_id=notification_id)
    if not notification.is_dismissed:
        notification.is_dismissed = True
        notification.dismissed_at = utcnow()
        db.commit()
        db.refresh(notification)
    return notification
