"""Recipient lookup for notification fan-out."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from sqlalchemy.orm import Session

from ..models import User


@dataclass(frozen=True)
class Recipient:
    id: UUID
    email: str
    full_name: str | None = None


class RecipientResolver(Protocol):
    def resolve_staff_recipients(self) -> list[Recipient]: ...

    def resolve_company_recipients(self, company_id: UUID) -> list[Recipient]: ...


class SqlRecipientResolver:
    """Cross-tenant user lookup. Only the notification dispatcher should hold one."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def resolve_staff_recipients(self) -> list[Recipient]:
        users = self.db.query(User).filter(
            User.role == "admin",
            User.is_active == True,  # noqa: E712
        ).all()
        return [_to_recipient(user) for user in users]

    def resolve_company_recipients(self, company_id: UUID) -> list[Recipient]:
        users = self.db.query(User).filter(
            User.company_id == company_id,
            User.is_active == True,  # noqa: E712
        ).all()
        return [_to_recipient(user) for user in users]


def _to_recipient(user: User) -> Recipient:
    return Recipient(id=user.id, email=user.email, full_name=user.full_name)
