"""Domain-level exception primitives with stable machine-readable codes."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(eq=False)
class DomainError(Exception):
    """Use-case level error with stable code and HTTP mapping."""

    code: str
    http_status: int
    message: str
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return self.message


class NotFoundError(DomainError):
    """Referenced request/quote/job/notification does not exist."""

    def __init__(self, message: str, *, code: str = "NOT_FOUND", details: dict[str, Any] | None = None) -> None:
        super().__init__(code=code, http_status=404, message=message, details=details)


class InvalidTransitionError(DomainError):
    """Entity is not in a state from which the operation is legal."""

    def __init__(
        self, message: str, *, code: str = "INVALID_TRANSITION", details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(code=code, http_status=409, message=message, details=details)


class UnauthorizedError(DomainError):
    """Acting user does not belong to the company owning the entity."""

    def __init__(self, message: str, *, code: str = "UNAUTHORIZED", details: dict[str, Any] | None = None) -> None:
        super().__init__(code=code, http_status=403, message=message, details=details)


class ValidationFailedError(DomainError):
    def __init__(
        self, message: str, *, code: str = "VALIDATION_FAILED", details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(code=code, http_status=422, message=message, details=details)


class DeliveryFailure(Exception):
    """External push/email provider error. Never leaves the notification dispatcher."""
