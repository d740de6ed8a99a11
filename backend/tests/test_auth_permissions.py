from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi import HTTPException

from itad_portal.auth import (
    ROLE_PERMISSIONS,
    PermissionChecker,
    check_permission,
    create_access_token,
    decode_token,
    get_company_user,
)


@pytest.mark.parametrize(
    ("role", "expected"),
    [
        ("admin", {"canManageWorkflow": True, "canViewAllCompanies": True}),
        ("client", {"canManageWorkflow": False, "canViewAllCompanies": False}),
    ],
)
def test_role_permission_matrix(role: str, expected: dict[str, bool]) -> None:
    assert ROLE_PERMISSIONS[role] == expected


def test_unknown_role_has_no_permissions() -> None:
    assert check_permission(SimpleNamespace(role="auditor"), "canManageWorkflow") is False


def test_permission_checker_rejects_clients() -> None:
    checker = PermissionChecker("canManageWorkflow")
    admin = SimpleNamespace(role="admin")

    assert checker(current_user=admin) is admin
    with pytest.raises(HTTPException) as exc:
        checker(current_user=SimpleNamespace(role="client"))
    assert exc.value.status_code == 403


def test_company_user_requires_membership() -> None:
    member = SimpleNamespace(company_id=uuid4())

    assert get_company_user(current_user=member) is member
    with pytest.raises(HTTPException) as exc:
        get_company_user(current_user=SimpleNamespace(company_id=None))
    assert exc.value.status_code == 403


def test_access_token_round_trip_and_expiry() -> None:
    subject = str(uuid4())
    payload = decode_token(create_access_token({"sub": subject}))
    assert payload["sub"] == subject
    assert payload["type"] == "access"

    expired = create_access_token({"sub": subject}, expires_delta=timedelta(seconds=-5))
    with pytest.raises(HTTPException) as exc:
        decode_token(expired)
    assert exc.value.status_code == 401
