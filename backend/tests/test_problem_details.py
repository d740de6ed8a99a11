from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from itad_portal.domain_errors import DomainError, InvalidTransitionError, NotFoundError, UnauthorizedError
from itad_portal.problem_details import build_problem_details_response


def test_problem_details_payload_contains_stable_code_and_rfc7807_fields() -> None:
    response = build_problem_details_response(
        DomainError(
            code="PROBE_ERROR",
            http_status=409,
            message="probe failed",
            details={"probe": True},
        )
    )

    assert response.status_code == 409
    assert response.media_type == "application/problem+json"

    body = response.body.decode("utf-8")
    assert '"type":"https://api.itad-portal.local/problems/probe_error"' in body
    assert '"title":"Conflict"' in body
    assert '"status":409' in body
    assert '"detail":"probe failed"' in body
    assert '"error":"probe failed"' in body
    assert '"code":"PROBE_ERROR"' in body
    assert '"details":{"probe":true}' in body


def test_problem_details_omits_details_when_none() -> None:
    response = build_problem_details_response(
        DomainError(
            code="NO_DETAILS",
            http_status=422,
            message="validation failed",
            details=None,
        )
    )

    body = response.body.decode("utf-8")
    assert response.status_code == 422
    assert '"code":"NO_DETAILS"' in body
    assert '"details"' not in body


def test_error_kinds_map_to_http_statuses() -> None:
    assert NotFoundError("Quote not found").http_status == 404
    assert InvalidTransitionError("Quote is not awaiting response").http_status == 409
    assert UnauthorizedError("nope").http_status == 403
    assert str(NotFoundError("Job not found", code="JOB_NOT_FOUND")) == "Job not found"


def test_fastapi_exception_handler_maps_domain_error_to_problem_details() -> None:
    app = FastAPI()

    async def _handle_domain_error(_: Request, exc: DomainError):
        return build_problem_details_response(exc)

    app.add_exception_handler(DomainError, _handle_domain_error)

    @app.get("/boom")
    def _boom():
        raise InvalidTransitionError(
            "Quote is not awaiting response",
            code="QUOTE_NOT_AWAITING_RESPONSE",
            details={"status": "accepted"},
        )

    client = TestClient(app)
    response = client.get("/boom")

    assert response.status_code == 409
    assert response.headers["content-type"].startswith("application/problem+json")
    payload = response.json()
    assert payload["code"] == "QUOTE_NOT_AWAITING_RESPONSE"
    assert payload["error"] == "Quote is not awaiting response"
    assert payload["details"] == {"status": "accepted"}
