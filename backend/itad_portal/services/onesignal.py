"""OneSignal REST client for push and email delivery."""
from __future__ import annotations

import logging
from typing import Any

import requests

from ..config import settings
from ..domain_errors import DeliveryFailure

logger = logging.getLogger(__name__)

PRIORITY_MAP = {"low": 1, "normal": 5, "high": 10}


def tag_filter(key: str, value: str) -> dict[str, str]:
    return {"field": "tag", "key": key, "relation": "=", "value": value}


class OneSignalClient:
    """Thin wrapper around ``POST /notifications``.

    Recipients are addressed either by external user id (our user UUID) or
    by tag filters (``user_role``, ``company_id``). Returns the decoded
    provider response, ``None`` when delivery is skipped, and raises
    ``DeliveryFailure`` on any transport or HTTP error.
    """

    def __init__(
        self,
        *,
        app_id: str,
        rest_api_key: str,
        api_url: str = "https://onesignal.com/api/v1",
        timeout: int = 10,
        from_name: str | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.app_id = app_id
        self.rest_api_key = rest_api_key
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.from_name = from_name
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls) -> "OneSignalClient":
        return cls(
            app_id=settings.ONESIGNAL_APP_ID,
            rest_api_key=settings.ONESIGNAL_REST_API_KEY,
            api_url=settings.ONESIGNAL_API_URL,
            timeout=settings.ONESIGNAL_TIMEOUT_SECONDS,
            from_name=settings.EMAIL_FROM_NAME,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.app_id and self.rest_api_key)

    def send_push(
        self,
        *,
        title: str,
        message: str,
        external_user_ids: list[str] | None = None,
        filters: list[dict[str, str]] | None = None,
        url: str | None = None,
        data: dict[str, Any] | None = None,
        priority: str = "normal",
    ) -> dict[str, Any] | None:
        payload: dict[str, Any] = {
            "target_channel": "push",
            "headings": {"en": title},
            "contents": {"en": message},
            "priority": PRIORITY_MAP.get(priority, PRIORITY_MAP["normal"]),
        }
        if url:
            payload["web_url"] = url
        if data:
            payload["data"] = data
        return self._post("push", payload, external_user_ids=external_user_ids, filters=filters)

    def send_email(
        self,
        *,
        subject: str,
        body: str,
        external_user_ids: list[str] | None = None,
        filters: list[dict[str, str]] | None = None,
    ) -> dict[str, Any] | None:
        payload: dict[str, Any] = {
            "target_channel": "email",
            "email_subject": subject,
            "email_body": body,
        }
        if self.from_name:
            payload["email_from_name"] = self.from_name
        return self._post("email", payload, external_user_ids=external_user_ids, filters=filters)

    def _post(
        self,
        channel: str,
        payload: dict[str, Any],
        *,
        external_user_ids: list[str] | None,
        filters: list[dict[str, str]] | None,
    ) -> dict[str, Any] | None:
        if not self.is_configured:
            logger.warning("OneSignal %s skipped: app id or REST API key not configured", channel)
            return None

        if external_user_ids:
            payload["include_aliases"] = {"external_id": external_user_ids}
        elif filters:
            payload["filters"] = filters
        else:
            return None
        payload["app_id"] = self.app_id

        try:
            response = self.session.post(
                f"{self.api_url}/notifications",
                json=payload,
                headers={"Authorization": f"Basic {self.rest_api_key}"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise DeliveryFailure(f"OneSignal {channel} request failed: {exc}") from exc

        if response.status_code >= 400:
            raise DeliveryFailure(f"OneSignal {channel} HTTP_{response.status_code}: {response.text[:200]}")

        try:
            body = response.json()
        except ValueError as exc:
            raise DeliveryFailure(f"OneSignal {channel} returned a malformed response") from exc

        if not isinstance(body, dict):
            raise DeliveryFailure(f"OneSignal {channel} returned a malformed response")
        if body.get("errors") and not body.get("id"):
            raise DeliveryFailure(f"OneSignal {channel} rejected: {body['errors']}")
        return body
