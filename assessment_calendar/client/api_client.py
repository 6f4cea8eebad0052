"""
HTTP client for the calendar REST API.

Unwraps the ``{success, data, message}`` envelope into domain objects and
turns transport failures, non-2xx answers and ``success: false`` bodies into
``ApiClientError``. There is no retry policy; callers decide whether to retry.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

import httpx

from ..domain.models import Assessment
from ..domain.services import to_local_key
from ..infrastructure.config import get_settings
from ..infrastructure.exceptions import ApiClientError
from ..infrastructure.logging import get_logger

logger = get_logger(__name__)


def _date_value(value: date | datetime | str) -> str:
    # local components only; a UTC conversion can move the calendar day
    if isinstance(value, (date, datetime)):
        return to_local_key(value)
    return value


def _to_assessment(item: Any) -> Assessment:
    try:
        return Assessment.from_api(item)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        logger.error(f"Malformed assessment in response: {item!r}")
        raise ApiClientError(f"Malformed assessment in response: {str(e)}") from e


def _to_assessments(body: dict[str, Any]) -> list[Assessment]:
    items = body.get("data") or []
    if not isinstance(items, list):
        raise ApiClientError("Unexpected response shape: data is not a list")
    return [_to_assessment(item) for item in items]


class CalendarApiClient:
    """
    Synchronous client for ``/api/calendar``.

    Example:
        >>> with CalendarApiClient("http://localhost:3000") as client:
        ...     for assessment in client.list_assessments():
        ...         print(assessment.name, assessment.submit_date)
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        config = get_settings().client
        self.base_url = (base_url or config.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else config.timeout_seconds
        self._client = httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> CalendarApiClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            response = self._client.request(method, path, json=json)
        except httpx.TimeoutException as e:
            logger.error(f"{method} {path} timed out after {self.timeout}s")
            raise ApiClientError(f"Request timed out after {self.timeout} seconds") from e
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {str(e)}")
            raise ApiClientError(f"Network request failed: {str(e)}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise ApiClientError(
                f"Invalid response from server (HTTP {response.status_code})",
                status_code=response.status_code,
            ) from e

        if not isinstance(body, dict):
            raise ApiClientError("Unexpected response shape", status_code=response.status_code)

        if response.is_error or not body.get("success"):
            message = body.get("message") or f"HTTP {response.status_code}"
            logger.warning(f"{method} {path} rejected with {response.status_code}: {message}")
            raise ApiClientError(
                message,
                status_code=response.status_code,
                details={"status_code": response.status_code, "error": body.get("error")},
            )
        return body

    # ---------- Reads ----------

    def list_assessments(self) -> list[Assessment]:
        body = self._request("GET", "/api/calendar")
        return _to_assessments(body)

    def list_assessments_for_date(self, day: date | datetime | str) -> list[Assessment]:
        body = self._request("GET", f"/api/calendar/{_date_value(day)}")
        return _to_assessments(body)

    def health(self) -> dict[str, Any]:
        return self._request("GET", "/api/health")

    # ---------- Writes ----------

    def create_assessment(
        self,
        name: str,
        submit_date: date | datetime | str,
        description: str = "",
        color: str | None = None,
    ) -> Assessment:
        payload: dict[str, Any] = {
            "name": name,
            "description": description,
            "submit_date": _date_value(submit_date),
        }
        if color:
            payload["color"] = color
        body = self._request("POST", "/api/calendar", json=payload)
        return _to_assessment(body.get("data"))

    def update_assessment(self, assessment: Assessment) -> Assessment:
        """Replace every field of ``assessment`` on the server."""
        body = self._request(
            "PUT", f"/api/calendar/{assessment.id}", json=assessment.to_payload()
        )
        return _to_assessment(body.get("data"))

    def delete_assessment(self, assessment_id: int) -> Assessment:
        body = self._request("DELETE", f"/api/calendar/{assessment_id}")
        return _to_assessment(body.get("data"))
