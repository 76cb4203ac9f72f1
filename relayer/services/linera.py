"""
Client for the activity-log application running on a Linera node service.

The application speaks GraphQL over HTTP POST. Events are sent as embedded
JSON strings, and the ``events`` query answers with a JSON string holding
``{items, nextCursor}``, so responses are decoded twice.

The client never raises and never retries: every call returns a tagged
result and the caller decides what to do with a failure.
"""

import json
import logging
import math
from typing import Any, Dict, Optional, Tuple

import requests

from relayer.config import Settings
from relayer.db.event_store import parse_int_prefix
from relayer.schemas.activity import (
    ActivityEvent,
    ActivityTx,
    RemoteEventsResult,
    RemoteResult,
)

logger = logging.getLogger(__name__)

APPEND_EVENT_MUTATION = (
    "mutation($actor:String!,$eventJson:String!)"
    "{ appendEvent(actor:$actor, eventJson:$eventJson) }"
)
UPDATE_EVENT_STATUS_MUTATION = (
    "mutation($actor:String!,$id:String!,$status:String!,$txJson:String)"
    "{ updateEventStatus(actor:$actor, id:$id, status:$status, txJson:$txJson) }"
)
EVENTS_QUERY = (
    "query($actor:String!,$limit:Int,$cursor:Int)"
    "{ events(actor:$actor, limit:$limit, cursor:$cursor) }"
)


def resolve_app_endpoint(settings: Settings) -> Optional[str]:
    """
    Resolve the application URL.

    An explicit ``linera_app_endpoint`` wins; otherwise the URL is built as
    ``<linera_endpoint>/chains/<chain_id>/applications/<app_id>``. Returns
    None when the identifiers needed to build it are missing.
    """
    if settings.linera_app_endpoint:
        return settings.linera_app_endpoint.rstrip("/")

    if not (settings.linera_endpoint and settings.linera_chain_id and settings.linera_app_id):
        return None

    base = settings.linera_endpoint.rstrip("/")
    return f"{base}/chains/{settings.linera_chain_id}/applications/{settings.linera_app_id}"


def _parse_cursor(cursor: Optional[str]) -> Optional[int]:
    value = parse_int_prefix(cursor)
    return value if value is not None and value >= 0 else None


def _normalize_cursor(value: Any) -> Optional[str]:
    """Render a remote nextCursor as a string; raises ValueError for non-integral numbers"""
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise ValueError(f"nextCursor is not an integer: {value!r}")
        return str(int(value))
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value:
        return value
    return None


class LineraClient:
    """
    Issues one GraphQL request per operation against an application endpoint.

    Args:
        endpoint: application URL, or None when Linera is not configured
        session: requests session to send with (a new one by default)
        timeout: seconds to wait for each HTTP round-trip
    """

    def __init__(
        self,
        endpoint: Optional[str],
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self.endpoint = endpoint
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.endpoint)

    def _request(self, query: str, variables: Dict[str, Any]) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
        """Send one GraphQL request; returns ``(data, None)`` or ``(None, error)``"""
        if not self.configured:
            return None, "linera_not_configured"

        try:
            response = self.session.post(
                self.endpoint,
                json={"query": query, "variables": variables},
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            logger.error(f"Linera request timed out: {e}")
            return None, "timeout"
        except requests.RequestException as e:
            logger.error(f"Linera request failed: {e}")
            return None, "request_failed"

        if not 200 <= response.status_code < 300:
            return None, f"http_{response.status_code}"

        try:
            body = response.json()
        except ValueError:
            return None, "invalid_response"
        if not isinstance(body, dict):
            return None, "invalid_response"

        errors = body.get("errors")
        if isinstance(errors, list) and errors:
            logger.error(f"Linera GraphQL errors: {errors}")
            return None, "graphql_error"

        data = body.get("data")
        return (data if isinstance(data, dict) else {}), None

    def append_event(self, event: ActivityEvent) -> RemoteResult:
        data, error = self._request(
            APPEND_EVENT_MUTATION,
            {"actor": event["actor"], "eventJson": json.dumps(event)},
        )
        if error:
            return RemoteResult(ok=False, error=error)
        if data.get("appendEvent") is True:
            return RemoteResult(ok=True)
        return RemoteResult(ok=False, error="append_failed")

    def update_event_status(
        self,
        actor: str,
        event_id: str,
        status: str,
        tx: Optional[ActivityTx] = None,
    ) -> RemoteResult:
        data, error = self._request(
            UPDATE_EVENT_STATUS_MUTATION,
            {
                "actor": actor,
                "id": event_id,
                "status": status,
                "txJson": json.dumps(tx) if tx else None,
            },
        )
        if error:
            return RemoteResult(ok=False, error=error)
        if data.get("updateEventStatus") is True:
            return RemoteResult(ok=True)
        return RemoteResult(ok=False, error="update_failed")

    def get_events(self, actor: str, limit: int, cursor: Optional[str] = None) -> RemoteEventsResult:
        data, error = self._request(
            EVENTS_QUERY,
            {"actor": actor, "limit": limit, "cursor": _parse_cursor(cursor)},
        )
        if error:
            return RemoteEventsResult(ok=False, error=error)

        payload = data.get("events")
        if not isinstance(payload, str):
            return RemoteEventsResult(ok=False, error="invalid_response")

        try:
            page = json.loads(payload)
        except ValueError:
            return RemoteEventsResult(ok=False, error="invalid_json")
        if not isinstance(page, dict):
            return RemoteEventsResult(ok=False, error="invalid_json")

        try:
            next_cursor = _normalize_cursor(page.get("nextCursor"))
        except ValueError:
            return RemoteEventsResult(ok=False, error="invalid_response")

        items = page.get("items")
        if not isinstance(items, list):
            items = []
        return RemoteEventsResult(
            ok=True,
            items=[item for item in items if isinstance(item, dict)],
            next_cursor=next_cursor,
        )

    def close(self) -> None:
        self.session.close()
