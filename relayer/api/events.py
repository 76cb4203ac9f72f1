import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request

from relayer.api.errors import APIError
from relayer.auth import require_api_key
from relayer.services.backend import Backend
from relayer.services.validation import (
    is_address,
    validate_event_payload,
    validate_status_payload,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["events"], dependencies=[Depends(require_api_key)])

ERROR_STATUS = {
    "event_exists": 409,
    "not_found": 404,
}


def get_backend(request: Request) -> Backend:
    return request.app.state.backend


async def read_json_body(request: Request) -> Any:
    """Parse the request body as JSON, rejecting malformed bodies with invalid_json"""
    raw = await request.body()
    try:
        return json.loads(raw)
    except ValueError:
        raise APIError(400, "invalid_json")


@router.post("/event")
def append_event(
    payload: Any = Depends(read_json_body),
    backend: Backend = Depends(get_backend),
):
    """Record a new activity event"""
    validation = validate_event_payload(payload)
    if not validation.ok:
        raise APIError(400, "validation_failed", validation.errors)

    result = backend.append_event(payload)
    if not result.ok:
        raise APIError(ERROR_STATUS.get(result.error, 500), result.error)

    logger.info(f"Appended {payload['kind']} event {payload['id']} for {payload['actor']}")
    return {"ok": True, "id": payload["id"]}


@router.post("/event/status")
def update_event_status(
    payload: Any = Depends(read_json_body),
    backend: Backend = Depends(get_backend),
):
    """Set the status of an existing event, merging any transaction hashes"""
    validation = validate_status_payload(payload)
    if not validation.ok:
        raise APIError(400, "validation_failed", validation.errors)

    result = backend.update_event_status(
        payload["actor"],
        payload["id"],
        payload["status"],
        payload.get("tx"),
    )
    if not result.ok:
        raise APIError(ERROR_STATUS.get(result.error, 500), result.error)

    logger.info(f"Event {payload['id']} moved to {payload['status']}")
    return {"ok": True, "event": result.event}


@router.get("/events")
def list_events(
    actor: Optional[str] = None,
    limit: Optional[str] = None,
    cursor: Optional[str] = None,
    backend: Backend = Depends(get_backend),
):
    """List an actor's events, oldest first, one page at a time"""
    if not is_address(actor):
        raise APIError(400, "validation_failed", ["actor"])

    page = backend.get_events(actor, limit, cursor)
    return {"ok": True, "items": page.items, "nextCursor": page.next_cursor}
