"""Shared pytest fixtures for relayer tests."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

from relayer.config import Settings
from relayer.db.event_store import EventStore
from relayer.main import create_app
from relayer.schemas import RemoteEventsResult, RemoteResult
from relayer.services.backend import Backend, BackendConfig

ACTOR = "0x1111111111111111111111111111111111111111"
API_KEY = "test-key"


def make_event(event_id: str | None = None, **overrides: Any) -> dict[str, Any]:
    event = {
        "id": event_id or str(uuid.uuid4()),
        "createdAt": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "actor": ACTOR,
        "app": "arc-stable-toolbox",
        "intentId": str(uuid.uuid4()),
        "kind": "bridge",
        "status": "started",
    }
    event.update(overrides)
    return event


class FailingLinera:
    """Remote client whose every call fails."""

    def __init__(self, error: str = "http_503") -> None:
        self.error = error
        self.calls: list[str] = []

    def append_event(self, event):
        self.calls.append("append_event")
        return RemoteResult(ok=False, error=self.error)

    def update_event_status(self, actor, event_id, status, tx=None):
        self.calls.append("update_event_status")
        return RemoteResult(ok=False, error=self.error)

    def get_events(self, actor, limit, cursor=None):
        self.calls.append("get_events")
        return RemoteEventsResult(ok=False, error=self.error)


class RecordingLinera:
    """Remote client that succeeds and serves a fixed page of events."""

    def __init__(self, items=None, next_cursor=None) -> None:
        self.items = items or []
        self.next_cursor = next_cursor
        self.calls: list[tuple] = []

    def append_event(self, event):
        self.calls.append(("append_event", event["id"]))
        return RemoteResult(ok=True)

    def update_event_status(self, actor, event_id, status, tx=None):
        self.calls.append(("update_event_status", event_id, status, tx))
        return RemoteResult(ok=True)

    def get_events(self, actor, limit, cursor=None):
        self.calls.append(("get_events", actor, limit, cursor))
        return RemoteEventsResult(ok=True, items=self.items, next_cursor=self.next_cursor)


@pytest.fixture()
def event_factory() -> Callable[..., dict[str, Any]]:
    return make_event


@pytest.fixture()
def store() -> EventStore:
    return EventStore(retention=10)


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        relayer_api_key=API_KEY,
        linera_enabled=False,
        linera_ids_path=None,
        _env_file=None,
    )


@pytest.fixture()
def backend(store: EventStore):
    backend = Backend(config=BackendConfig(retention=10), store=store)
    yield backend
    backend.close()


@pytest.fixture()
def client(settings: Settings, backend: Backend):
    with TestClient(create_app(settings=settings, backend=backend)) as test_client:
        test_client.headers.update({"x-api-key": API_KEY})
        yield test_client
