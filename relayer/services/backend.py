"""
Backend orchestrator: the local event store plus an optional Linera mirror.

Writes commit to the local store first and return its result; the Linera
mirror runs afterwards and its failure is only logged. Reads ask Linera first
when it is enabled and fall back to the local store on any remote failure.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional

from pydantic import BaseModel

from relayer.config import Settings
from relayer.db.event_store import EventStore, parse_limit
from relayer.schemas.activity import (
    ActivityEvent,
    ActivityTx,
    AppendResult,
    EventsPage,
    RemoteEventsResult,
    RemoteResult,
    UpdateResult,
)
from relayer.services.linera import LineraClient, resolve_app_endpoint

logger = logging.getLogger(__name__)


class BackendConfig(BaseModel):
    retention: int = 300
    remote_timeout: float = 5.0
    remote_workers: int = 4


class Backend:
    """
    Compose an ``EventStore`` with an optional Linera client.

    Args:
        config: retention and remote call limits
        store: local store (built from ``config.retention`` by default)
        linera: remote client; anything with ``append_event``,
            ``update_event_status`` and ``get_events``
    """

    def __init__(
        self,
        config: Optional[BackendConfig] = None,
        store: Optional[EventStore] = None,
        linera=None,
    ):
        self.config = config or BackendConfig()
        self.store = store or EventStore(self.config.retention)
        self.linera = linera
        self._executor = (
            ThreadPoolExecutor(
                max_workers=self.config.remote_workers,
                thread_name_prefix="linera",
            )
            if linera is not None
            else None
        )

    @property
    def linera_enabled(self) -> bool:
        return self.linera is not None

    def _call_remote(self, label: str, failure, fn, *args):
        """
        Run a remote call on the worker pool and wait at most ``remote_timeout``.

        A call that outlives the wait is cancelled if it is still queued;
        one already running is abandoned and its outcome logged when it
        completes.
        """
        future = self._executor.submit(fn, *args)
        try:
            return future.result(timeout=self.config.remote_timeout)
        except FutureTimeoutError:
            if future.cancel():
                logger.error(f"{label}: timeout after {self.config.remote_timeout}s, cancelled before start")
            else:
                logger.error(f"{label}: timeout after {self.config.remote_timeout}s")
                future.add_done_callback(lambda done: _log_late_result(label, done))
            return failure(ok=False, error="timeout")
        except Exception:
            logger.exception(f"{label}: remote call raised")
            return failure(ok=False, error="remote_exception")

    def append_event(self, event: ActivityEvent) -> AppendResult:
        local = self.store.append_event(event)
        if not local.ok:
            return local

        if self.linera_enabled:
            remote = self._call_remote(
                "linera_append", RemoteResult, self.linera.append_event, event
            )
            if not remote.ok:
                logger.error(f"linera_append_failed: {remote.error} (event {event['id']})")
        return local

    def update_event_status(
        self,
        actor: str,
        event_id: str,
        status: str,
        tx: Optional[ActivityTx] = None,
    ) -> UpdateResult:
        local = self.store.update_event_status(actor, event_id, status, tx)
        if not local.ok:
            return local

        if self.linera_enabled:
            remote = self._call_remote(
                "linera_update",
                RemoteResult,
                self.linera.update_event_status,
                actor,
                event_id,
                status,
                tx,
            )
            if not remote.ok:
                logger.error(f"linera_update_failed: {remote.error} (event {event_id})")
        return local

    def get_events(self, actor: str, limit=None, cursor: Optional[str] = None) -> EventsPage:
        page_size = parse_limit(limit)

        if self.linera_enabled:
            remote = self._call_remote(
                "linera_get",
                RemoteEventsResult,
                self.linera.get_events,
                actor,
                page_size,
                cursor,
            )
            if remote.ok:
                return EventsPage(items=remote.items, next_cursor=remote.next_cursor)
            logger.error(f"linera_get_failed: {remote.error}; serving local events for {actor}")

        return self.store.get_events(actor, page_size, cursor)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False)
        close = getattr(self.linera, "close", None)
        if callable(close):
            close()


def _log_late_result(label: str, future: Future) -> None:
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        logger.error(f"{label}: abandoned call raised {error!r}")
        return
    result = future.result()
    if not getattr(result, "ok", False):
        logger.error(f"{label}: abandoned call failed with {getattr(result, 'error', None)}")
    else:
        logger.info(f"{label}: abandoned call completed after timeout")


def create_backend(settings: Settings) -> Backend:
    """Build the backend described by ``settings``"""
    config = BackendConfig(
        retention=settings.relayer_retention,
        remote_timeout=settings.linera_timeout,
        remote_workers=settings.relayer_remote_workers,
    )

    endpoint = resolve_app_endpoint(settings)
    enabled = settings.linera_enabled if settings.linera_enabled is not None else bool(endpoint)

    linera = None
    if enabled:
        linera = LineraClient(endpoint, timeout=settings.linera_timeout)
        logger.info(f"Linera mirror enabled: {endpoint or 'linera_not_configured'}")
    else:
        logger.info("Linera mirror disabled; serving from local store only")

    return Backend(config=config, store=EventStore(config.retention), linera=linera)
