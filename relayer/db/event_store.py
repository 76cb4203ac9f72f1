import copy
import logging
import re
import threading
from collections import deque
from typing import Deque, Dict, Optional

from relayer.schemas.activity import (
    ActivityEvent,
    ActivityTx,
    AppendResult,
    EventsPage,
    UpdateResult,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
INT_PREFIX_RE = re.compile(r"^\s*([+-]?[0-9]+)")


def parse_int_prefix(value) -> Optional[int]:
    """
    Read the leading base-10 integer of ``value``, ignoring anything after it.

    "12abc" reads as 12 and "1_000" as 1; None when no digits lead.
    """
    if value is None:
        return None
    match = INT_PREFIX_RE.match(str(value))
    if match is None:
        return None
    return int(match.group(1))


def parse_offset(cursor: Optional[str]) -> int:
    """Resolve a cursor to a read offset; absent, invalid or negative cursors mean 0"""
    offset = parse_int_prefix(cursor)
    if offset is None or offset < 0:
        return 0
    return offset


def parse_limit(limit) -> int:
    """Resolve a page size; absent, invalid or non-positive limits mean 20"""
    if isinstance(limit, bool) or limit is None:
        return DEFAULT_PAGE_SIZE
    try:
        value = int(limit)
    except (TypeError, ValueError):
        return DEFAULT_PAGE_SIZE
    return value if value > 0 else DEFAULT_PAGE_SIZE


class EventStore:
    """
    In-memory per-actor event log.

    Each actor owns an ordered sequence capped at ``retention`` events; the
    oldest events are evicted first. Operations on the same actor are
    serialized by a per-actor lock.
    """

    def __init__(self, retention: int = 300):
        if retention < 1:
            raise ValueError(f"retention must be positive, got {retention}")
        self.retention = retention
        self._events: Dict[str, Deque[ActivityEvent]] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, actor: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(actor)
            if lock is None:
                lock = threading.Lock()
                self._locks[actor] = lock
            return lock

    def append_event(self, event: ActivityEvent) -> AppendResult:
        actor = event["actor"]
        with self._lock_for(actor):
            events = self._events.setdefault(actor, deque())
            if any(item["id"] == event["id"] for item in events):
                return AppendResult(ok=False, error="event_exists")

            events.append(copy.deepcopy(event))
            while len(events) > self.retention:
                evicted = events.popleft()
                logger.debug(f"Evicted event {evicted['id']} for {actor}")

        return AppendResult(ok=True)

    def update_event_status(
        self,
        actor: str,
        event_id: str,
        status: str,
        tx: Optional[ActivityTx] = None,
    ) -> UpdateResult:
        with self._lock_for(actor):
            events = self._events.get(actor)
            if not events:
                return UpdateResult(ok=False, error="not_found")

            item = next((event for event in events if event["id"] == event_id), None)
            if item is None:
                return UpdateResult(ok=False, error="not_found")

            item["status"] = status
            if tx:
                item["tx"] = {**(item.get("tx") or {}), **tx}
            return UpdateResult(ok=True, event=copy.deepcopy(item))

    def get_events(self, actor: str, limit=None, cursor: Optional[str] = None) -> EventsPage:
        offset = parse_offset(cursor)
        page_size = parse_limit(limit)
        if actor not in self._events:
            return EventsPage()

        with self._lock_for(actor):
            events = list(self._events.get(actor, ()))

        items = copy.deepcopy(events[offset:offset + page_size])
        next_offset = offset + len(items)
        next_cursor = str(next_offset) if next_offset < len(events) else None
        return EventsPage(items=items, next_cursor=next_cursor)

    def reset(self) -> None:
        """Drop every actor's events, waiting for in-flight operations on each actor"""
        with self._guard:
            locks = list(self._locks.values())
            for lock in locks:
                lock.acquire()
            try:
                self._events.clear()
            finally:
                for lock in locks:
                    lock.release()
