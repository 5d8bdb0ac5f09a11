"""
Bounded history store — a capacity-bounded, time-ordered record log.

Every insert is followed by an eviction step that counts the live records and
batch-deletes the oldest excess. Count, select and delete are separate backend
calls, so concurrent writers may briefly push the store past its capacity; the
next insert re-evaluates the live set and converges back to ``capacity``.
"""

import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Generic, Mapping, Protocol, TypeVar

from app.exceptions import PersistenceError, ValidationError
from app.models.schemas import HistoryRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")


class HistoryBackend(Protocol):
    """Persistence operations the store needs. Implementations raise PersistenceError."""

    name: str

    def add(self, row: dict) -> None: ...

    def count(self) -> int: ...

    def oldest_ids(self, n: int, exclude: str | None = None) -> list[str]: ...

    def delete_ids(self, ids: list[str]) -> None: ...

    def newest(self, limit: int) -> list[dict]: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BoundedHistoryStore:
    """Append-only record log that keeps at most ``capacity`` records."""

    def __init__(
        self,
        backend: HistoryBackend,
        capacity: int,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.backend = backend
        self.capacity = capacity
        self._clock = clock
        # Guards only the timestamp sequence, not the backend calls.
        self._clock_lock = threading.Lock()
        self._last_ts: datetime | None = None

    def _next_timestamp(self) -> datetime:
        """Current UTC time, bumped by 1µs if needed to stay strictly increasing."""
        with self._clock_lock:
            ts = self._clock()
            if ts.tzinfo is None:
                ts = ts.replace(tzinfo=timezone.utc)
            ts = ts.astimezone(timezone.utc)
            if self._last_ts is not None and ts <= self._last_ts:
                ts = self._last_ts + timedelta(microseconds=1)
            self._last_ts = ts
            return ts

    # ------------------------------------------------------------------

    def insert(self, subject: str, payload: Mapping[str, Any] | None = None) -> HistoryRecord:
        """Persist a new record, then trim the store back to ``capacity``."""
        if not isinstance(subject, str) or not subject.strip():
            raise ValidationError("subject must be a non-empty string")

        record = HistoryRecord(
            id=uuid.uuid4().hex,
            subject=subject,
            payload=dict(payload or {}),
            created_at=self._next_timestamp(),
        )
        self.backend.add(record.to_row())
        logger.debug("History %s: stored %s (%s)", self.backend.name, record.id, subject)

        try:
            self._evict(keep=record.id)
        except PersistenceError as exc:
            # The record itself is stored; the next insert retries the trim.
            logger.warning("History %s: eviction failed: %s", self.backend.name, exc)
        return record

    def _evict(self, keep: str) -> None:
        count = self.backend.count()
        excess = count - self.capacity
        if excess <= 0:
            return
        ids = self.backend.oldest_ids(excess, exclude=keep)
        if not ids:
            return
        self.backend.delete_ids(ids)
        logger.info("History %s: evicted %d record(s): %s", self.backend.name, len(ids), ", ".join(ids))

    def list_recent(self, limit: int) -> list[HistoryRecord]:
        """Newest-first records, at most ``limit`` of them."""
        if limit < 0:
            raise ValidationError("limit must be >= 0")
        if limit == 0:
            return []
        rows = self.backend.newest(limit)
        return [HistoryRecord.from_row(row) for row in rows]


# ---------------------------------------------------------------------------
# Best-effort wrappers used by the request handlers
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HistoryWrite:
    """Outcome of the history side-effect: either a stored record or the error."""

    record: HistoryRecord | None = None
    error: PersistenceError | None = None

    @property
    def recorded(self) -> bool:
        return self.record is not None


@dataclass(frozen=True)
class Logged(Generic[T]):
    """A primary result together with the outcome of logging it to history."""

    result: T
    history: HistoryWrite


def record_safely(
    store: BoundedHistoryStore,
    subject: str,
    payload: Mapping[str, Any] | None = None,
) -> HistoryWrite:
    """Insert into ``store``; a PersistenceError is logged and returned, not raised."""
    try:
        return HistoryWrite(record=store.insert(subject, payload))
    except PersistenceError as exc:
        logger.warning("History %s: save failed: %s", store.backend.name, exc)
        return HistoryWrite(error=exc)


def recent_safely(store: BoundedHistoryStore, limit: int) -> list[HistoryRecord]:
    """Read recent records, degrading to an empty list when the backend fails."""
    try:
        return store.list_recent(limit)
    except PersistenceError as exc:
        logger.error("History %s: read failed: %s", store.backend.name, exc)
        return []
