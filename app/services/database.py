"""
Database service — history backends for the bounded history store.

SupabaseHistoryBackend keeps one table per store. Expected schema::

    create table weather_history (
        id          text primary key,
        subject     text        not null,
        payload     jsonb       not null default '{}'::jsonb,
        created_at  timestamptz not null,
        seq         bigint generated always as identity
    );
    create index on weather_history (created_at, seq);

``seq`` breaks ties between equal ``created_at`` values in insertion order.
"""

import logging
import threading
from typing import Any, Callable

from supabase import create_client, Client  # type: ignore

from app.config import SUPABASE_URL, SUPABASE_KEY
from app.exceptions import PersistenceError

logger = logging.getLogger(__name__)

_COLUMNS = "id, subject, payload, created_at"


def create_supabase_client(url: str = SUPABASE_URL, key: str = SUPABASE_KEY) -> Client:
    """Build the Supabase client shared by every history backend.

    Called once from the application lifespan; the handle is passed into each
    backend rather than cached at module level.
    """
    if not url or not key:
        raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be set in .env")
    return create_client(url, key)


# ---------------------------------------------------------------------------

class SupabaseHistoryBackend:
    """History rows stored in a Supabase (PostgREST) table."""

    def __init__(self, client: Client, table: str):
        self._client = client
        self.table = table
        self.name = table

    def _run(self, action: str, build: Callable[[], Any]):
        try:
            return build().execute()
        except Exception as exc:
            raise PersistenceError(f"Failed to {action} ({self.table}): {exc}") from exc

    def add(self, row: dict) -> None:
        self._run("save history record", lambda: self._client.table(self.table).insert(row))

    def count(self) -> int:
        response = self._run(
            "count history records",
            lambda: self._client.table(self.table).select("id", count="exact", head=True),
        )
        return response.count or 0

    def oldest_ids(self, n: int, exclude: str | None = None) -> list[str]:
        def build():
            query = self._client.table(self.table).select("id")
            if exclude is not None:
                query = query.neq("id", exclude)
            return query.order("created_at").order("seq").limit(n)

        response = self._run("select oldest history records", build)
        return [row["id"] for row in response.data or []]

    def delete_ids(self, ids: list[str]) -> None:
        self._run(
            "delete history records",
            lambda: self._client.table(self.table).delete().in_("id", ids),
        )

    def newest(self, limit: int) -> list[dict]:
        response = self._run(
            "fetch history",
            lambda: (
                self._client.table(self.table)
                .select(_COLUMNS)
                .order("created_at", desc=True)
                .order("seq", desc=True)
                .limit(limit)
            ),
        )
        return response.data or []


class MemoryHistoryBackend:
    """Process-local history rows. Lost on restart; meant for tests and local runs."""

    def __init__(self, name: str = "memory"):
        self.name = name
        self._rows: list[dict] = []
        self._seq = 0
        self._lock = threading.Lock()

    def _ordered(self) -> list[dict]:
        return sorted(self._rows, key=lambda r: (r["created_at"], r["seq"]))

    def add(self, row: dict) -> None:
        with self._lock:
            self._seq += 1
            self._rows.append({**row, "seq": self._seq})

    def count(self) -> int:
        with self._lock:
            return len(self._rows)

    def oldest_ids(self, n: int, exclude: str | None = None) -> list[str]:
        with self._lock:
            ids = [row["id"] for row in self._ordered() if row["id"] != exclude]
            return ids[:n]

    def delete_ids(self, ids: list[str]) -> None:
        doomed = set(ids)
        with self._lock:
            self._rows = [row for row in self._rows if row["id"] not in doomed]

    def newest(self, limit: int) -> list[dict]:
        with self._lock:
            rows = self._ordered()[::-1][:limit]
            return [{k: v for k, v in row.items() if k != "seq"} for row in rows]
