"""LocalCache: durable key-value store for locally created records.

Every collection lives under a fixed string key (``"sneakers"``,
``"purchases"``) as a JSON-encoded list of records.  Raw JSON values such as
the session token share the same table.  DuckDB is the storage engine so the
cache survives restarts and can be queried directly.

Usage::

    cache = LocalCache("~/.walker/cache.duckdb")

    cache.append(SNEAKERS, Record(local_id=1, payload=Sneaker(name="Air Max")))
    records = cache.load(SNEAKERS)        # [] when absent or corrupt

    cache.records_frame(SNEAKERS)         # Polars view of the collection
    cache.pending_summary()               # total / pending per collection
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import duckdb
import polars as pl

from walker.record import COLLECTIONS, Collection, Record

logger = logging.getLogger(__name__)


class LocalCache:
    """DuckDB-backed key-value cache of JSON values."""

    def __init__(self, db_path: Path | str = ":memory:") -> None:
        self._db_path = str(db_path)
        if self._db_path != ":memory:":
            path = Path(self._db_path).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            self._db_path = str(path)
        self.conn: duckdb.DuckDBPyConnection = duckdb.connect(self._db_path)
        self._create_schema()

    def _create_schema(self) -> None:
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key         VARCHAR PRIMARY KEY,
                value       VARCHAR NOT NULL,
                updated_at  TIMESTAMPTZ DEFAULT now()
            )
        """)

    # ------------------------------------------------------------------
    # Raw values
    # ------------------------------------------------------------------

    def _read_raw(self, key: str) -> str | None:
        row = self.conn.execute("SELECT value FROM kv_store WHERE key = ?", [key]).fetchone()
        return None if row is None else row[0]

    def _write_raw(self, key: str, value: str) -> None:
        # A single upsert statement: readers see the old value or the new one.
        self.conn.execute(
            """
            INSERT INTO kv_store (key, value, updated_at)
            VALUES (?, ?, now())
            ON CONFLICT (key) DO UPDATE SET
                value      = excluded.value,
                updated_at = now();
            """,
            [key, value],
        )

    def get_value(self, key: str, default: Any = None) -> Any:
        """Return the decoded JSON stored under *key*, or *default*."""
        raw = self._read_raw(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed cache value under %r", key)
            return default

    def set_value(self, key: str, value: Any) -> None:
        self._write_raw(key, json.dumps(value))

    def delete_value(self, key: str) -> None:
        self.conn.execute("DELETE FROM kv_store WHERE key = ?", [key])

    def keys(self) -> list[str]:
        rows = self.conn.execute("SELECT key FROM kv_store ORDER BY key").fetchall()
        return [r[0] for r in rows]

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def load(self, collection: Collection[Any]) -> list[Record[Any]]:
        """Return the stored records for *collection*.

        Missing keys and corrupt values (bad JSON, a non-list, an entry that
        does not decode) all read as an empty list; corruption is logged,
        never raised.
        """
        raw = self._read_raw(collection.name)
        if raw is None:
            return []
        try:
            entries = json.loads(raw)
            if not isinstance(entries, list):
                raise TypeError(f"expected a list, got {type(entries).__name__}")
            return [Record.from_dict(entry, collection.decode) for entry in _with_unique_ids(entries)]
        except (ValueError, TypeError, KeyError, AttributeError) as exc:
            logger.warning("Treating corrupt %r cache entry as empty: %s", collection.name, exc)
            return []

    def save(self, collection: Collection[Any], records: list[Record[Any]]) -> None:
        """Overwrite the stored records for *collection*."""
        self._write_raw(collection.name, json.dumps([r.to_dict() for r in records]))

    def append(self, collection: Collection[Any], record: Record[Any]) -> None:
        records = self.load(collection)
        records.append(record)
        self.save(collection, records)

    def remove(self, collection: Collection[Any], local_id: int | str) -> bool:
        """Delete the record with *local_id*; return whether one was found."""
        records = self.load(collection)
        kept = [r for r in records if r.local_id != local_id]
        if len(kept) == len(records):
            return False
        self.save(collection, kept)
        return True

    def clear(self, collection: Collection[Any]) -> None:
        self.delete_value(collection.name)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def records_frame(self, collection: Collection[Any]) -> pl.DataFrame:
        """Return the collection as a flat Polars DataFrame (payload fields inlined)."""
        rows = [
            {
                "local_id": r.local_id,
                "remote_id": None if r.remote_id is None else str(r.remote_id),
                "synced": r.synced,
                **r.payload.to_dict(),
            }
            for r in self.load(collection)
        ]
        return pl.DataFrame(rows)

    def pending_summary(self) -> pl.DataFrame:
        """Return ``collection, total, pending`` for every known collection."""
        rows = []
        for name, collection in sorted(COLLECTIONS.items()):
            records = self.load(collection)
            rows.append(
                {
                    "collection": name,
                    "total": len(records),
                    "pending": sum(1 for r in records if r.pending),
                }
            )
        return pl.DataFrame(rows, schema={"collection": pl.Utf8, "total": pl.Int64, "pending": pl.Int64})

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "LocalCache":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


def _entry_id_key(entry: dict[str, Any]) -> str:
    return "local_id" if "payload" in entry else "id"


def _with_unique_ids(entries: list[Any]) -> list[Any]:
    """Give entries a local id when they lack one or repeat an earlier one.

    Fresh ids count up from the largest integer id in the list, so they never
    collide with an explicit id stored further down.
    """
    explicit = [e.get(_entry_id_key(e)) for e in entries if isinstance(e, dict)]
    used = {i for i in explicit if isinstance(i, (int, str)) and not isinstance(i, bool)}
    next_id = max((i for i in used if isinstance(i, int)), default=0) + 1

    seen: set[int | str] = set()
    result = []
    for entry in entries:
        if isinstance(entry, dict):
            key = _entry_id_key(entry)
            local_id = entry.get(key)
            if local_id in used and local_id not in seen:
                seen.add(local_id)
            else:
                while next_id in used:
                    next_id += 1
                entry = {**entry, key: next_id}
                used.add(next_id)
                seen.add(next_id)
        result.append(entry)
    return result
