"""Reconciler: pushes locally cached records to the remote store.

Sync flow
---------
1. ``trigger_sync`` loads the collection and picks the records whose
   ``synced`` flag is falsy, oldest first.
2. Candidates are created remotely one at a time.  The first
   :class:`~walker.remote.RemoteError` ends the run; the remaining records
   wait for the next trigger so their relative order is preserved.
3. Acknowledged remote ids are written back to the cache at the end of every
   run, whether zero, some, or all candidates went through.

User actions (``create``, ``delete``) go through the same object so that an
offline create lands in the cache as an unsynced record.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from walker.cache import LocalCache
from walker.config import Settings
from walker.merge import DisplayRecord, merge_listing
from walker.record import Collection, Payload, Record, next_local_id
from walker.remote import HttpRemoteStore, RemoteError, RemoteRecord, RemoteStore

logger = logging.getLogger(__name__)

SAVED_LOCALLY_MESSAGE = "Saved locally (offline)"
CREATED_MESSAGE = "Created"


@dataclass
class SyncReport:
    collection: str
    attempted: int = 0
    synced: int = 0
    error: RemoteError | None = None
    skipped: bool = False

    @property
    def stopped(self) -> bool:
        """True when the run ended early on a remote failure."""
        return self.error is not None


@dataclass
class CreateOutcome:
    message: str
    saved_locally: bool = False
    remote: RemoteRecord | None = None
    record: Record[Any] | None = None
    error: RemoteError | None = None


class Reconciler:
    """Keeps a :class:`LocalCache` and a :class:`RemoteStore` in step."""

    def __init__(self, cache: LocalCache, remote: RemoteStore) -> None:
        self.cache = cache
        self.remote = remote
        self._running: set[str] = set()

    @classmethod
    def from_settings(cls, settings: Settings) -> "Reconciler":
        """Open the cache and HTTP store described by *settings*."""
        cache = LocalCache(settings.cache_file)
        remote = HttpRemoteStore(settings.api_url, api_token=settings.api_token, timeout=settings.timeout)
        return cls(cache, remote)

    def is_syncing(self, collection: Collection[Any]) -> bool:
        return collection.name in self._running

    # ------------------------------------------------------------------
    # Background sync
    # ------------------------------------------------------------------

    async def trigger_sync(self, collection: Collection[Any]) -> SyncReport:
        """Push every unsynced record of *collection*, stopping at the first failure.

        A call made while a run for the same collection is still in flight
        returns straight away with ``skipped=True``.
        """
        report = SyncReport(collection=collection.name)
        # check-and-set with no await in between
        if collection.name in self._running:
            report.skipped = True
            return report
        self._running.add(collection.name)

        acknowledged: dict[Any, tuple[int | str, Payload]] = {}
        try:
            candidates = [r for r in self.cache.load(collection) if not r.synced]
            for record in candidates:
                report.attempted += 1
                try:
                    created = await self.remote.create(collection, record.payload)
                except RemoteError as exc:
                    report.error = exc
                    logger.warning(
                        "Sync of %s stopped at record %s: %s", collection.name, record.local_id, exc
                    )
                    break
                remote_id = created.id if created.id is not None else record.local_id
                acknowledged[record.local_id] = (remote_id, record.payload)
                report.synced += 1
        finally:
            try:
                self._apply_acknowledged(collection, acknowledged)
            finally:
                self._running.discard(collection.name)

        if report.attempted:
            logger.info(
                "Synced %d/%d pending %s record(s)", report.synced, report.attempted, collection.name
            )
        return report

    def _apply_acknowledged(
        self, collection: Collection[Any], acknowledged: dict[Any, tuple[int | str, Payload]]
    ) -> None:
        # Re-read so records added or deleted while requests were in flight survive.
        records = self.cache.load(collection)
        for record in records:
            if record.synced or record.local_id not in acknowledged:
                continue
            remote_id, payload = acknowledged[record.local_id]
            # Only the record that was actually pushed, not one that now shares its id
            if record.payload == payload:
                record.mark_synced(remote_id)
        self.cache.save(collection, records)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_merged_list(self, collection: Collection[Any]) -> list[DisplayRecord]:
        """Remote listing plus locally pending records; never writes the cache."""
        try:
            remote = await self.remote.list_all(collection)
        except RemoteError as exc:
            logger.warning("Remote %s listing unavailable, showing local records: %s", collection.name, exc)
            remote = []
        return merge_listing(collection, remote, self.cache.load(collection))

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    async def create(self, collection: Collection[Any], payload: Payload) -> CreateOutcome:
        """Create remotely, falling back to an unsynced local record on failure."""
        try:
            created = await self.remote.create(collection, payload)
        except RemoteError as exc:
            record = self.queue_local(collection, payload)
            return CreateOutcome(
                message=SAVED_LOCALLY_MESSAGE, saved_locally=True, record=record, error=exc
            )
        return CreateOutcome(message=CREATED_MESSAGE, remote=created)

    def queue_local(self, collection: Collection[Any], payload: Payload) -> Record[Any]:
        """Append *payload* to the cache as an unsynced record."""
        records = self.cache.load(collection)
        record: Record[Any] = Record(local_id=next_local_id(records), payload=payload)
        records.append(record)
        self.cache.save(collection, records)
        return record

    async def delete(self, collection: Collection[Any], local_id: int | str) -> bool:
        """Delete a cached record, and its remote copy when it has one.

        A failing remote delete raises :class:`RemoteError` and leaves the
        local record in place.
        """
        record = next((r for r in self.cache.load(collection) if r.local_id == local_id), None)
        if record is None:
            return False
        if record.synced and record.remote_id is not None:
            await self.remote.delete(collection, record.remote_id)
        return self.cache.remove(collection, local_id)

    async def prune_synced(self, collection: Collection[Any]) -> int:
        """Drop synced records the remote listing already holds; return how many."""
        remote_ids = {str(item.get("id")) for item in await self.remote.list_all(collection)}
        records = self.cache.load(collection)
        kept = [r for r in records if not (r.synced and str(r.remote_id) in remote_ids)]
        dropped = len(records) - len(kept)
        if dropped:
            self.cache.save(collection, kept)
        return dropped
