"""Read-time merge of a remote listing with locally cached records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from walker.record import Collection, Record


@dataclass
class DisplayRecord:
    """One row of a merged listing, as handed to the UI."""

    data: dict[str, Any]
    pending: bool = False
    local_id: int | str | None = None
    remote_id: int | str | None = None
    #: ``"remote"`` for rows from the listing, ``"local"`` for cached rows
    source: str = field(default="remote")


def merge_listing(
    collection: Collection[Any],
    remote: list[dict[str, Any]],
    local: list[Record[Any]],
) -> list[DisplayRecord]:
    """Return *remote* followed by the local records it does not already show.

    A local record is hidden when its domain key (case-insensitive) matches a
    row already in the result.  For collections without a domain key only the
    unsynced local records are added, since synced ones are in the listing.
    Neither input is modified.
    """
    merged = [DisplayRecord(data=dict(item), remote_id=item.get("id")) for item in remote]

    seen: set[str] = set()
    for item in remote:
        key = collection.domain_key(item)
        if key is not None:
            seen.add(key)

    for record in local:
        data = record.payload.to_dict()
        key = collection.domain_key(data)
        if key is None:
            if record.synced:
                continue
        elif key in seen:
            continue
        else:
            seen.add(key)
        merged.append(
            DisplayRecord(
                data=data,
                pending=record.pending,
                local_id=record.local_id,
                remote_id=record.remote_id,
                source="local",
            )
        )
    return merged
