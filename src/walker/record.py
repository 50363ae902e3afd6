"""Record envelope and collection descriptors for the local cache."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Protocol, TypeVar

from walker.models import Purchase, Sneaker


class Payload(Protocol):
    def to_dict(self) -> dict[str, Any]: ...


T = TypeVar("T", bound=Payload)

#: Keys that belong to the envelope rather than the payload in legacy entries
_LEGACY_ENVELOPE_KEYS = {"id", "synced", "remote_id", "local_id"}


@dataclass
class Record(Generic[T]):
    """A locally created record, tagged with its sync state."""

    local_id: int
    payload: T
    synced: bool = False
    remote_id: int | str | None = None

    @property
    def pending(self) -> bool:
        return not self.synced

    def mark_synced(self, remote_id: int | str) -> None:
        """Record the remote acknowledgement; ``synced`` implies a remote id."""
        if remote_id is None:
            raise ValueError("a synced record needs a remote id")
        self.remote_id = remote_id
        self.synced = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "local_id": self.local_id,
            "remote_id": self.remote_id,
            "synced": self.synced,
            "payload": self.payload.to_dict(),
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        decode: Callable[[dict[str, Any]], T],
    ) -> "Record[T]":
        """Decode a stored entry.

        Accepts both the envelope layout written by :meth:`to_dict` and the
        flat layout of older clients (``{"id": ..., "name": ..., "synced":
        false}``).  A missing ``synced`` flag reads as unsynced.
        """
        if not isinstance(data, dict):
            raise TypeError(f"record entry must be an object, got {type(data).__name__}")

        if "payload" in data:
            local_id = data.get("local_id")
            payload = decode(data["payload"])
        else:
            local_id = data.get("id")
            payload = decode({k: v for k, v in data.items() if k not in _LEGACY_ENVELOPE_KEYS})

        if local_id is None:
            raise ValueError("record entry has no local id")

        synced = bool(data.get("synced"))
        remote_id = data.get("remote_id")
        if synced and remote_id is None:
            # Older clients flagged synced records without keeping the id
            remote_id = local_id
        return cls(local_id=local_id, payload=payload, synced=synced, remote_id=remote_id)


def next_local_id(records: list[Record[Any]]) -> int:
    """Millisecond timestamp, bumped past any id already in *records*."""
    candidate = int(time.time() * 1000)
    numeric = [r.local_id for r in records if isinstance(r.local_id, int)]
    if numeric and candidate <= max(numeric):
        candidate = max(numeric) + 1
    return candidate


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Collection(Generic[T]):
    """Where a kind of record lives, locally and remotely.

    ``key`` is the case-insensitive domain key used to deduplicate local
    records against a remote listing; ``None`` disables deduplication.
    """

    name: str
    endpoint: str
    decode: Callable[[dict[str, Any]], T] = field(compare=False)
    envelope: str | None = None
    key: Callable[[dict[str, Any]], str] | None = field(default=None, compare=False)

    def domain_key(self, data: dict[str, Any]) -> str | None:
        if self.key is None:
            return None
        return str(self.key(data)).lower()


SNEAKERS: Collection[Sneaker] = Collection(
    name="sneakers",
    endpoint="/sneakers",
    decode=Sneaker.from_dict,
    envelope="sneaker",
    key=lambda d: d.get("name") or "",
)

PURCHASES: Collection[Purchase] = Collection(
    name="purchases",
    endpoint="/purchase",
    decode=Purchase.from_dict,
)

COLLECTIONS: dict[str, Collection[Any]] = {c.name: c for c in (SNEAKERS, PURCHASES)}
