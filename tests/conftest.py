"""Shared fixtures: in-memory caches and a scripted remote store."""

from __future__ import annotations

from typing import Any

import pytest

from walker.cache import LocalCache
from walker.reconciler import Reconciler
from walker.record import Collection, Payload
from walker.remote import RemoteError, RemoteRecord


class FakeRemote:
    """In-process :class:`~walker.remote.RemoteStore` with scriptable failures.

    ``fail_names`` makes ``create`` reject payloads with those names;
    ``failures`` is a countdown of calls to reject regardless of payload.
    """

    def __init__(self, listing: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self.listing: dict[str, list[dict[str, Any]]] = listing or {}
        self.created: list[tuple[str, dict[str, Any]]] = []
        self.deleted: list[tuple[str, Any]] = []
        self.checkouts: list[tuple[Any, list[dict[str, Any]]]] = []
        self.fail_names: set[str] = set()
        self.failures = 0
        self.offline = False
        self.listing_fails = False
        self.return_ids = True
        self._next_id = 100

    def _maybe_fail(self) -> None:
        if self.offline:
            raise RemoteError(None, "connection refused")
        if self.failures > 0:
            self.failures -= 1
            raise RemoteError(500, "Insert failed")

    async def create(self, collection: Collection[Any], payload: Payload) -> RemoteRecord:
        data = payload.to_dict()
        self._maybe_fail()
        if data.get("name") in self.fail_names:
            raise RemoteError(400, "Missing name")
        self.created.append((collection.name, data))
        if not self.return_ids:
            return RemoteRecord(id=None)
        self._next_id += 1
        return RemoteRecord(id=self._next_id, data={"id": self._next_id, **data})

    async def list_all(self, collection: Collection[Any]) -> list[dict[str, Any]]:
        if self.listing_fails or self.offline:
            raise RemoteError(None, "connection refused")
        return list(self.listing.get(collection.name, []))

    async def delete(self, collection: Collection[Any], remote_id: Any) -> None:
        self._maybe_fail()
        self.deleted.append((collection.name, remote_id))

    async def checkout(self, user_id: Any, cart: list[dict[str, Any]]) -> dict[str, Any]:
        self._maybe_fail()
        self.checkouts.append((user_id, cart))
        return {"success": True}


@pytest.fixture()
def cache():
    with LocalCache(":memory:") as c:
        yield c


@pytest.fixture()
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture()
def reconciler(cache: LocalCache, remote: FakeRemote) -> Reconciler:
    return Reconciler(cache, remote)
