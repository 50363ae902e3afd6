"""Unit tests for walker.remote.HttpRemoteStore against a mocked transport."""

from __future__ import annotations

import json

import httpx
import pytest

from walker.models import Purchase, Sneaker
from walker.record import PURCHASES, SNEAKERS
from walker.remote import HttpRemoteStore, RemoteError, RemoteStore

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _store(handler, **kw) -> HttpRemoteStore:
    return HttpRemoteStore("https://shop.test/api", transport=httpx.MockTransport(handler), **kw)


class Recorder:
    """Records requests and answers with a canned response."""

    def __init__(self, status: int = 200, body=None, content: bytes | None = None) -> None:
        self.status = status
        self.body = body
        self.content = content
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.content is not None:
            return httpx.Response(self.status, content=self.content)
        return httpx.Response(self.status, json=self.body)


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------


class TestCreate:
    @pytest.mark.asyncio
    async def test_posts_payload_and_unwraps_envelope(self):
        rec = Recorder(body={"success": True, "sneaker": {"id": 42, "name": "Air Max"}})
        store = _store(rec)
        created = await store.create(SNEAKERS, Sneaker(name="Air Max", price=100.0))
        assert created.id == 42
        assert created.data["name"] == "Air Max"
        req = rec.requests[0]
        assert req.method == "POST"
        assert req.url.path == "/api/sneakers"
        assert json.loads(req.content)["name"] == "Air Max"

    @pytest.mark.asyncio
    async def test_purchase_without_id(self):
        store = _store(Recorder(body={"success": True}))
        created = await store.create(PURCHASES, Purchase(user="thandi"))
        assert created.id is None

    @pytest.mark.asyncio
    async def test_error_body_message(self):
        store = _store(Recorder(status=400, body={"error": "Missing name"}))
        with pytest.raises(RemoteError) as info:
            await store.create(SNEAKERS, Sneaker(name=""))
        assert info.value.status == 400
        assert info.value.message == "Missing name"

    @pytest.mark.asyncio
    async def test_unparsable_error_body_degrades_to_status(self):
        store = _store(Recorder(status=502, content=b"<html>Bad gateway</html>"))
        with pytest.raises(RemoteError) as info:
            await store.create(SNEAKERS, Sneaker(name="Air Max"))
        assert info.value.status == 502
        assert info.value.message == "HTTP 502"

    @pytest.mark.asyncio
    async def test_transport_error_has_no_status(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        store = _store(handler)
        with pytest.raises(RemoteError) as info:
            await store.create(SNEAKERS, Sneaker(name="Air Max"))
        assert info.value.status is None
        assert info.value.is_transport

    @pytest.mark.asyncio
    async def test_decoding_error_is_remote_error(self):
        def handler(request):
            raise httpx.DecodingError("bad content-encoding", request=request)

        store = _store(handler)
        with pytest.raises(RemoteError) as info:
            await store.create(SNEAKERS, Sneaker(name="Air Max"))
        assert info.value.status is None


# ---------------------------------------------------------------------------
# list / update / delete
# ---------------------------------------------------------------------------


class TestCollectionCalls:
    @pytest.mark.asyncio
    async def test_list_all(self):
        store = _store(Recorder(body=[{"id": 1, "name": "Dunk"}, {"id": 2, "name": "Samba"}]))
        rows = await store.list_all(SNEAKERS)
        assert [r["name"] for r in rows] == ["Dunk", "Samba"]

    @pytest.mark.asyncio
    async def test_list_all_rejects_non_list(self):
        store = _store(Recorder(body={"error": None}))
        with pytest.raises(RemoteError):
            await store.list_all(SNEAKERS)

    @pytest.mark.asyncio
    async def test_update(self):
        rec = Recorder(body={"success": True, "sneaker": {"id": 5, "name": "Dunk", "qty": 1}})
        store = _store(rec)
        updated = await store.update(SNEAKERS, 5, Sneaker(name="Dunk", qty=1))
        assert updated.id == 5
        assert rec.requests[0].method == "PUT"
        assert rec.requests[0].url.path == "/api/sneakers/5"

    @pytest.mark.asyncio
    async def test_delete_admin_only(self):
        store = _store(Recorder(status=403, body={"error": "Admin only"}))
        with pytest.raises(RemoteError, match="Admin only"):
            await store.delete(SNEAKERS, 5)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class TestAuth:
    @pytest.mark.asyncio
    async def test_token_sent_as_bearer(self):
        rec = Recorder(body=[])
        store = _store(rec, api_token="tok-1")
        await store.list_all(SNEAKERS)
        assert rec.requests[0].headers["Authorization"] == "Bearer tok-1"

    @pytest.mark.asyncio
    async def test_clearing_token_drops_header(self):
        rec = Recorder(body=[])
        store = _store(rec, api_token="tok-1")
        store.set_token(None)
        await store.list_all(SNEAKERS)
        assert "Authorization" not in rec.requests[0].headers

    @pytest.mark.asyncio
    async def test_token_from_environment(self, monkeypatch):
        monkeypatch.setenv("WALKER_API_TOKEN", "env-token")
        rec = Recorder(body=[])
        store = _store(rec)
        await store.list_all(SNEAKERS)
        assert rec.requests[0].headers["Authorization"] == "Bearer env-token"

    @pytest.mark.asyncio
    async def test_login_invalid_credentials(self):
        store = _store(Recorder(status=401, body={"error": "Invalid credentials"}))
        with pytest.raises(RemoteError) as info:
            await store.login("a@b.c", "wrong")
        assert info.value.status == 401


# ---------------------------------------------------------------------------
# Protocol / lifecycle
# ---------------------------------------------------------------------------


class TestLifecycle:
    def test_satisfies_protocol(self):
        assert isinstance(_store(Recorder()), RemoteStore)

    @pytest.mark.asyncio
    async def test_async_context_manager(self):
        async with _store(Recorder(body=[])) as store:
            assert await store.list_all(SNEAKERS) == []
