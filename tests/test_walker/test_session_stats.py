"""Unit tests for walker.session and walker.stats over a mocked API."""

from __future__ import annotations

import httpx
import polars as pl
import pytest

from walker.cache import LocalCache
from walker.remote import HttpRemoteStore, RemoteError
from walker.session import current_user, restore_session, sign_in, sign_out
from walker.stats import DashboardStats, daily_revenue, fetch_dashboard

# ---------------------------------------------------------------------------
# Fake API
# ---------------------------------------------------------------------------

_ROUTES = {
    ("POST", "/api/login"): {"token": "jwt-123", "user": {"id": 1, "username": "admin", "role": "admin"}},
    ("GET", "/api/stats/users"): {"total": 12},
    ("GET", "/api/stats/staff"): {"total": 3},
    ("GET", "/api/stats/products"): {"total": 40},
    ("GET", "/api/stats/revenue"): {"total": None},
    ("GET", "/api/sales/daily"): [
        {"day": "2026-10-17", "total": 2000},
        {"day": "2026-10-16", "total": 1500.5},
    ],
}


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/api/login" and b"wrong" in request.content:
        return httpx.Response(401, json={"error": "Invalid credentials"})
    body = _ROUTES.get((request.method, request.url.path))
    if body is None:
        return httpx.Response(404, json={"error": "Not found"})
    return httpx.Response(200, json=body)


@pytest.fixture()
def api() -> HttpRemoteStore:
    return HttpRemoteStore("https://shop.test/api", transport=httpx.MockTransport(_handler))


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class TestSession:
    @pytest.mark.asyncio
    async def test_sign_in_stores_token_and_user(self, api: HttpRemoteStore, cache: LocalCache):
        user = await sign_in(api, cache, "admin@example.com", "secret")
        assert user["role"] == "admin"
        assert cache.get_value("token") == "jwt-123"
        assert current_user(cache)["username"] == "admin"

    @pytest.mark.asyncio
    async def test_bad_credentials_store_nothing(self, api: HttpRemoteStore, cache: LocalCache):
        with pytest.raises(RemoteError):
            await sign_in(api, cache, "admin@example.com", "wrong")
        assert cache.get_value("token") is None

    @pytest.mark.asyncio
    async def test_restore_and_sign_out(self, api: HttpRemoteStore, cache: LocalCache):
        await sign_in(api, cache, "admin@example.com", "secret")
        assert restore_session(api, cache)["id"] == 1
        sign_out(cache, api)
        assert current_user(cache) is None
        assert restore_session(api, cache) is None


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


class TestDashboard:
    @pytest.mark.asyncio
    async def test_counters(self, api: HttpRemoteStore):
        stats = await fetch_dashboard(api)
        assert stats == DashboardStats(users=12, staff=3, products=40, revenue=0.0)

    @pytest.mark.asyncio
    async def test_daily_revenue_sorted(self, api: HttpRemoteStore):
        df = await daily_revenue(api)
        assert isinstance(df, pl.DataFrame)
        assert list(df["day"]) == ["2026-10-16", "2026-10-17"]
        assert df["total"].sum() == pytest.approx(3500.5)

    @pytest.mark.asyncio
    async def test_daily_revenue_rejects_non_list(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"day": "2026-10-17", "total": 2000})

        api = HttpRemoteStore("https://shop.test/api", transport=httpx.MockTransport(handler))
        with pytest.raises(RemoteError) as info:
            await daily_revenue(api)
        assert info.value.status == 200

    def test_to_dict(self):
        assert DashboardStats(users=1).to_dict()["users"] == 1
