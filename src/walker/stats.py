"""Admin dashboard figures fetched from the ``/stats`` and ``/sales`` routes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import polars as pl

from walker.remote import HttpRemoteStore, RemoteError


@dataclass
class DashboardStats:
    users: int = 0
    staff: int = 0
    products: int = 0
    revenue: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "users": self.users,
            "staff": self.staff,
            "products": self.products,
            "revenue": self.revenue,
        }


async def _total(remote: HttpRemoteStore, name: str) -> Any:
    body = await remote.get_json(f"/stats/{name}")
    return body.get("total") if isinstance(body, dict) else None


async def fetch_dashboard(remote: HttpRemoteStore) -> DashboardStats:
    """Fetch the four dashboard counters; a missing revenue total counts as zero."""
    return DashboardStats(
        users=int(await _total(remote, "users") or 0),
        staff=int(await _total(remote, "staff") or 0),
        products=int(await _total(remote, "products") or 0),
        revenue=float(await _total(remote, "revenue") or 0),
    )


async def daily_revenue(remote: HttpRemoteStore) -> pl.DataFrame:
    """Return revenue per day as a ``day, total`` Polars DataFrame, oldest first."""
    body = await remote.get_json("/sales/daily") or []
    if not isinstance(body, list):
        raise RemoteError(200, "expected a list from /sales/daily")
    rows = [r for r in body if isinstance(r, dict)]
    df = pl.DataFrame(
        {
            "day": [str(r.get("day")) for r in rows],
            "total": [float(r.get("total") or 0) for r in rows],
        },
        schema={"day": pl.Utf8, "total": pl.Float64},
    )
    return df.sort("day")
