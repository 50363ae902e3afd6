"""Remote store adapter for the Urban Walker API.

A thin async HTTP client over the shop backend.  It translates record
payloads into the JSON each collection endpoint expects and reports a binary
outcome: the created remote representation, or a :class:`RemoteError`.
There is no retry here; retry policy belongs to the reconciler.

Expected API routes
-------------------
GET    /sneakers                 – list products
POST   /sneakers                 – create, returns ``{"success", "sneaker": {...}}``
PUT    /sneakers/{id}            – update (admin)
DELETE /sneakers/{id}            – delete (admin)
GET    /purchase                 – list purchases (admin)
POST   /purchase                 – record an offline purchase
POST   /checkout                 – server-side checkout
POST   /login                    – returns ``{"token", "user"}``
GET    /stats/...                – dashboard counters

Errors are reported by the backend as ``{"error": "<message>"}``.  Callers
authenticate with an ``Authorization: Bearer <token>`` header.

Environment variables (all optional; direct kwargs take precedence):
    WALKER_API_URL     – base URL of the API (e.g. https://shop.example.com/api)
    WALKER_API_TOKEN   – bearer token from a previous sign-in
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import httpx

from walker.record import Collection, Payload

DEFAULT_API_URL = "http://localhost:3001/api"


class RemoteError(Exception):
    """A remote call failed: non-2xx status or no response at all.

    ``status`` is ``None`` for transport failures (unreachable host,
    timeout, connection reset).
    """

    def __init__(self, status: int | None, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    @property
    def is_transport(self) -> bool:
        return self.status is None

    def __str__(self) -> str:
        if self.status is None:
            return f"transport error: {self.message}"
        return f"{self.status}: {self.message}"


@dataclass
class RemoteRecord:
    """The remote store's view of a created record."""

    id: int | str | None
    data: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class RemoteStore(Protocol):
    """What the reconciler needs from a remote store."""

    async def create(self, collection: Collection[Any], payload: Payload) -> RemoteRecord:
        """Create *payload* remotely; raise :class:`RemoteError` on failure."""
        ...

    async def list_all(self, collection: Collection[Any]) -> list[dict[str, Any]]:
        """Return the authoritative remote listing for *collection*."""
        ...

    async def delete(self, collection: Collection[Any], remote_id: int | str) -> None:
        """Delete the remote record *remote_id*."""
        ...


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"HTTP {response.status_code}"


class HttpRemoteStore:
    """:class:`RemoteStore` backed by the shop's REST API."""

    def __init__(
        self,
        api_url: str | None = None,
        *,
        api_token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (api_url or os.getenv("WALKER_API_URL", DEFAULT_API_URL)).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )
        self.set_token(api_token or os.getenv("WALKER_API_TOKEN", ""))

    def set_token(self, token: str | None) -> None:
        """Set (or clear, with a falsy *token*) the bearer token."""
        if token:
            self._client.headers["Authorization"] = f"Bearer {token}"
        else:
            self._client.headers.pop("Authorization", None)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            r = await self._client.request(method, path, **kwargs)
        except httpx.RequestError as exc:
            raise RemoteError(None, str(exc) or type(exc).__name__) from exc
        if not r.is_success:
            raise RemoteError(r.status_code, _error_message(r))
        if not r.content:
            return None
        try:
            return r.json()
        except ValueError:
            return None

    async def get_json(self, path: str) -> Any:
        return await self._request("GET", path)

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    async def create(self, collection: Collection[Any], payload: Payload) -> RemoteRecord:
        body = await self._request("POST", collection.endpoint, json=payload.to_dict())
        entity: Any = body
        if collection.envelope and isinstance(body, dict) and collection.envelope in body:
            entity = body[collection.envelope]
        if not isinstance(entity, dict):
            return RemoteRecord(id=None)
        return RemoteRecord(id=entity.get("id"), data=entity)

    async def list_all(self, collection: Collection[Any]) -> list[dict[str, Any]]:
        body = await self._request("GET", collection.endpoint)
        if not isinstance(body, list):
            raise RemoteError(200, f"expected a list from {collection.endpoint}")
        return [item for item in body if isinstance(item, dict)]

    async def update(
        self, collection: Collection[Any], remote_id: int | str, payload: Payload
    ) -> RemoteRecord:
        body = await self._request("PUT", f"{collection.endpoint}/{remote_id}", json=payload.to_dict())
        entity = body.get(collection.envelope) if collection.envelope and isinstance(body, dict) else body
        if not isinstance(entity, dict):
            return RemoteRecord(id=remote_id)
        return RemoteRecord(id=entity.get("id", remote_id), data=entity)

    async def delete(self, collection: Collection[Any], remote_id: int | str) -> None:
        await self._request("DELETE", f"{collection.endpoint}/{remote_id}")

    # ------------------------------------------------------------------
    # Checkout / auth
    # ------------------------------------------------------------------

    async def checkout(self, user_id: int | str | None, cart: list[dict[str, Any]]) -> Any:
        return await self._request("POST", "/checkout", json={"user_id": user_id, "cart": cart})

    async def login(self, email: str, password: str) -> dict[str, Any]:
        body = await self._request("POST", "/login", json={"email": email, "password": password})
        if not isinstance(body, dict) or "token" not in body:
            raise RemoteError(200, "login response carried no token")
        return body

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpRemoteStore":
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()
