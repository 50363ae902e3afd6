"""Sign-in state kept in the local cache (``token`` and ``currentUser`` keys)."""

from __future__ import annotations

from typing import Any

from walker.cache import LocalCache
from walker.remote import HttpRemoteStore

TOKEN_KEY = "token"
USER_KEY = "currentUser"


async def sign_in(remote: HttpRemoteStore, cache: LocalCache, email: str, password: str) -> dict[str, Any]:
    """Log in, remember the token and user, and authenticate *remote*.

    Raises :class:`~walker.remote.RemoteError` on bad credentials.
    """
    body = await remote.login(email, password)
    cache.set_value(TOKEN_KEY, body["token"])
    cache.set_value(USER_KEY, body.get("user") or {})
    remote.set_token(body["token"])
    return body.get("user") or {}


def restore_session(remote: HttpRemoteStore, cache: LocalCache) -> dict[str, Any] | None:
    """Re-apply a stored token to *remote*; return the stored user, if any."""
    token = cache.get_value(TOKEN_KEY)
    if not token:
        return None
    remote.set_token(token)
    return current_user(cache)


def current_user(cache: LocalCache) -> dict[str, Any] | None:
    user = cache.get_value(USER_KEY)
    return user if isinstance(user, dict) else None


def sign_out(cache: LocalCache, remote: HttpRemoteStore | None = None) -> None:
    cache.delete_value(TOKEN_KEY)
    cache.delete_value(USER_KEY)
    if remote is not None:
        remote.set_token(None)
