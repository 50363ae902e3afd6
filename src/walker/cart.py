"""Shopping cart grouping and server-first checkout with offline fallback.

The cart is a flat list of :class:`CartLine` entries (adding the same shoe
twice yields two lines).  :func:`group_cart` folds them into one line per
``(id, size)`` pair for display and for the purchase record.

Checkout posts the raw cart to ``/checkout``.  When that fails the grouped
cart is stored as an unsynced :class:`~walker.models.Purchase`, which the
reconciler later pushes to ``/purchase``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Iterable

from walker.models import Purchase, PurchaseItem
from walker.reconciler import Reconciler
from walker.record import PURCHASES, Record
from walker.remote import RemoteError

OFFLINE_CHECKOUT_MESSAGE = "Checkout stored locally (offline)"
CHECKOUT_MESSAGE = "Checkout completed"


@dataclass
class CartLine:
    id: int | str | None
    name: str
    price: float = 0.0
    image: str = ""
    size: str = ""
    qty: int = 1

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class CheckoutOutcome:
    message: str
    saved_locally: bool = False
    record: Record[Purchase] | None = None


def group_cart(lines: Iterable[CartLine]) -> list[CartLine]:
    """Merge lines sharing ``(id, size)``, summing quantities, in first-seen order."""
    grouped: dict[tuple[str, str], CartLine] = {}
    for line in lines:
        key = (str(line.id), line.size or "")
        if key not in grouped:
            grouped[key] = CartLine(
                id=line.id, name=line.name, price=line.price, image=line.image, size=line.size or "", qty=0
            )
        grouped[key].qty += int(line.qty or 1)
    return list(grouped.values())


def cart_total(lines: Iterable[CartLine]) -> float:
    return round(sum(float(line.price or 0) * int(line.qty or 0) for line in lines), 2)


def build_purchase(user: str, lines: Iterable[CartLine], when: datetime | None = None) -> Purchase:
    grouped = group_cart(lines)
    when = when or datetime.now(timezone.utc)
    return Purchase(
        user=user or "guest",
        items=[
            PurchaseItem(id=g.id, name=g.name, price=g.price, qty=g.qty, size=g.size, image=g.image)
            for g in grouped
        ],
        total=cart_total(grouped),
        datetime=when.isoformat(),
    )


def _user_label(user: dict[str, Any]) -> str:
    return str(user.get("username") or user.get("email") or "guest")


async def checkout(reconciler: Reconciler, user: dict[str, Any], lines: list[CartLine]) -> CheckoutOutcome:
    """Check *lines* out for *user*, queueing a local purchase if the server is unreachable.

    Parameters
    ----------
    reconciler:
        Supplies the remote store (which must offer ``checkout``) and the cache.
    user:
        The signed-in user dict as returned by ``/login`` (``id``, ``username``, ``email``).
    lines:
        The flat cart.
    """
    if not lines:
        raise ValueError("Cart is empty")
    try:
        await reconciler.remote.checkout(user.get("id"), [line.to_dict() for line in lines])
    except RemoteError:
        purchase = build_purchase(_user_label(user), lines)
        record = reconciler.queue_local(PURCHASES, purchase)
        return CheckoutOutcome(message=OFFLINE_CHECKOUT_MESSAGE, saved_locally=True, record=record)
    return CheckoutOutcome(message=CHECKOUT_MESSAGE)
