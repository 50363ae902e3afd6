"""Payload dataclasses for the shop's collections."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _require_object(data: Any, kind: str) -> None:
    if not isinstance(data, dict):
        raise TypeError(f"{kind} payload must be an object, got {type(data).__name__}")


@dataclass
class Sneaker:
    """A product listing."""

    name: str
    image: str = ""
    price: float = 0.0
    desc: str = ""
    qty: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "image": self.image,
            "price": self.price,
            "desc": self.desc,
            "qty": self.qty,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Sneaker":
        _require_object(data, "Sneaker")
        return cls(
            name=data["name"],
            image=data.get("image") or "",
            price=float(data.get("price") or 0),
            desc=data.get("desc") or "",
            qty=int(data.get("qty") or 0),
        )


@dataclass
class PurchaseItem:
    """One grouped cart line inside a purchase."""

    id: int | str | None
    name: str
    price: float = 0.0
    qty: int = 1
    size: str = ""
    image: str = ""
    desc: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "qty": self.qty,
            "size": self.size,
            "image": self.image,
            "desc": self.desc,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PurchaseItem":
        _require_object(data, "PurchaseItem")
        return cls(
            id=data.get("id"),
            name=data.get("name") or "",
            price=float(data.get("price") or 0),
            qty=int(data.get("qty") or 1),
            size=data.get("size") or "",
            image=data.get("image") or "",
            desc=data.get("desc") or "",
        )


@dataclass
class Purchase:
    """A checkout recorded while the server was unreachable."""

    user: str
    items: list[PurchaseItem] = field(default_factory=list)
    total: float = 0.0
    datetime: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "user": self.user,
            "items": [item.to_dict() for item in self.items],
            "total": self.total,
            "datetime": self.datetime,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Purchase":
        _require_object(data, "Purchase")
        items = data.get("items") or []
        if not isinstance(items, list):
            raise TypeError(f"purchase items must be a list, got {type(items).__name__}")
        return cls(
            user=str(data.get("user") or "guest"),
            items=[PurchaseItem.from_dict(i) for i in items],
            total=float(data.get("total") or 0),
            datetime=data.get("datetime") or "",
        )
