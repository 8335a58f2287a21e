"""Event envelope — what the hub pushes to every session.

Wire shape: {"type": <event name>, **payload}, where the payload is
{"product": {...}} for added/updated and {"id": <int>} for deleted.
Events are built from store snapshots, never from live store records.
"""

from dataclasses import dataclass, field
from typing import Any

from product_updates.events.types import (
    PRODUCT_ADDED,
    PRODUCT_DELETED,
    PRODUCT_EVENTS,
    PRODUCT_UPDATED,
)
from product_updates.schemas.product import ProductRead
from product_updates.store.models import Product


class InvalidEventError(ValueError):
    """A message does not describe a known product event."""


@dataclass(frozen=True)
class Event:
    type: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_message(self) -> dict[str, Any]:
        return {"type": self.type, **self.data}

    @classmethod
    def from_message(cls, message: dict[str, Any]) -> "Event":
        event_type = message.get("type")
        if event_type not in PRODUCT_EVENTS:
            raise InvalidEventError(f"Unknown event type: {event_type!r}")
        data = {k: v for k, v in message.items() if k != "type"}
        if event_type == PRODUCT_DELETED:
            product_id = data.get("id")
            if not isinstance(product_id, int) or isinstance(product_id, bool):
                raise InvalidEventError(f"{event_type} needs an integer id")
        elif not isinstance(data.get("product"), dict):
            raise InvalidEventError(f"{event_type} needs a product object")
        return cls(type=event_type, data=data)


def _product_payload(product: Product | ProductRead | dict[str, Any]) -> dict[str, Any]:
    if isinstance(product, Product):
        product = ProductRead.model_validate(product, from_attributes=True)
    elif not isinstance(product, ProductRead):
        # pydantic's ValidationError is a ValueError
        product = ProductRead.model_validate(product)
    return product.model_dump(mode="json", by_alias=True)


def product_added(product: Product | ProductRead | dict[str, Any]) -> Event:
    return Event(PRODUCT_ADDED, {"product": _product_payload(product)})


def product_updated(product: Product | ProductRead | dict[str, Any]) -> Event:
    return Event(PRODUCT_UPDATED, {"product": _product_payload(product)})


def product_deleted(product_id: int) -> Event:
    return Event(PRODUCT_DELETED, {"id": int(product_id)})
