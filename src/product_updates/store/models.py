"""Product record owned by the in-memory store.

Learn: Plain dataclass, not a pydantic model — the store is the only
code that mutates these. Everything handed out of the store is a copy
made with snapshot(), so callers (and broadcast payloads) never share
a mutable reference with the collection.
"""

import dataclasses
from dataclasses import dataclass
from datetime import datetime


@dataclass
class Product:
    id: int
    name: str
    price: float
    description: str
    last_updated: datetime

    def snapshot(self) -> "Product":
        return dataclasses.replace(self)
