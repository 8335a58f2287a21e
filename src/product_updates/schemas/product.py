"""Pydantic schemas for products.

Learn: Separate "Create"/"Update" schemas (input) from the "Read"
schema (output). JSON on the wire is camelCase (lastUpdated) to match
the browser client; populate_by_name also accepts snake_case input.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_wire = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductCreate(BaseModel):
    """A draft product. Any client-supplied id is ignored."""

    name: str
    price: float = Field(default=0.0)
    description: str = ""

    model_config = _wire


class ProductUpdate(BaseModel):
    """Fields to replace on an existing product. Omitted fields are kept."""

    name: str | None = None
    price: float | None = None
    description: str | None = None

    model_config = _wire


class ProductRead(BaseModel):
    id: int
    name: str
    price: float
    description: str
    last_updated: datetime

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
