# app/models/product.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field

CENTS = Decimal("0.01")


def to_cents(value: Decimal) -> Decimal:
    """Quantize a money amount to two decimal places (half-up)."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


class Product(SQLModel, table=True):
    """
    Catalog entry the cart prices against.

    `options` holds the declared option definitions as JSON, e.g.::

        [
          {"name": "Size", "type": "select",
           "values": [{"label": "A4", "price": "0"}, {"label": "A3", "price": "12.50"}]},
          {"name": "Pages", "type": "number", "min": 1, "max": 500, "pricePerUnit": "0.10"}
        ]

    See `app.schemas.product.ProductOption` for the validated shape.
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=100,
        index=True,
        description="Display name of the product",
    )

    description: str = Field(
        default="",
        description="Long description",
    )

    category: str = Field(
        max_length=50,
        index=True,
        description="Storefront category (e.g. printing, signage)",
    )

    base_price: Decimal = Field(
        max_digits=10,
        decimal_places=2,
        description="Price before option surcharges",
    )

    image: str | None = Field(
        default=None,
        description="Public image URL",
    )

    options: list[dict[str, Any]] | None = Field(
        default=None,
        sa_column=Column(JSON),
        description="Declared option definitions (ProductOption dumps)",
    )

    is_active: bool = Field(
        default=True,
        index=True,
        description="Whether this product is visible on the storefront",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Last update timestamp (UTC)",
    )
