# app/schemas/cart.py
import uuid
from datetime import datetime
from decimal import Decimal

from app.schemas.base import CamelModel

OptionSelection = dict[str, str | int | float]


class CartLineCreate(CamelModel):
    """
    Payload for adding to cart.

    `unit_price` is the price the client displayed; the server recomputes it
    from the catalog and rejects the request if they disagree.
    Quantity is range-checked by the service so the error carries a
    cart error kind instead of a generic validation error.
    """

    product_id: uuid.UUID
    product_name: str
    product_image: str | None = None
    quantity: int
    options: OptionSelection | None = None
    unit_price: Decimal


class CartLineUpdate(CamelModel):
    """
    Payload for updating quantity of a cart line.
    """

    quantity: int


class CartLineRead(CamelModel):
    """
    Read model for a single cart line.
    """

    id: uuid.UUID
    product_id: uuid.UUID
    product_name: str
    product_image: str | None = None
    quantity: int
    options: OptionSelection | None = None
    unit_price: Decimal
    total_price: Decimal
    created_at: datetime
    updated_at: datetime


class CartSnapshot(CamelModel):
    """
    Full cart state returned by every cart endpoint.
    """

    items: list[CartLineRead]
    subtotal: Decimal
    item_count: int
