# app/models/cart.py
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import CheckConstraint, Column, JSON, UniqueConstraint
from sqlmodel import SQLModel, Field

from app.models.product import to_cents


@dataclass(frozen=True)
class OwnerKey:
    """
    Identity a cart is scoped to: a signed-in user XOR an anonymous session.
    """

    user_id: uuid.UUID | None = None
    session_id: str | None = None

    def __post_init__(self):
        if (self.user_id is None) == (self.session_id is None):
            raise ValueError("OwnerKey needs exactly one of user_id or session_id")

    @classmethod
    def for_user(cls, user_id: uuid.UUID) -> "OwnerKey":
        return cls(user_id=user_id)

    @classmethod
    def for_session(cls, session_id: str) -> "OwnerKey":
        return cls(session_id=session_id)

    @property
    def is_guest(self) -> bool:
        return self.session_id is not None

    @property
    def key(self) -> str:
        if self.user_id is not None:
            return f"user:{self.user_id}"
        return f"session:{self.session_id}"


class CartLine(SQLModel, table=True):
    """
    One product line in a cart.

    Rules:
      - exactly one of user_id / session_id is set (owner_key mirrors it)
      - one row per (owner, product, options signature)
      - product_name / product_image / unit_price are snapshots taken at
        add time and never follow later catalog edits
      - total_price == unit_price * quantity; only `set_quantity` writes
        either of quantity or total_price
    """

    __tablename__ = "cart_lines"
    __table_args__ = (
        UniqueConstraint(
            "owner_key",
            "product_id",
            "options_signature",
            name="uq_cart_lines_owner_signature",
        ),
        CheckConstraint(
            "(user_id IS NULL) <> (session_id IS NULL)",
            name="ck_cart_lines_single_owner",
        ),
        CheckConstraint("quantity >= 1", name="ck_cart_lines_quantity"),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="users.id",
        index=True,
    )

    session_id: str | None = Field(
        default=None,
        max_length=128,
        index=True,
    )

    owner_key: str = Field(
        max_length=140,
        index=True,
        description="'user:<uuid>' or 'session:<token>'",
    )

    # No FK: lines are snapshots and outlive catalog deletes.
    product_id: uuid.UUID = Field(index=True)

    product_name: str
    product_image: str | None = None

    quantity: int = Field(
        default=1,
        description="Must be >= 1",
    )

    options: dict[str, Any] | None = Field(
        default=None,
        sa_column=Column(JSON),
    )

    options_signature: str = Field(
        default="[]",
        description="Canonical form of options used for duplicate detection",
    )

    unit_price: Decimal = Field(
        max_digits=10,
        decimal_places=2,
        description="Unit price when added to cart",
    )

    total_price: Decimal = Field(
        max_digits=10,
        decimal_places=2,
        description="unit_price * quantity",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    def assign_owner(self, owner: OwnerKey) -> None:
        self.user_id = owner.user_id
        self.session_id = owner.session_id
        self.owner_key = owner.key

    def set_quantity(self, quantity: int) -> None:
        self.quantity = quantity
        self.total_price = to_cents(Decimal(self.unit_price) * quantity)
        self.updated_at = datetime.now(timezone.utc)
