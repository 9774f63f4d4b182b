# app/schemas/product.py
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel
from sqlmodel import Field

from app.schemas.base import CamelModel


class OptionValue(CamelModel):
    """One choice of a select-type option and its price delta."""

    label: str = Field(min_length=1)
    price: Decimal = Decimal("0")


class ProductOption(CamelModel):
    """
    Declared option on a product.

    - select: the customer picks one of `values` (by label)
    - number: the customer enters an integer in [min, max], charged
      `price_per_unit` each
    """

    name: str = Field(min_length=1)
    type: Literal["select", "number"]
    values: list[OptionValue] | None = None
    min: int | None = None
    max: int | None = None
    price_per_unit: Decimal | None = None

    @model_validator(mode="after")
    def check_shape(self) -> "ProductOption":
        if self.type == "select" and not self.values:
            raise ValueError(f"select option '{self.name}' needs at least one value")
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"option '{self.name}' has min > max")
        return self


def _check_unique_option_names(options: list[ProductOption] | None):
    if options is None:
        return options
    names = [opt.name for opt in options]
    if len(names) != len(set(names)):
        raise ValueError("option names must be unique")
    return options


class ProductCreate(CamelModel):
    """
    Payload for creating a product (admin).
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )

    name: str = Field(max_length=100)
    description: str = ""
    category: str = Field(max_length=50)
    base_price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    image: str | None = None
    options: list[ProductOption] | None = None
    is_active: bool = True

    @field_validator("name", "category")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("options")
    @classmethod
    def unique_option_names(cls, v):
        return _check_unique_option_names(v)


class ProductUpdate(CamelModel):
    """
    Partial update payload for products.
    All fields are optional.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )

    name: str | None = Field(default=None, max_length=100)
    description: str | None = None
    category: str | None = Field(default=None, max_length=50)
    base_price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    image: str | None = None
    options: list[ProductOption] | None = None
    is_active: bool | None = None

    @field_validator("name", "category")
    @classmethod
    def not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("options")
    @classmethod
    def unique_option_names(cls, v):
        return _check_unique_option_names(v)


class ProductRead(CamelModel):
    """
    Product representation for clients.
    """

    id: uuid.UUID
    name: str
    description: str
    category: str
    base_price: Decimal
    image: str | None = None
    options: list[ProductOption] | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
