# app/services/pricing.py
"""
Price resolution for products with declared options.

Pure functions only: no session, no I/O. The cart service calls these to
recompute a line's unit price on the server instead of trusting the price
the client submitted.
"""
import json
import re
from decimal import Decimal
from typing import Mapping

from app.core.errors import InvalidOptionError, InvalidQuantityError, PriceMismatchError
from app.models.product import Product, to_cents
from app.schemas.product import ProductOption

_WHOLE_NUMBER_RE = re.compile(r"[+-]?\d+", re.ASCII)

# Largest total a cart line can store: Numeric(10, 2).
MAX_LINE_TOTAL = Decimal("99999999.99")


def canonical_option_value(value: str | int | float) -> str:
    """
    Stringify an option value for comparison.

    "2", 2 and 2.0 all become "2" so the same selection never splits into
    two cart lines because of how the client typed it.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def options_signature(options: Mapping[str, str | int | float] | None) -> str:
    """
    Canonical, order-independent signature of an options mapping.

        {"Size": "A3", "Pages": 2}  ->  '[["Pages","2"],["Size","A3"]]'
    """
    pairs = sorted(
        (name, canonical_option_value(value)) for name, value in (options or {}).items()
    )
    return json.dumps(pairs, separators=(",", ":"), ensure_ascii=False)


def product_options(product: Product) -> list[ProductOption]:
    """Parse the product's stored option definitions."""
    return [ProductOption.model_validate(raw) for raw in (product.options or [])]


def _parse_number(option: ProductOption, value: str | int | float) -> int:
    if isinstance(value, bool):
        raise InvalidOptionError(f"Option '{option.name}' expects a whole number")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and _WHOLE_NUMBER_RE.fullmatch(value.strip()):
        return int(value.strip())
    raise InvalidOptionError(f"Option '{option.name}' expects a whole number")


def resolve_price(
    product: Product,
    selected_options: Mapping[str, str | int | float] | None,
) -> Decimal:
    """
    Compute the unit price for `product` with `selected_options`.

    price = base_price
          + delta of each chosen select value
          + price_per_unit * n for each number option

    Raises:
        InvalidOptionError: unknown option name, unlisted select value,
            or number outside [min, max].
    """
    declared = {opt.name: opt for opt in product_options(product)}
    price = Decimal(product.base_price)

    for name, value in (selected_options or {}).items():
        option = declared.get(name)
        if option is None:
            raise InvalidOptionError(f"Unknown option '{name}'")

        if option.type == "select":
            wanted = canonical_option_value(value)
            match = next((v for v in option.values or [] if v.label == wanted), None)
            if match is None:
                raise InvalidOptionError(f"'{wanted}' is not a valid choice for '{name}'")
            price += match.price
        else:
            n = _parse_number(option, value)
            if option.min is not None and n < option.min:
                raise InvalidOptionError(f"Option '{name}' must be at least {option.min}")
            if option.max is not None and n > option.max:
                raise InvalidOptionError(f"Option '{name}' must be at most {option.max}")
            price += (option.price_per_unit or Decimal("0")) * n

    return to_cents(price)


def verify_client_price(expected: Decimal, claimed: Decimal, tolerance: Decimal) -> None:
    """
    Reject a client-submitted price that drifts from the server price.

    Raises:
        PriceMismatchError: if |claimed - expected| > tolerance.
    """
    if abs(Decimal(claimed) - expected) > tolerance:
        raise PriceMismatchError(
            f"Submitted unit price {claimed} does not match current price {expected}"
        )


def normalize_options(
    product: Product,
    selected_options: Mapping[str, str | int | float] | None,
) -> dict[str, str | int | float]:
    """
    Selected options as they are stored on a cart line: number options
    parsed to int, select values kept as sent.

    Call after `resolve_price` has accepted the selection. " 5", "05" and 5
    then produce the same options signature.
    """
    declared = {opt.name: opt for opt in product_options(product)}
    normalized: dict[str, str | int | float] = {}
    for name, value in (selected_options or {}).items():
        option = declared.get(name)
        if option is not None and option.type == "number":
            normalized[name] = _parse_number(option, value)
        else:
            normalized[name] = value
    return normalized


def max_line_quantity(unit_price: Decimal, limit: int) -> int:
    """Largest quantity whose line total still fits the stored total."""
    if unit_price <= 0:
        return limit
    return min(limit, int(MAX_LINE_TOTAL // Decimal(unit_price)))


def check_line_quantity(unit_price: Decimal, quantity: int, limit: int) -> None:
    """
    Raises:
        InvalidQuantityError: quantity below 1, above `limit`, or large
            enough that unit_price * quantity no longer fits a line total.
    """
    if quantity < 1:
        raise InvalidQuantityError()
    ceiling = max_line_quantity(unit_price, limit)
    if quantity > ceiling:
        raise InvalidQuantityError(f"Quantity must be at most {ceiling}")
