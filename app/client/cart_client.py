# app/client/cart_client.py
"""
Storefront-side cart state, synchronized against the cart API.

The client never computes cart values itself: items, item count and
subtotal always come from the last snapshot the server returned. Every
successful mutation is followed by a full refetch; failures leave the
last good snapshot in place and raise a toast-style notice instead.

Usage:

    http = httpx.Client(base_url="https://shop.example.com")
    cart = CartClient(http, on_notice=show_toast)
    cart.refetch()
    cart.add_item(product_id, "Business cards", quantity=2, unit_price="50.00")
"""
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Literal

import httpx

from app.schemas.cart import CartLineRead, CartSnapshot


@dataclass
class Notice:
    """A toast shown to the shopper."""

    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"


class CartBusyError(RuntimeError):
    """A cart mutation was attempted while another one is in flight."""


class CartRequestError(Exception):
    """The cart API answered with an error status."""

    def __init__(self, status_code: int, kind: str | None, detail: str | None):
        self.status_code = status_code
        self.kind = kind
        self.detail = detail
        super().__init__(detail or f"Cart request failed ({status_code})")


def _empty_snapshot() -> CartSnapshot:
    return CartSnapshot(items=[], subtotal=Decimal("0.00"), item_count=0)


class CartClient:
    """
    Observable state: `items`, `item_count`, `subtotal`, `is_loading`, `is_open`.

    Only one mutation may be in flight at a time. Controls should be
    disabled while `can_mutate` is False; a mutation started anyway raises
    CartBusyError without sending anything. Nothing is queued.
    """

    def __init__(
        self,
        http: httpx.Client,
        *,
        base_path: str = "/api/cart",
        on_notice: Callable[[Notice], None] | None = None,
    ):
        self.http = http
        self.base_path = base_path.rstrip("/")
        self.on_notice = on_notice
        self.notices: list[Notice] = []
        self.is_open = False
        self.is_loading = False
        self._snapshot = _empty_snapshot()
        self._lock = threading.Lock()

    # ---- observable state ----

    @property
    def items(self) -> list[CartLineRead]:
        return list(self._snapshot.items)

    @property
    def item_count(self) -> int:
        return self._snapshot.item_count

    @property
    def subtotal(self) -> Decimal:
        return self._snapshot.subtotal

    @property
    def can_mutate(self) -> bool:
        return not self.is_loading

    # ---- drawer ----

    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        self.is_open = False

    def toggle(self) -> None:
        self.is_open = not self.is_open

    # ---- plumbing ----

    def _notify(self, notice: Notice) -> None:
        self.notices.append(notice)
        if self.on_notice is not None:
            self.on_notice(notice)

    def _fail(self, error: Exception, fallback: str) -> None:
        detail = error.detail if isinstance(error, CartRequestError) else None
        self._notify(Notice("Error", detail or fallback, "destructive"))

    @contextmanager
    def _in_flight(self):
        if not self._lock.acquire(blocking=False):
            raise CartBusyError("A cart update is already in progress")
        self.is_loading = True
        try:
            yield
        finally:
            self.is_loading = False
            self._lock.release()

    def _request(self, method: str, path: str = "", json: Any = None) -> CartSnapshot:
        response = self.http.request(method, f"{self.base_path}{path}", json=json)
        if response.is_error:
            kind = detail = None
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                kind, detail = body.get("error"), body.get("detail")
            if not isinstance(detail, str):
                detail = None
            raise CartRequestError(response.status_code, kind, detail)
        return CartSnapshot.model_validate(response.json())

    def _mutate(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        failure: str,
        success: Notice | None = None,
    ) -> bool:
        with self._in_flight():
            try:
                returned = self._request(method, path, json)
            except (CartRequestError, httpx.HTTPError) as e:
                self._fail(e, failure)
                return False
            try:
                self._snapshot = self._request("GET")
            except (CartRequestError, httpx.HTTPError):
                # The mutation landed; its own response is a full snapshot too.
                self._snapshot = returned
        if success is not None:
            self._notify(success)
        return True

    # ---- operations ----

    def refetch(self) -> None:
        """Replace local state with the server's current snapshot."""
        with self._in_flight():
            try:
                self._snapshot = self._request("GET")
            except (CartRequestError, httpx.HTTPError) as e:
                self._fail(e, "Failed to load cart.")

    def add_item(
        self,
        product_id: uuid.UUID | str,
        product_name: str,
        *,
        quantity: int,
        unit_price: Decimal | str,
        product_image: str | None = None,
        options: dict[str, str | int | float] | None = None,
    ) -> None:
        """Add a product; on success the drawer opens."""
        payload = {
            "productId": str(product_id),
            "productName": product_name,
            "productImage": product_image,
            "quantity": quantity,
            "options": options or {},
            "unitPrice": str(unit_price),
        }
        added = self._mutate(
            "POST",
            "",
            json=payload,
            failure="Failed to add item to cart.",
            success=Notice("Added to cart", "Item has been added to your cart."),
        )
        if added:
            self.open()

    def update_quantity(self, line_id: uuid.UUID | str, quantity: int) -> None:
        """
        Set a line's quantity. Quantities below 1 are refused here and
        never sent; removing a line is `remove_item`.
        """
        if quantity < 1:
            self._notify(Notice("Error", "Quantity must be at least 1.", "destructive"))
            return
        self._mutate(
            "PATCH",
            f"/{line_id}",
            json={"quantity": quantity},
            failure="Failed to update cart.",
        )

    def increment(self, line_id: uuid.UUID | str) -> None:
        line = self._find(line_id)
        if line is not None:
            self.update_quantity(line.id, line.quantity + 1)

    def decrement(self, line_id: uuid.UUID | str) -> None:
        """Step a line down by one; blocked at 1 rather than removing it."""
        line = self._find(line_id)
        if line is not None and line.quantity > 1:
            self.update_quantity(line.id, line.quantity - 1)

    def remove_item(self, line_id: uuid.UUID | str) -> None:
        self._mutate(
            "DELETE",
            f"/{line_id}",
            failure="Failed to remove item.",
            success=Notice("Removed", "Item has been removed from your cart."),
        )

    def clear_cart(self) -> None:
        self._mutate(
            "DELETE",
            "",
            failure="Failed to clear cart.",
            success=Notice("Cart cleared", "All items have been removed from your cart."),
        )

    # ---- login transition ----

    def sign_in(self, access_token: str) -> None:
        """
        Attach the shopper's bearer token and fold the guest cart into
        their account cart. Call once per sign-in.
        """
        self.http.headers["Authorization"] = f"Bearer {access_token}"
        self._mutate("POST", "/merge", failure="Failed to restore your cart.")

    def sign_out(self) -> None:
        """Drop the bearer token; the next snapshot is a fresh guest cart."""
        self.http.headers.pop("Authorization", None)
        self.refetch()

    def _find(self, line_id: uuid.UUID | str) -> CartLineRead | None:
        wanted = str(line_id)
        return next((line for line in self._snapshot.items if str(line.id) == wanted), None)
