# app/core/errors.py
"""
Domain errors for the cart subsystem.

Every error carries a machine-readable ``kind`` and the HTTP status it maps
to. Routers never translate these by hand; a single exception handler in
``app.main`` renders them as::

    {"error": "<kind>", "detail": "<message>"}

Validation errors are terminal for the request. ``MergeConflictError`` and
``StorageError`` are transient and retried by ``app.core.retry`` before they
ever reach a client.
"""
from fastapi import status


class CartError(Exception):
    kind: str = "cart_error"
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Cart operation failed"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class InvalidOptionError(CartError):
    kind = "invalid_option"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid product option"


class PriceMismatchError(CartError):
    kind = "price_mismatch"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Submitted price does not match the current price"


class InvalidQuantityError(CartError):
    kind = "invalid_quantity"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Quantity must be at least 1"


class ProductNotFoundError(CartError):
    kind = "product_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Product not found"


class LineNotFoundError(CartError):
    kind = "line_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Cart item not found"


class MergeConflictError(CartError):
    kind = "merge_conflict"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Cart changed during merge"


class StorageError(CartError):
    kind = "storage_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Cart storage is temporarily unavailable"
