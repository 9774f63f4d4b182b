# app/routers/cart.py
import uuid

from fastapi import APIRouter, Depends, Request, Response, status
from sqlmodel import Session

from app.core.auth import require_auth
from app.core.config import get_settings
from app.database import get_session
from app.models.cart import OwnerKey
from app.models.user import User
from app.repositories.cart_repo import CartRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.cart import CartLineCreate, CartLineUpdate, CartSnapshot
from app.services.cart_service import CartService
from app.services.session_binder import (
    CartSessionBinder,
    clear_session_cookie,
    get_cart_owner,
    read_session_cookie,
)

router = APIRouter(prefix="/cart", tags=["Cart"])

settings = get_settings()

cart_repo = CartRepository()
product_repo = ProductRepository()
service = CartService(
    cart_repo,
    product_repo,
    price_tolerance=settings.CART_PRICE_TOLERANCE,
    max_quantity=settings.CART_MAX_LINE_QUANTITY,
    max_attempts=settings.CART_MAX_ATTEMPTS,
    retry_delay=settings.CART_RETRY_DELAY,
)
binder = CartSessionBinder(
    cart_repo,
    max_quantity=settings.CART_MAX_LINE_QUANTITY,
    max_attempts=settings.CART_MAX_ATTEMPTS,
    retry_delay=settings.CART_RETRY_DELAY,
)


@router.get("", response_model=CartSnapshot)
def get_cart(
    session: Session = Depends(get_session),
    owner: OwnerKey = Depends(get_cart_owner),
):
    """
    Get the current cart (user's if signed in, else the guest session's).
    """
    return service.get_cart(session, owner)


@router.post("", response_model=CartSnapshot, status_code=status.HTTP_201_CREATED)
def add_to_cart(
    payload: CartLineCreate,
    session: Session = Depends(get_session),
    owner: OwnerKey = Depends(get_cart_owner),
):
    """
    Add a product to the cart.

    Returns the updated cart snapshot.
    """
    return service.add_line(session, owner, payload)


@router.post("/merge", response_model=CartSnapshot)
def merge_guest_cart(
    request: Request,
    response: Response,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Login transition: fold the guest cart from the session cookie into the
    signed-in user's cart, then retire the guest session.

    Called once by the client right after sign-in. Repeating it is harmless;
    a retired session owns no lines.
    """
    session_id = read_session_cookie(request)
    if session_id is not None:
        binder.merge_on_login(session, session_id, current_user.id)
        clear_session_cookie(response)
    return service.get_cart(session, OwnerKey.for_user(current_user.id))


@router.patch("/{line_id}", response_model=CartSnapshot)
def update_cart_line(
    line_id: uuid.UUID,
    payload: CartLineUpdate,
    session: Session = Depends(get_session),
    owner: OwnerKey = Depends(get_cart_owner),
):
    """
    Update quantity of a cart line (must stay >= 1).

    Returns the updated cart snapshot.
    """
    return service.update_quantity(session, owner, line_id, payload.quantity)


@router.delete("/{line_id}", response_model=CartSnapshot)
def remove_cart_line(
    line_id: uuid.UUID,
    session: Session = Depends(get_session),
    owner: OwnerKey = Depends(get_cart_owner),
):
    """
    Remove a line from the cart.

    Returns the updated cart snapshot.
    """
    return service.remove_line(session, owner, line_id)


@router.delete("", response_model=CartSnapshot)
def clear_cart(
    session: Session = Depends(get_session),
    owner: OwnerKey = Depends(get_cart_owner),
):
    """
    Clear the entire cart.

    Returns an empty cart snapshot.
    """
    return service.clear_cart(session, owner)
