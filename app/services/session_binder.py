# app/services/session_binder.py
"""
Cart ownership per request, and guest-to-user cart merge on login.

Guests are identified by an opaque session token in an httpOnly cookie.
The token is issued on the first cart request without one and reused
until it expires; signed-in requests are keyed by the user id instead.
"""
import logging
import re
import secrets
import uuid

from fastapi import Depends, Request, Response
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import Session

from app.core.auth import get_current_user
from app.core.config import get_settings
from app.core.errors import MergeConflictError
from app.core.retry import retry_transaction
from app.models.cart import OwnerKey
from app.models.user import User
from app.repositories.cart_repo import CartRepository
from app.services.pricing import max_line_quantity

logger = logging.getLogger(__name__)

settings = get_settings()

_SESSION_ID_RE = re.compile(r"^[A-Za-z0-9_-]{16,128}$")


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


def read_session_cookie(request: Request) -> str | None:
    """
    Return the guest session id from the cookie, or None if it is missing
    or not a token this service could have issued.
    """
    raw = request.cookies.get(settings.CART_SESSION_COOKIE)
    if raw and _SESSION_ID_RE.match(raw):
        return raw
    return None


def set_session_cookie(response: Response, session_id: str) -> None:
    response.set_cookie(
        key=settings.CART_SESSION_COOKIE,
        value=session_id,
        max_age=settings.CART_SESSION_MAX_AGE_DAYS * 24 * 60 * 60,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.CART_SESSION_COOKIE_SECURE,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.CART_SESSION_COOKIE,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.CART_SESSION_COOKIE_SECURE,
    )


def get_cart_owner(
    request: Request,
    response: Response,
    current_user: User | None = Depends(get_current_user),
) -> OwnerKey:
    """
    FastAPI dependency resolving whose cart a request operates on.

    Flow:
      1. Valid bearer token => the user's cart.
      2. Guest with a valid session cookie => that session's cart.
      3. Guest without one => issue a new session id and set the cookie.
    """
    if current_user is not None:
        return OwnerKey.for_user(current_user.id)

    session_id = read_session_cookie(request)
    if session_id is None:
        session_id = new_session_id()
        set_session_cookie(response, session_id)
    return OwnerKey.for_session(session_id)


class CartSessionBinder:
    """
    Moves a guest cart into a user's cart at login.

    Merge rule, per guest line:
      - signature not in the user's cart => reassign the line to the user
      - signature already there => add the guest quantity to the user's line
        (which keeps its own unit-price snapshot) and delete the guest line;
        a sum past the per-line maximum is capped at that maximum

    The whole merge is one transaction holding row locks on both owners.
    Any integrity failure discards it and the merge is retried from scratch.
    """

    def __init__(
        self,
        cart_repo: CartRepository,
        *,
        max_quantity: int = 9999,
        max_attempts: int = 3,
        retry_delay: float = 0.05,
    ):
        self.cart_repo = cart_repo
        self.max_quantity = max_quantity
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay

    def _merge_once(self, session: Session, guest: OwnerKey, user: OwnerKey) -> tuple[int, int]:
        guest_lines = self.cart_repo.list_for_owner(session, guest, for_update=True)
        if not guest_lines:
            return 0, 0

        user_lines = {
            (line.product_id, line.options_signature): line
            for line in self.cart_repo.list_for_owner(session, user, for_update=True)
        }

        moved = combined = 0
        try:
            for line in guest_lines:
                signature = (line.product_id, line.options_signature)
                target = user_lines.get(signature)
                if target is None:
                    line.assign_owner(user)
                    self.cart_repo.add(session, line)
                    user_lines[signature] = line
                    moved += 1
                else:
                    quantity = target.quantity + line.quantity
                    ceiling = max_line_quantity(target.unit_price, self.max_quantity)
                    if quantity > ceiling:
                        logger.warning(
                            "Merged quantity %d for line %s capped at %d",
                            quantity, target.id, ceiling,
                        )
                        quantity = ceiling
                    target.set_quantity(quantity)
                    self.cart_repo.add(session, target)
                    self.cart_repo.delete(session, line)
                    combined += 1
            session.commit()
        except IntegrityError as e:
            session.rollback()
            raise MergeConflictError() from e
        return moved, combined

    def merge_on_login(
        self,
        session: Session,
        session_id: str,
        user_id: uuid.UUID,
    ) -> tuple[int, int]:
        """
        Merge the guest cart of `session_id` into the cart of `user_id`.

        Safe on an empty guest cart (no-op) and on a non-empty user cart
        (merged, never overwritten).

        Returns:
            (lines moved, lines combined)

        Raises:
            StorageError: if every attempt hit a conflict or storage failure.
        """
        guest = OwnerKey.for_session(session_id)
        user = OwnerKey.for_user(user_id)

        moved, combined = retry_transaction(
            session,
            lambda: self._merge_once(session, guest, user),
            name="merge_on_login",
            max_attempts=self.max_attempts,
            initial_delay=self.retry_delay,
            retry_on=(OperationalError, MergeConflictError),
        )
        if moved or combined:
            logger.info(
                "Merged guest cart into user %s: %d moved, %d combined",
                user_id, moved, combined,
            )
        return moved, combined
