# app/services/cart_service.py
import logging
import uuid
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.errors import (
    LineNotFoundError,
    ProductNotFoundError,
    StorageError,
)
from app.core.retry import retry_transaction
from app.models.cart import CartLine, OwnerKey
from app.models.product import Product, to_cents
from app.repositories.cart_repo import CartRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.cart import CartLineCreate, CartLineRead, CartSnapshot
from app.services.pricing import (
    check_line_quantity,
    normalize_options,
    options_signature,
    resolve_price,
    verify_client_price,
)

logger = logging.getLogger(__name__)


class CartService:
    """
    Business logic for cart operations (the cart store).

    Responsibilities:
      - scope every operation to one OwnerKey (user XOR guest session)
      - validate product existence / active flag and recompute the unit price
        server-side; the client's price is only checked, never stored
      - keep one line per (owner, product, options signature)
      - keep total_price == unit_price * quantity on every write, with the
        quantity bounded so the total always fits the stored column
      - return the full snapshot after every read or mutation

    Each public operation is one transaction, retried as a whole on
    transient storage errors.
    """

    def __init__(
        self,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        *,
        price_tolerance: Decimal = Decimal("0.01"),
        max_quantity: int = 9999,
        max_attempts: int = 3,
        retry_delay: float = 0.05,
    ):
        self.cart_repo = cart_repo
        self.product_repo = product_repo
        self.price_tolerance = price_tolerance
        self.max_quantity = max_quantity
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay

    # ---- internal helpers ----

    def _run(self, session: Session, name: str, work):
        return retry_transaction(
            session,
            work,
            name=name,
            max_attempts=self.max_attempts,
            initial_delay=self.retry_delay,
        )

    def _get_valid_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.product_repo.get_active(session, product_id)
        if product is None:
            raise ProductNotFoundError()
        return product

    @staticmethod
    def build_snapshot(lines: list[CartLine]) -> CartSnapshot:
        items = [CartLineRead.model_validate(line, from_attributes=True) for line in lines]
        subtotal = sum((Decimal(line.total_price) for line in lines), Decimal("0"))
        return CartSnapshot(
            items=items,
            subtotal=to_cents(subtotal),
            item_count=sum(line.quantity for line in lines),
        )

    def _snapshot(self, session: Session, owner: OwnerKey) -> CartSnapshot:
        return self.build_snapshot(self.cart_repo.list_for_owner(session, owner))

    def _set_quantity(self, session: Session, line: CartLine, quantity: int) -> None:
        check_line_quantity(line.unit_price, quantity, self.max_quantity)
        line.set_quantity(quantity)
        self.cart_repo.add(session, line)

    def _increment(self, session: Session, line: CartLine, quantity: int) -> None:
        self._set_quantity(session, line, line.quantity + quantity)

    # ---- public operations ----

    def get_cart(self, session: Session, owner: OwnerKey) -> CartSnapshot:
        """
        Return the owner's cart; an owner with no lines gets an empty cart.
        """
        return self._run(session, "get_cart", lambda: self._snapshot(session, owner))

    def add_line(
        self,
        session: Session,
        owner: OwnerKey,
        payload: CartLineCreate,
    ) -> CartSnapshot:
        """
        Add a product to the owner's cart.

        Rules:
          - quantity must be >= 1 and within the per-line maximum
          - product must exist and be active
          - unit price is resolved from the catalog; a submitted price that
            drifts beyond the tolerance is rejected
          - an existing line with the same options signature is incremented
            instead of duplicated; its unit-price snapshot is kept
        """
        check_line_quantity(Decimal("0"), payload.quantity, self.max_quantity)

        def work() -> CartSnapshot:
            product = self._get_valid_product(session, payload.product_id)
            unit_price = resolve_price(product, payload.options)
            verify_client_price(unit_price, payload.unit_price, self.price_tolerance)
            options = normalize_options(product, payload.options)
            signature = options_signature(options)

            existing = self.cart_repo.get_by_signature(
                session, owner, product.id, signature
            )
            try:
                if existing is not None:
                    self._increment(session, existing, payload.quantity)
                else:
                    line = CartLine(
                        product_id=product.id,
                        product_name=product.name,
                        product_image=product.image,
                        options=options,
                        options_signature=signature,
                        unit_price=unit_price,
                    )
                    line.assign_owner(owner)
                    self._set_quantity(session, line, payload.quantity)
                session.commit()
            except IntegrityError as e:
                # A concurrent add inserted the same signature first.
                session.rollback()
                winner = self.cart_repo.get_by_signature(
                    session, owner, product.id, signature
                )
                if winner is None:
                    raise StorageError("Could not save cart line") from e
                self._increment(session, winner, payload.quantity)
                session.commit()

            return self._snapshot(session, owner)

        return self._run(session, "add_line", work)

    def update_quantity(
        self,
        session: Session,
        owner: OwnerKey,
        line_id: uuid.UUID,
        quantity: int,
    ) -> CartSnapshot:
        """
        Set the quantity of one of the owner's lines.

        Quantity 0 is rejected; removing a line is `remove_line`.
        """
        check_line_quantity(Decimal("0"), quantity, self.max_quantity)

        def work() -> CartSnapshot:
            line = self.cart_repo.get_owned_line(session, owner, line_id, for_update=True)
            if line is None:
                raise LineNotFoundError()
            self._set_quantity(session, line, quantity)
            session.commit()
            return self._snapshot(session, owner)

        return self._run(session, "update_quantity", work)

    def remove_line(
        self,
        session: Session,
        owner: OwnerKey,
        line_id: uuid.UUID,
    ) -> CartSnapshot:
        """
        Remove one of the owner's lines. Missing or foreign lines are an error,
        not a no-op.
        """

        def work() -> CartSnapshot:
            line = self.cart_repo.get_owned_line(session, owner, line_id, for_update=True)
            if line is None:
                raise LineNotFoundError()
            self.cart_repo.delete(session, line)
            session.commit()
            return self._snapshot(session, owner)

        return self._run(session, "remove_line", work)

    def clear_cart(self, session: Session, owner: OwnerKey) -> CartSnapshot:
        """
        Delete every line of the owner's cart and return the empty snapshot.
        """

        def work() -> CartSnapshot:
            removed = self.cart_repo.clear_owner(session, owner)
            session.commit()
            logger.debug(
                "Cleared %d cart lines (%s)",
                removed,
                "guest" if owner.is_guest else owner.user_id,
            )
            return self._snapshot(session, owner)

        return self._run(session, "clear_cart", work)
