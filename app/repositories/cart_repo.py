# app/repositories/cart_repo.py
import uuid

from sqlmodel import Session, select

from app.models.cart import CartLine, OwnerKey


class CartRepository:
    """
    Data access layer for cart_lines.

    NOTE:
      - No commits here; every cart mutation is a read-modify-write
        transaction and the service decides when to commit or roll back.
      - `for_update=True` takes row locks where the dialect supports them
        (Postgres); SQLite ignores it and the unique signature constraint
        still refuses duplicate lines.
    """

    def list_for_owner(
        self,
        session: Session,
        owner: OwnerKey,
        for_update: bool = False,
    ) -> list[CartLine]:
        stmt = (
            select(CartLine)
            .where(CartLine.owner_key == owner.key)
            .order_by(CartLine.created_at, CartLine.id)
        )
        if for_update:
            stmt = stmt.with_for_update()
        return list(session.exec(stmt).all())

    def get_owned_line(
        self,
        session: Session,
        owner: OwnerKey,
        line_id: uuid.UUID,
        for_update: bool = False,
    ) -> CartLine | None:
        stmt = select(CartLine).where(
            CartLine.id == line_id, CartLine.owner_key == owner.key
        )
        if for_update:
            stmt = stmt.with_for_update()
        return session.exec(stmt).first()

    def get_by_signature(
        self,
        session: Session,
        owner: OwnerKey,
        product_id: uuid.UUID,
        signature: str,
        for_update: bool = True,
    ) -> CartLine | None:
        stmt = select(CartLine).where(
            CartLine.owner_key == owner.key,
            CartLine.product_id == product_id,
            CartLine.options_signature == signature,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return session.exec(stmt).first()

    def add(self, session: Session, line: CartLine) -> CartLine:
        """
        Stage a new or changed line and flush it, so constraint violations
        surface here rather than at commit time.
        """
        session.add(line)
        session.flush()
        return line

    def delete(self, session: Session, line: CartLine) -> None:
        session.delete(line)
        session.flush()

    def clear_owner(self, session: Session, owner: OwnerKey) -> int:
        rows = self.list_for_owner(session, owner, for_update=True)
        for row in rows:
            session.delete(row)
        session.flush()
        return len(rows)
