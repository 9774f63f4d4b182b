# app/services/product_service.py
import uuid
from datetime import datetime, timezone

from sqlmodel import Session

from app.core.errors import ProductNotFoundError
from app.models.product import Product
from app.repositories.product_repo import ProductRepository
from app.schemas.product import ProductCreate, ProductOption, ProductUpdate


def _dump_options(options: list[ProductOption] | None) -> list[dict] | None:
    if options is None:
        return None
    return [opt.model_dump(mode="json", by_alias=True, exclude_none=True) for opt in options]


class ProductService:
    """
    Business logic for the product catalog.

    Responsibilities:
      - storefront reads (active products only)
      - admin CRUD (enforced at router via require_admin)
      - persisting option definitions in the shape the pricing resolver reads
    """

    def __init__(self, repo: ProductRepository):
        self.repo = repo

    # ----- Storefront -----

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        category: str | None = None,
    ) -> list[Product]:
        return self.repo.list(session, skip=skip, limit=limit, category=category)

    def get_active_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.repo.get_active(session, product_id)
        if product is None:
            raise ProductNotFoundError()
        return product

    # ----- Admin -----

    def get_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if product is None:
            raise ProductNotFoundError()
        return product

    def create_product(self, session: Session, payload: ProductCreate) -> Product:
        product = Product(
            name=payload.name,
            description=payload.description,
            category=payload.category,
            base_price=payload.base_price,
            image=payload.image,
            options=_dump_options(payload.options),
            is_active=payload.is_active,
        )
        return self.repo.create(session, product)

    def update_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        payload: ProductUpdate,
    ) -> Product:
        """
        Partial update of a product.

        Existing cart lines keep their name/image/price snapshots.
        """
        product = self.get_product(session, product_id)
        changes = payload.model_dump(exclude_unset=True)

        for field in ("name", "description", "category", "base_price", "image", "is_active"):
            if field in changes and changes[field] is not None:
                setattr(product, field, changes[field])

        if "options" in changes:
            product.options = _dump_options(payload.options)

        product.updated_at = datetime.now(timezone.utc)
        return self.repo.update(session, product)

    def delete_product(self, session: Session, product_id: uuid.UUID) -> None:
        product = self.get_product(session, product_id)
        self.repo.delete(session, product)
