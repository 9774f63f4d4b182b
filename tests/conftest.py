"""Shared pytest fixtures: in-memory database, API client, auth and catalog factories."""
import os
import uuid
from decimal import Decimal

# Settings are read at import time; pin a throwaway config before importing app.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_JWT_SECRET"] = "test-secret"
os.environ["CART_RETRY_DELAY"] = "0"

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.core.config import get_settings
from app.database import get_session
from app.main import app
from app.models.product import Product
from app.models.user import User
from app.repositories.cart_repo import CartRepository
from app.repositories.product_repo import ProductRepository
from app.services.cart_service import CartService
from app.services.session_binder import CartSessionBinder

PRINT_OPTIONS = [
    {
        "name": "Size",
        "type": "select",
        "values": [{"label": "A4", "price": "0"}, {"label": "A3", "price": "12.50"}],
    },
    {
        "name": "Sides",
        "type": "select",
        "values": [{"label": "1", "price": "0"}, {"label": "2", "price": "5.00"}],
    },
    {"name": "Copies", "type": "number", "min": 1, "max": 500, "pricePerUnit": "0.10"},
]


@pytest.fixture(name="session")
def session_fixture():
    """Fresh in-memory database per test, shared by the test and the app."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


@pytest.fixture(name="make_client")
def make_client_fixture(session: Session):
    """
    Factory for API clients. Each client has its own cookie jar, so each
    one is a separate guest browser.
    """

    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    yield lambda: TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(name="test_client")
def test_client_fixture(make_client) -> TestClient:
    return make_client()


@pytest.fixture
def cart_service() -> CartService:
    return CartService(CartRepository(), ProductRepository(), retry_delay=0)


@pytest.fixture
def binder() -> CartSessionBinder:
    return CartSessionBinder(CartRepository(), retry_delay=0)


@pytest.fixture
def make_product(session: Session):
    def _make(**overrides) -> Product:
        data = dict(
            name="Business Cards",
            description="500 premium cards",
            category="printing",
            base_price=Decimal("50.00"),
            image="https://cdn.example.com/cards.png",
            options=None,
            is_active=True,
        )
        data.update(overrides)
        product = Product(**data)
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make


@pytest.fixture
def product(make_product) -> Product:
    return make_product()


@pytest.fixture
def print_product(make_product) -> Product:
    return make_product(name="Flyers", base_price=Decimal("20.00"), options=PRINT_OPTIONS)


@pytest.fixture
def make_user(session: Session):
    def _make(role: str = "user", email: str | None = None) -> User:
        user_id = uuid.uuid4()
        user = User(
            id=user_id,
            email=email or f"{user_id.hex[:8]}@example.com",
            name="shopper",
            role=role,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


def make_token(user_id: uuid.UUID, email: str = "shopper@example.com") -> str:
    return jwt.encode(
        {"sub": str(user_id), "email": email},
        get_settings().AUTH_JWT_SECRET,
        algorithm=get_settings().AUTH_JWT_ALG,
    )


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user.id, user.email)}"}


def add_payload(product: Product, quantity: int = 1, unit_price="50.00", options=None) -> dict:
    return {
        "productId": str(product.id),
        "productName": product.name,
        "productImage": product.image,
        "quantity": quantity,
        "options": options or {},
        "unitPrice": str(unit_price),
    }
