# app/models/user.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    Persistent user profile mirrored from the identity provider.

    Identity:
      - id: MUST match the JWT "sub" claim (UUID)

    Role:
      - "user" | "admin"
      - guests are represented by the absence of a token; their carts are
        keyed by the anonymous session cookie instead of a row here.

    Password hashes live with the identity provider, not in this table.
    """

    __tablename__ = "users"

    id: uuid.UUID = Field(
        primary_key=True,
        index=True,
        description="Matches the identity provider's user id (JWT sub)",
    )

    email: str = Field(
        unique=True,
        index=True,
        description="Email claim from the access token",
    )

    name: str = Field(
        max_length=50,
        description="Display name; first part of email by default",
    )

    # Application role
    role: str = Field(
        default="user",
        index=True,
        description="Application role: user | admin",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
