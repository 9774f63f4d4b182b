# app/core/auth.py
import uuid
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.config import get_settings
from app.database import get_session
from app.models.user import User
from app.repositories.user_repo import UserRepository

settings = get_settings()

# auto_error=False: a missing Authorization header means "guest", not 401.
# Guests shop on the session-cookie cart instead.
bearer_scheme = HTTPBearer(auto_error=False)

user_repo = UserRepository()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Verify a bearer JWT and return its claims.

    Checked: signature (AUTH_JWT_ALG / AUTH_JWT_SECRET), exp when present,
    and aud only if AUTH_JWT_AUDIENCE is configured.

    Raises:
        HTTPException(401): if token is invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.AUTH_JWT_SECRET,
            algorithms=[settings.AUTH_JWT_ALG],
            audience=settings.AUTH_JWT_AUDIENCE,
            options={"verify_aud": settings.AUTH_JWT_AUDIENCE is not None},
        )
    except JWTError:
        raise _unauthorized("Invalid or expired token")


def identity_from_claims(claims: dict[str, Any]) -> tuple[uuid.UUID, str]:
    """Extract (user id, email) from verified claims."""
    sub, email = claims.get("sub"), claims.get("email")
    if not sub or not email:
        raise _unauthorized("Token missing sub/email")
    try:
        return uuid.UUID(str(sub)), email
    except ValueError:
        raise _unauthorized("Invalid sub in token")


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User | None:
    """
    Resolve the signed-in shopper, or None for a guest.

    A user seen for the first time gets a profile row (role "user") so
    their cart lines have an owner to point at. If a parallel first request
    creates that row first, the insert loses and the winner's row is used.
    A token that is present but invalid is a 401, never a silent fall back
    to the guest cart.

    Raises:
        HTTPException(401): invalid token or claims.
        HTTPException(409): the email belongs to a different user id.
    """
    if credentials is None:
        return None

    user_id, email = identity_from_claims(decode_access_token(credentials.credentials))

    user = user_repo.get_by_id(session, user_id)
    if user is None:
        display_name = email.split("@", 1)[0] if "@" in email else email
        try:
            user = user_repo.create(
                session,
                User(id=user_id, email=email, name=display_name[:50], role="user"),
            )
        except IntegrityError:
            session.rollback()
            user = user_repo.get_by_id(session, user_id)
            if user is None:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Email is already linked to another account",
                )
    return user


def require_auth(user: User | None = Depends(get_current_user)) -> User:
    """401 for guests; used by the login-time cart merge."""
    if user is None:
        raise _unauthorized("Authentication required")
    return user


def require_admin(user: User = Depends(require_auth)) -> User:
    """403 unless the user may manage the catalog."""
    if user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user
