"""Security utilities for authentication, authorization and CSRF protection."""

import uuid
from datetime import datetime, timedelta
from typing import Any

import jwt
from passlib.context import CryptContext

from memberhub.config import settings
from memberhub.exceptions import InvalidInputException

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Name of the form field that carries the CSRF token
CSRF_FIELD_NAME = "csrf_token"


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(
    user_id: uuid.UUID,
    organization_id: uuid.UUID,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token.

    Args:
        user_id: User's UUID
        organization_id: UUID of the organization the user is logged into
        expires_delta: Custom expiration time

    Returns:
        Encoded JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)

    now = datetime.utcnow()
    payload = {
        "sub": str(user_id),
        "organization_id": str(organization_id),
        "exp": now + expires_delta,
        "iat": now,
        "jti": str(uuid.uuid4()),  # Unique token ID
        "type": "access",
    }

    return jwt.encode(
        payload,
        settings.effective_jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str) -> dict[str, Any] | None:
    """Decode and validate a JWT token.

    Returns:
        Token payload dictionary if valid, None if invalid/expired
    """
    try:
        return jwt.decode(
            token,
            settings.effective_jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.InvalidTokenError:
        return None


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Decode an access token and verify it's an access token type."""
    payload = decode_token(token)
    if payload and payload.get("type") == "access":
        return payload
    return None


def create_csrf_token(user_id: uuid.UUID, expires_delta: timedelta | None = None) -> str:
    """Create a short-lived CSRF token bound to the given user."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.csrf_token_expire_minutes)

    now = datetime.utcnow()
    payload = {
        "sub": str(user_id),
        "exp": now + expires_delta,
        "iat": now,
        "type": "csrf",
    }
    return jwt.encode(
        payload,
        settings.effective_jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def validate_csrf_token(token: str | None, user_id: uuid.UUID) -> None:
    """Check a submitted CSRF token against the current user.

    Raises:
        InvalidInputException: If the token is missing, expired, forged or
            was issued to another user
    """
    payload = decode_token(token) if token else None
    if not payload or payload.get("type") != "csrf" or payload.get("sub") != str(user_id):
        raise InvalidInputException(
            "InvalidCsrfToken",
            "errors.invalid_csrf_token",
            message="Invalid or expired CSRF token",
        )
