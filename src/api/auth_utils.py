import os
from datetime import UTC, datetime, timedelta
from typing import Any, Literal, cast

from fastapi import Response
from jose import jwt
from passlib.context import CryptContext

from src.rules.models import SessionCookieRules

SECRET_KEY = os.environ.get("JWT_SECRET", "dev-secret-unsafe")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24  # 24 hours
COOKIE_NAME = "access_token"
CUSTOMER_COOKIE_NAME = "customer_token"

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    result: bool = pwd_context.verify(plain_password, hashed_password)
    return result


def get_password_hash(password: str) -> str:
    result: str = pwd_context.hash(password)
    return result


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
    now_utc: datetime | None = None,
    kind: str = "admin",
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Claims to encode in the token
        expires_delta: Optional custom expiration delta
        now_utc: Current UTC time (for testing/determinism). Defaults to datetime.now(UTC).
        kind: "admin" for staff users, "customer" for storefront customers
    """
    to_encode = data.copy()
    current_time = now_utc if now_utc is not None else datetime.now(UTC)

    if expires_delta:
        expire = current_time + expires_delta
    else:
        expire = current_time + timedelta(minutes=15)

    to_encode.update({"exp": expire, "kind": kind})
    encoded_jwt: str = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def decode_access_token(token: str, kind: str | None = None) -> dict[str, Any] | None:
    """Decoded claims, or None if the token is invalid, expired or of another kind."""
    try:
        payload = cast(dict[str, Any], jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM]))
    except jwt.JWTError:
        return None
    if kind is not None and payload.get("kind", "admin") != kind:
        return None
    return payload


def token_from_cookie(value: str | None) -> str | None:
    """Strip the ``Bearer `` prefix the login routes store in cookies."""
    if value and value.startswith("Bearer "):
        return value.split(" ", 1)[1]
    return None


def set_session_cookie(
    response: Response, key: str, token: str, cookie: SessionCookieRules, max_age: int
) -> None:
    """Store ``Bearer <token>`` in an auth cookie using the configured flags."""
    response.set_cookie(
        key=key,
        value=f"Bearer {token}",
        httponly=cookie.http_only,
        max_age=max_age,
        expires=max_age,
        samesite=cast(Literal["lax", "strict", "none"], cookie.same_site.lower()),
        secure=cookie.secure,
    )
