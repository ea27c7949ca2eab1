"""Bearer token helpers for the authentication edge."""
from __future__ import annotations

from datetime import UTC, datetime, timedelta

from jose import jwt

from forum_content.core.settings import settings


def create_access_token(user_id: str, role: str = "user") -> str:
    """Create a signed JWT carrying the user id and role claims."""
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode: dict[str, object] = {"sub": user_id, "role": role, "exp": expire}
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> dict[str, object]:
    """Decode and verify a JWT issued by :func:`create_access_token`.

    Raises:
        jose.JWTError: If the token is malformed, expired, or badly signed.
    """
    payload: dict[str, object] = jwt.decode(
        token,
        settings.secret_key,
        algorithms=[settings.jwt_algorithm],
    )
    return payload
