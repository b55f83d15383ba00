"""
Bearer token handling for API principals.

Login happens elsewhere; this service only issues tokens for operators (see
``manage.py issue-token``) and decodes the ``Authorization: Bearer`` header
into ``{user_id, role}``.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

VALID_ROLES = ("admin", "staff", "customer")

JWT_ALGORITHM = "HS256"
DEFAULT_SECRET = "dev-jwt-secret-change-me"
WEAK_SECRETS = (DEFAULT_SECRET, "dev-secret-change-me", "secret123")
MIN_SECRET_LENGTH = 32


def get_jwt_secret_key() -> str:
    """Return the signing secret.

    Raises:
        ValueError: In production (FLASK_ENV=production) when the secret is a
            known default or shorter than 32 characters
    """
    secret = os.getenv("JWT_SECRET_KEY", DEFAULT_SECRET)
    if os.getenv("FLASK_ENV") == "production" and (
        secret in WEAK_SECRETS or len(secret) < MIN_SECRET_LENGTH
    ):
        raise ValueError(
            f"Production deployment requires strong JWT_SECRET_KEY (min {MIN_SECRET_LENGTH} chars). "
            "Set JWT_SECRET_KEY environment variable."
        )
    return secret


def get_token_lifetime() -> timedelta:
    """Default token lifetime, ``JWT_EXPIRATION_HOURS`` (24 when unset)."""
    try:
        hours = int(os.getenv("JWT_EXPIRATION_HOURS", "24"))
    except ValueError:
        hours = 24
    return timedelta(hours=hours)


def create_access_token(
    claims: Dict[str, Any], expires_delta: Optional[timedelta] = None
) -> str:
    """Sign ``claims`` with an ``exp`` of now + ``expires_delta``."""
    payload = dict(claims)
    payload["exp"] = datetime.now(timezone.utc) + (expires_delta or get_token_lifetime())
    return jwt.encode(payload, get_jwt_secret_key(), algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Verified claims, or None for a bad signature, expiry or malformed token."""
    try:
        return jwt.decode(token, get_jwt_secret_key(), algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None


def create_principal_token(
    user_id: int, role: str, expires_delta: Optional[timedelta] = None
) -> str:
    """Issue a bearer token carrying the principal's id and role."""
    if role not in VALID_ROLES:
        raise ValueError(f"Unknown role '{role}'")
    return create_access_token({"sub": str(user_id), "role": role}, expires_delta)


def get_principal_from_token(token: str) -> Optional[Dict[str, Any]]:
    """Extract ``{user_id, role}`` from a bearer token, or None if unusable."""
    claims = decode_access_token(token)
    if claims is None or claims.get("role") not in VALID_ROLES:
        return None
    try:
        return {"user_id": int(claims.get("sub")), "role": claims["role"]}
    except (TypeError, ValueError):
        return None
