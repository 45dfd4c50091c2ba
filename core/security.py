"""
core/security.py — Caller Identity Tokens
===========================================
The HTTP layer learns who is calling from a signed bearer token:

    Authorization: Bearer <jwt>      claims: sub = ledger account, role = user | admin

Tokens are issued by the external auth service. create_access_token()
exists for operators and tests.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Header
from jose import JWTError, jwt

from config import settings
from core.errors import Unauthenticated
from core.roles import Actor, Role, resolve_role

logger = logging.getLogger("landledger.security")


def create_access_token(account_id: str, role: Role = Role.USER, extra_data: dict = None) -> str:
    """Create a signed JWT naming the ledger account and its role."""
    payload = {
        "sub": account_id,
        "role": Role(role).value,
        "exp": datetime.utcnow() + timedelta(minutes=settings.JWT_EXPIRY_MINUTES),
        "iat": datetime.utcnow(),
    }
    if extra_data:
        payload.update(extra_data)
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> Actor:
    """Decode a JWT into an Actor. Raises Unauthenticated if invalid or expired."""
    try:
        claims = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        raise Unauthenticated(f"Invalid token: {e}")

    account_id = claims.get("sub")
    if not account_id:
        raise Unauthenticated("Token has no subject account.")
    return Actor(account_id=account_id, role=resolve_role(account_id, claims.get("role", "user")))


async def get_current_actor(authorization: Optional[str] = Header(default=None)) -> Actor:
    """
    FastAPI dependency — resolves the calling Actor.

        async def my_endpoint(actor: Actor = Depends(get_current_actor)):
            ...
    """
    if not authorization:
        raise Unauthenticated("Missing Authorization header.")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise Unauthenticated("Authorization header must be 'Bearer <token>'.")
    return verify_token(token.strip())
