"""
Caller identity.

Sessions are issued by the identity provider as HS256 JWTs carrying ``sub``
(user id), ``email`` and ``role``.  This module only verifies them.
"""

from __future__ import annotations

import hmac
import time
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from marketplace.config import settings
from marketplace.domain.entities import Caller
from marketplace.domain.enums import Role
from marketplace.domain.errors import Forbidden, Unauthenticated

bearer = HTTPBearer(auto_error=False)


def create_token(user_id: int, email: str, role: Role, ttl_seconds: int = 3600) -> str:
    exp = int(time.time()) + ttl_seconds
    return jwt.encode(
        {"sub": str(user_id), "email": email, "role": role.value, "exp": exp},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str) -> Optional[Caller]:
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return Caller(
            user_id=int(claims["sub"]),
            email=(claims.get("email") or "").lower(),
            role=Role(claims["role"]),
        )
    except (JWTError, KeyError, ValueError):
        return None


async def get_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> Caller:
    if credentials is None:
        raise Unauthenticated("Not authenticated")
    caller = decode_token(credentials.credentials)
    if caller is None:
        raise Unauthenticated("Invalid or expired session")
    return caller


def require_role(*roles: Role):
    """Dependency factory: the caller must hold one of *roles*."""

    async def dependency(caller: Caller = Depends(get_caller)) -> Caller:
        if caller.role not in roles:
            raise Forbidden("Insufficient permissions")
        return caller

    return dependency


async def require_cron(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> None:
    """Scheduler calls authenticate with ``Bearer <cron secret>``."""
    secret = settings.cron_secret
    if not secret or credentials is None:
        raise Unauthenticated("Unauthorized")
    if not hmac.compare_digest(credentials.credentials, secret):
        raise Unauthenticated("Unauthorized")
