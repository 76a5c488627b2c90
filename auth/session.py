from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt
from jose.exceptions import JWTError

from core.settings import get_settings

log = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)

SESSION_ALGORITHM = "HS256"


class SessionConfigError(RuntimeError):
    pass


def create_session_token(user: Dict[str, Any], now: Optional[int] = None) -> str:
    """
    Issue an HS256 session token for a user already verified with the OAuth
    provider.

    user keys: id, provider, and optionally name, email, login.
    """
    s = get_settings()
    if not s.session.jwt_secret:
        raise SessionConfigError("JWT_SECRET is not configured")

    issued_at = int(time.time()) if now is None else int(now)
    claims = {
        "sub": str(user.get("id")),
        "name": user.get("name"),
        "email": user.get("email"),
        "provider": user.get("provider"),
        "login": user.get("login"),
        "iat": issued_at,
        "exp": issued_at + s.session.duration_seconds,
    }
    return jwt.encode(claims, s.session.jwt_secret, algorithm=SESSION_ALGORITHM)


def validate_session(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Return the session claims, or None if the token is missing, invalid or
    expired. Also None when JWT_SECRET is unset (fail closed).
    """
    secret = get_settings().session.jwt_secret
    if not secret or not token:
        return None

    try:
        return jwt.decode(token, secret, algorithms=[SESSION_ALGORITHM])
    except JWTError as e:
        log.info("Rejected session token: %s", e)
        return None


async def get_current_session(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> Dict[str, Any]:
    token = creds.credentials if creds else None
    claims = validate_session(token)
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return claims
