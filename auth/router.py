from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from auth.session import SessionConfigError, create_session_token
from core.deps import SessionDep, SettingsDep

log = logging.getLogger(__name__)

router = APIRouter(tags=["session"])

USER_AGENT = "presign-gateway"


class TokenExchangeRequest(BaseModel):
    provider: Optional[str] = None
    token: Optional[str] = None


def get_oauth_transport() -> Optional[httpx.AsyncBaseTransport]:
    """
    Transport for outbound identity-provider calls. None means the real
    network; tests swap in an httpx.MockTransport.
    """
    return None


# ---------------------------------------------------------------------
# GET /session
# ---------------------------------------------------------------------
@router.get("/session")
def get_session(session: SessionDep):
    exp = session.get("exp")
    return {
        "user": {
            "id": session.get("sub"),
            "name": session.get("name"),
            "email": session.get("email"),
            "provider": session.get("provider"),
            "login": session.get("login"),
        },
        "expiresAt": exp * 1000 if exp else None,
    }


# ---------------------------------------------------------------------
# POST /token-exchange
# ---------------------------------------------------------------------
async def _fetch_user(
    provider: str,
    token: str,
    gitlab_hostname: str,
    transport: Optional[httpx.AsyncBaseTransport],
) -> Dict[str, Any]:
    """
    Look the OAuth token up against the provider's user endpoint.
    Returns the normalized user, or raises HTTPException(401).
    """
    if provider == "github":
        url = "https://api.github.com/user"
        headers = {
            "Authorization": f"token {token}",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }
    else:
        url = f"https://{gitlab_hostname}/api/v4/user"
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }

    async with httpx.AsyncClient(timeout=5.0, transport=transport) as client:
        r = await client.get(url, headers=headers)

    if r.status_code != 200:
        label = "GitHub" if provider == "github" else "GitLab"
        raise HTTPException(status_code=401, detail=f"Invalid {label} token")

    data = r.json()
    if provider == "github":
        return {
            "id": str(data.get("id")),
            "name": data.get("name") or data.get("login"),
            "email": data.get("email"),
            "login": data.get("login"),
            "provider": "github",
        }
    return {
        "id": str(data.get("id")),
        "name": data.get("name") or data.get("username"),
        "email": data.get("email"),
        "login": data.get("username"),
        "provider": "gitlab",
    }


@router.post("/token-exchange")
async def token_exchange(
    body: TokenExchangeRequest,
    settings: SettingsDep,
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_oauth_transport),
):
    """
    Exchange a GitHub/GitLab OAuth token for a session token usable with the
    presign endpoints.
    """
    provider = (body.provider or "").strip().lower()
    token = (body.token or "").strip()

    if not provider or not token:
        raise HTTPException(status_code=400, detail="Missing provider or token")
    if provider not in ("github", "gitlab"):
        raise HTTPException(status_code=400, detail="Unsupported provider")

    try:
        user = await _fetch_user(provider, token, settings.gitlab_hostname, transport)
        session_token = create_session_token(user)
    except HTTPException:
        raise
    except (httpx.HTTPError, SessionConfigError, ValueError) as exc:
        log.exception("Token exchange failed provider=%s", provider)
        raise HTTPException(status_code=500, detail="Token exchange failed") from exc

    return {
        "sessionToken": session_token,
        "user": user,
        "expiresIn": settings.session.duration_seconds,
    }
