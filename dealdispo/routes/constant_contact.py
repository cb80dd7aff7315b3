"""
Constant Contact OAuth Routes
Authorization code flow used once to obtain a refresh token for the relay
"""

import html
import logging
import secrets
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse, RedirectResponse

from ..config import CONSTANT_CONTACT_CLIENT_ID, CONSTANT_CONTACT_REDIRECT_URI
from ..services.constant_contact_service import (
    CONSTANT_CONTACT_AUTH_URL,
    CONSTANT_CONTACT_SCOPE,
    OAuthStateStore,
    TokenStore,
    UpstreamError,
    get_oauth_states,
    get_token_store,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Constant Contact"])


def authorization_url(state: str) -> str:
    params = {
        "client_id": CONSTANT_CONTACT_CLIENT_ID,
        "redirect_uri": CONSTANT_CONTACT_REDIRECT_URI,
        "response_type": "code",
        "scope": CONSTANT_CONTACT_SCOPE,
        "state": state,
    }
    return f"{CONSTANT_CONTACT_AUTH_URL}?{urlencode(params)}"


def _start_authorization(states: OAuthStateStore) -> RedirectResponse:
    if not CONSTANT_CONTACT_CLIENT_ID:
        raise HTTPException(status_code=500, detail="Constant Contact client ID is not configured")
    state = secrets.token_urlsafe(16)
    states.add(state)
    logger.info("🔗 Redirecting to Constant Contact authorization")
    return RedirectResponse(authorization_url(state))


@router.get("/auth/constantcontact")
async def auth_constant_contact(states: OAuthStateStore = Depends(get_oauth_states)):
    return _start_authorization(states)


@router.get("/setup/constantcontact")
async def setup_constant_contact(states: OAuthStateStore = Depends(get_oauth_states)):
    """Same flow, linked from the first-run setup instructions"""
    return _start_authorization(states)


@router.get("/callback", response_class=HTMLResponse)
async def oauth_callback(
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    states: OAuthStateStore = Depends(get_oauth_states),
    tokens: TokenStore = Depends(get_token_store),
):
    """Exchange the authorization code and show the refresh token to save"""
    if error:
        raise HTTPException(status_code=400, detail=f"Authorization failed: {error}")
    if not states.consume(state):
        logger.warning("⚠️ OAuth callback with unknown state")
        raise HTTPException(status_code=400, detail="Invalid or expired authorization state")
    if not code:
        raise HTTPException(status_code=400, detail="No authorization code received")

    try:
        token_data = await tokens.exchange_code(code)
    except UpstreamError as e:
        raise HTTPException(status_code=e.status_code, detail={"error": str(e), "details": e.body}) from e

    refresh_token = html.escape(token_data.get("refresh_token") or "", quote=True)
    return HTMLResponse(
        f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Constant Contact connected</title></head>
<body style="font-family: Arial, Helvetica, sans-serif; padding: 40px;">
  <h1>Authentication successful</h1>
  <p>Save this refresh token as CONSTANT_CONTACT_REFRESH_TOKEN in your environment:</p>
  <pre style="background: #f4f4f4; padding: 15px; word-break: break-all; white-space: pre-wrap;">{refresh_token}</pre>
  <p>You can close this window.</p>
</body>
</html>"""
    )
