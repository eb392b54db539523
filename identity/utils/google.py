import logging
from typing import Optional
from urllib.parse import urlencode

import httpx
from google.oauth2 import id_token
from google.auth.transport import requests

from identity.core.config import settings
from identity.utils.errors import TransientError, ValidationError

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")

def get_google_auth_url(state: Optional[str] = None) -> str:
    params = {
        "client_id": settings.GOOGLE_CLIENT_ID,
        "redirect_uri": settings.GOOGLE_REDIRECT_URI,
        "response_type": "code",
        "scope": "openid email profile",
        "access_type": "offline",
    }
    if state:
        params["state"] = state
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

async def exchange_code_for_token(code: str) -> dict:
    data = {
        "client_id": settings.GOOGLE_CLIENT_ID,
        "client_secret": settings.GOOGLE_CLIENT_SECRET,
        "code": code,
        "grant_type": "authorization_code",
        "redirect_uri": settings.GOOGLE_REDIRECT_URI,
    }
    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(GOOGLE_TOKEN_URL, data=data)
    except httpx.HTTPError as e:
        logger.error(f"Google token exchange failed: {e}")
        raise TransientError("identity provider unavailable")
    return response.json()

async def get_google_user_info(id_token_jwt: str) -> dict:
    """Verify the ID token and return its claims (email, name, picture, sub)."""
    try:
        user_info = id_token.verify_oauth2_token(
            id_token_jwt,
            requests.Request(),
            settings.GOOGLE_CLIENT_ID
        )
    except ValueError as e:
        logger.error(f"Error verifying Google token: {e}")
        raise ValidationError("invalid identity token")

    if user_info.get("iss") not in GOOGLE_ISSUERS:
        raise ValidationError("invalid identity token issuer")

    return user_info
