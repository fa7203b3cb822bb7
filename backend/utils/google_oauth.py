# backend/utils/google_oauth.py
import base64
import hashlib
import logging
import secrets
from typing import Optional, Tuple
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USER_INFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"
SCOPES = ("openid", "email", "profile")


class OAuthTokens(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: int = 3600
    refresh_token: Optional[str] = None
    id_token: Optional[str] = None


class GoogleUserInfo(BaseModel):
    sub: str
    email: str
    name: str = ""
    picture: str = ""


def generate_state() -> str:
    return secrets.token_urlsafe(32)


def generate_pkce_pair() -> Tuple[str, str]:
    """Return (code_verifier, S256 code_challenge)."""
    code_verifier = secrets.token_urlsafe(48)
    digest = hashlib.sha256(code_verifier.encode("utf-8")).digest()
    code_challenge = base64.urlsafe_b64encode(digest).decode("utf-8").rstrip("=")
    return code_verifier, code_challenge


class GoogleOAuthClient:
    def __init__(self, client_id: str, client_secret: str, redirect_uri: str, timeout: float = 10.0):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout

    def authorization_url(self, state: str, code_challenge: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(SCOPES),
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
            # Ask for a refresh token on every consent
            "access_type": "offline",
            "prompt": "consent",
        }
        return f"{GOOGLE_AUTHORIZE_URL}?{urlencode(params)}"

    async def _token_request(self, payload: dict) -> OAuthTokens:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(GOOGLE_TOKEN_URL, data=payload)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                logger.error(f"Google token endpoint error {e.response.status_code}: {e.response.text}")
                raise
            except httpx.RequestError as e:
                logger.error(f"Google token endpoint unreachable: {e}")
                raise
        return OAuthTokens.model_validate(response.json())

    async def exchange_code(self, code: str, code_verifier: str) -> OAuthTokens:
        return await self._token_request({
            "grant_type": "authorization_code",
            "code": code,
            "code_verifier": code_verifier,
            "redirect_uri": self.redirect_uri,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        })

    async def refresh(self, refresh_token: str) -> OAuthTokens:
        return await self._token_request({
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        })

    async def get_user_info(self, access_token: str) -> GoogleUserInfo:
        headers = {"Authorization": f"Bearer {access_token}"}
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(GOOGLE_USER_INFO_URL, headers=headers)
                response.raise_for_status()
            except (httpx.RequestError, httpx.HTTPStatusError) as e:
                logger.error(f"Failed to get user info from Google: {e}")
                raise
        # Missing sub/email fails validation here
        return GoogleUserInfo.model_validate(response.json())
