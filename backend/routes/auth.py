# backend/routes/auth.py
import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import Settings
from database import get_db
from models.users import User
from repository.user import UserRepository
from schemas.user import AuthStatus, UserResponse
from utils.cache import REDIRECT_TO_PREFIX, VERIFIER_PREFIX, StateCache
from utils.google_oauth import GoogleOAuthClient, generate_pkce_pair, generate_state
from utils.tokenJWT import (
    REFRESH_COOKIE, SESSION_COOKIE, create_session_token, get_current_user, get_settings,
)

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger(__name__)

OAUTH_ERRORS = (httpx.HTTPError, ValidationError)


def get_state_cache(request: Request) -> StateCache:
    return request.app.state.state_cache


def get_oauth_client(request: Request) -> GoogleOAuthClient:
    return request.app.state.oauth_client


# Attach the session cookie, plus the Google refresh token when one was issued
def _set_auth_cookies(response: Response, settings: Settings, session_token: str,
                      refresh_token: Optional[str], max_age: int) -> None:
    options = {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "strict" if settings.is_production else "lax",
        "path": "/",
    }
    response.set_cookie(SESSION_COOKIE, session_token, max_age=max_age, **options)
    if refresh_token:
        response.set_cookie(REFRESH_COOKIE, refresh_token, max_age=settings.REFRESH_COOKIE_MAX_AGE, **options)


def _clear_auth_cookies(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE, path="/")
    response.delete_cookie(REFRESH_COOKIE, path="/")


def _post_login_url(settings: Settings, user: User, redirect_to: Optional[str]) -> str:
    if redirect_to == "admin" and user.is_admin:
        return settings.CMS_URL
    if redirect_to and redirect_to.startswith("/"):
        return f"{settings.FRONTEND_URL}{redirect_to}"
    return settings.FRONTEND_URL


# =========================
# LOGIN
# =========================
@router.get("/login")
async def login(
    redirectTo: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    cache: StateCache = Depends(get_state_cache),
    oauth_client: GoogleOAuthClient = Depends(get_oauth_client),
):
    state = generate_state()
    code_verifier, code_challenge = generate_pkce_pair()

    await cache.set(f"{VERIFIER_PREFIX}{state}", code_verifier, settings.OAUTH_STATE_TTL)
    if redirectTo:
        await cache.set(f"{REDIRECT_TO_PREFIX}{state}", redirectTo, settings.OAUTH_STATE_TTL)

    logger.info("Saved code verifier for state %s", state)
    return RedirectResponse(oauth_client.authorization_url(state, code_challenge), status_code=status.HTTP_302_FOUND)


# =========================
# CALLBACK
# =========================
@router.get("/callback")
async def callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    cache: StateCache = Depends(get_state_cache),
    oauth_client: GoogleOAuthClient = Depends(get_oauth_client),
):
    if not state:
        raise HTTPException(status_code=400, detail="Invalid request: missing state parameter")
    if not code:
        raise HTTPException(status_code=400, detail="Invalid request: missing code parameter")

    code_verifier = await cache.get(f"{VERIFIER_PREFIX}{state}")
    if code_verifier is None:
        logger.warning("Missing code verifier for state %s", state)
        raise HTTPException(status_code=400, detail="Invalid request: missing code verifier")

    try:
        tokens = await oauth_client.exchange_code(code, code_verifier)
    except OAUTH_ERRORS:
        logger.exception("Failed to exchange code for tokens")
        raise HTTPException(status_code=401, detail="Authentication failed: could not exchange code for tokens")

    try:
        info = await oauth_client.get_user_info(tokens.access_token)
    except OAUTH_ERRORS:
        logger.exception("Failed to get user info")
        raise HTTPException(status_code=401, detail="Authentication failed: could not retrieve user information")

    try:
        user = UserRepository(db).register_login(
            email=info.email,
            name=info.name,
            picture=info.picture,
            google_id=info.sub,
            ip=request.client.host if request.client else "",
            user_agent=request.headers.get("user-agent", ""),
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to register login for %s", info.email)
        raise HTTPException(status_code=500, detail="Authentication failed: internal server error")

    redirect_to = await cache.get(f"{REDIRECT_TO_PREFIX}{state}")
    await cache.delete(f"{VERIFIER_PREFIX}{state}")
    await cache.delete(f"{REDIRECT_TO_PREFIX}{state}")

    target = _post_login_url(settings, user, redirect_to)
    logger.info("User %s signed in (admin=%s), redirecting to %s", user.email, user.is_admin, target)

    response = RedirectResponse(target, status_code=status.HTTP_302_FOUND)
    _set_auth_cookies(response, settings, create_session_token(settings, user.email),
                      tokens.refresh_token, tokens.expires_in)
    return response


# =========================
# REFRESH
# =========================
@router.post("/refresh-token", response_model=AuthStatus)
async def refresh_token(
    request: Request,
    settings: Settings = Depends(get_settings),
    oauth_client: GoogleOAuthClient = Depends(get_oauth_client),
):
    refresh = request.cookies.get(REFRESH_COOKIE)
    if not refresh:
        raise HTTPException(status_code=401, detail="Refresh token required")

    try:
        tokens = await oauth_client.refresh(refresh)
        info = await oauth_client.get_user_info(tokens.access_token)
    except OAUTH_ERRORS as e:
        logger.error(f"Error refreshing token: {e}")
        detail = "Authentication failed" if settings.is_production else str(e)
        response = JSONResponse(status_code=401, content={"detail": detail})
        _clear_auth_cookies(response)
        return response

    response = JSONResponse(content=AuthStatus(status="success").model_dump())
    _set_auth_cookies(response, settings, create_session_token(settings, info.email),
                      tokens.refresh_token, settings.REFRESH_COOKIE_MAX_AGE)
    return response


# =========================
# PROFILE
# =========================
@router.get("/profile", response_model=UserResponse)
def profile(current_user: User = Depends(get_current_user)):
    return current_user


# =========================
# LOGOUT
# =========================
@router.post("/logout")
def logout(settings: Settings = Depends(get_settings)):
    response = RedirectResponse(settings.FRONTEND_URL, status_code=status.HTTP_303_SEE_OTHER)
    _clear_auth_cookies(response)
    return response
