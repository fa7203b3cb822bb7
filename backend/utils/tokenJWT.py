# utils/tokenJWT.py
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from config import Settings
from database import get_db
from models.users import User
from repository.user import UserRepository

SESSION_COOKIE = "jwt"
REFRESH_COOKIE = "refreshToken"


# Generate a signed session token for a user email
def create_session_token(settings: Settings, email: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.SESSION_TOKEN_EXPIRE_MINUTES))
    return jwt.encode({"sub": email, "exp": expire}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


# Return the email carried by a valid token, None for anything else
def verify_session_token(settings: Settings, token: str) -> Optional[str]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    email = payload.get("sub")
    return email if isinstance(email, str) and email else None


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


# Resolve the caller from the session cookie; anonymous callers get None
def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        return None
    email = verify_session_token(request.app.state.settings, token)
    if email is None:
        return None
    user = UserRepository(db).find_by_email(email)
    if user is None or user.is_deleted:
        return None
    return user


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return user
