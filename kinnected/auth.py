from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends, Request, Response
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy import func
from sqlalchemy.orm import Session

from kinnected.database import get_db
from kinnected.errors import AuthenticationError
from kinnected.models.user import User


# Bearer header first, cookie as fallback
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


# ============================================================
# PASSWORD HELPERS
# ============================================================

def hash_password(password: str) -> str:
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    password_bytes = password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(password_bytes, hashed.encode())
    except ValueError:
        # Malformed stored hash
        return False


# ============================================================
# LOGIN
# ============================================================

def authenticate_user(db: Session, username: str, password: str) -> Optional[User]:
    user = (
        db.query(User)
        .filter(func.lower(User.username) == username.strip().lower())
        .first()
    )
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


# ============================================================
# TOKENS
# ============================================================

def create_access_token(user_id: str, settings) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {"sub": user_id, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str, settings) -> str:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise AuthenticationError("Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token")
    return user_id


# ============================================================
# SESSION COOKIE
# ============================================================

def set_session_cookie(response: Response, token: str, settings) -> None:
    response.set_cookie(
        key=settings.COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.ENV == "production",
        samesite="strict",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


def clear_session_cookie(response: Response, settings) -> None:
    response.delete_cookie(
        key=settings.COOKIE_NAME,
        httponly=True,
        secure=settings.ENV == "production",
        samesite="strict",
    )


# ============================================================
# GET CURRENT USER
# ============================================================

def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    settings = request.app.state.settings

    if not token:
        token = request.cookies.get(settings.COOKIE_NAME)
    if not token:
        raise AuthenticationError("No token provided")

    user_id = decode_access_token(token, settings)

    user = db.query(User).filter(User.id == user_id).first()
    # Account deleted after the token was issued
    if not user:
        raise AuthenticationError("User not found")

    return user
