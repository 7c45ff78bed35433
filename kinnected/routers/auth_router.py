import logging

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import AliasChoices, BaseModel, Field, field_validator
from sqlalchemy import func
from sqlalchemy.orm import Session

from kinnected.auth import (
    authenticate_user,
    clear_session_cookie,
    create_access_token,
    get_current_user,
    hash_password,
    set_session_cookie,
)
from kinnected.core.rate_limit import rate_limit
from kinnected.core.validators import (
    validate_email,
    validate_full_name,
    validate_password,
    validate_username,
)
from kinnected.database import commit_or_conflict, get_db
from kinnected.errors import AuthenticationError, ValidationError
from kinnected.models.user import User
from kinnected.schemas.user_schema import user_out

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    dependencies=[Depends(rate_limit("api")), Depends(rate_limit("auth"))],
)


# ---------- Pydantic request models ----------

class RegisterRequest(BaseModel):
    username: str
    email: str
    password: str
    full_name: str = Field(validation_alias=AliasChoices("fullName", "full_name", "name"))

    @field_validator("username")
    @classmethod
    def _check_username(cls, value: str) -> str:
        return validate_username(value)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        return validate_email(value)

    @field_validator("password")
    @classmethod
    def _check_password(cls, value: str) -> str:
        return validate_password(value)

    @field_validator("full_name")
    @classmethod
    def _check_full_name(cls, value: str) -> str:
        return validate_full_name(value)


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


# ----------------- REGISTER ------------------

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    existing = (
        db.query(User)
        .filter(func.lower(User.username) == payload.username.lower())
        .first()
    )
    if existing:
        raise ValidationError("Username already exists", field="username")

    if db.query(User).filter(User.email == payload.email).first():
        raise ValidationError("Email already exists", field="email")

    user = User(
        username=payload.username,
        email=payload.email,
        full_name=payload.full_name,
        hashed_password=hash_password(payload.password),
    )
    db.add(user)
    commit_or_conflict(db, "Username or email already exists")
    db.refresh(user)
    logger.info("Registered user %s", user.id)

    settings = request.app.state.settings
    token = create_access_token(user.id, settings)
    set_session_cookie(response, token, settings)

    return {
        "success": True,
        "token": token,
        "user": user_out(user),
    }


# ------------------- LOGIN -------------------

@router.post("/login")
def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    user = authenticate_user(db, payload.username, payload.password)

    if not user:
        raise AuthenticationError("Invalid username or password")

    settings = request.app.state.settings
    token = create_access_token(user.id, settings)
    set_session_cookie(response, token, settings)

    return {
        "success": True,
        "token": token,
        "user": user_out(user),
    }


# ------------------- LOGOUT -------------------

@router.post("/logout")
def logout(request: Request, response: Response):
    clear_session_cookie(response, request.app.state.settings)
    return {"success": True, "message": "Logged out successfully"}


# -------------------- ME ---------------------

@router.get("/me")
def get_me(current_user: User = Depends(get_current_user)):
    return {"success": True, "user": user_out(current_user)}
