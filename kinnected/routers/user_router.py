import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from kinnected.auth import clear_session_cookie, get_current_user
from kinnected.core.profile_visibility import can_view_profile
from kinnected.core.rate_limit import rate_limit
from kinnected.database import commit_or_conflict, get_db
from kinnected.errors import NotFoundError, ValidationError
from kinnected.models.relation import Relation
from kinnected.models.user import User
from kinnected.schemas.user_schema import (
    PREFERENCE_GROUPS,
    ProfileUpdate,
    user_out,
    user_preview,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    dependencies=[Depends(rate_limit("api"))],
)

SEARCH_LIMIT = 10


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# ---------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------
@router.get("/profile")
@router.get("/profile/{username}")
def get_user_profile(
    username: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if username is None or username.lower() == current_user.username.lower():
        return {"success": True, "user": user_out(current_user)}

    user = (
        db.query(User)
        .filter(func.lower(User.username) == username.lower())
        .first()
    )

    # Hidden profiles look exactly like missing ones
    if not user or not can_view_profile(db, current_user.id, user):
        raise NotFoundError("User not found")

    return {"success": True, "user": user_out(user)}


@router.put("/profile")
def update_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    updates = payload.model_dump(exclude_unset=True)

    if "email" in updates:
        if updates["email"] is None:
            raise ValidationError("Email cannot be empty", field="email")
        existing = (
            db.query(User)
            .filter(User.email == updates["email"], User.id != current_user.id)
            .first()
        )
        if existing:
            raise ValidationError("Email already in use", field="email")

    if "full_name" in updates and updates["full_name"] is None:
        raise ValidationError("Full name cannot be empty", field="fullName")

    for field, value in updates.items():
        if field in PREFERENCE_GROUPS:
            if value is None:
                continue
            # Whole group is replaced; missing keys fall back to defaults
            value = getattr(payload, field).model_dump(by_alias=True)
        setattr(current_user, field, value)

    commit_or_conflict(db, "Email already in use")
    db.refresh(current_user)

    return {"success": True, "user": user_out(current_user)}


# ---------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------
@router.get("/search")
def search_users(
    query: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not query or not query.strip():
        raise ValidationError("Search query is required")

    pattern = f"%{_escape_like(query.strip())}%"
    hidden = User.privacy_settings["hideFromGlobalSearch"].as_boolean()
    users = (
        db.query(User)
        .filter(
            or_(
                User.username.ilike(pattern, escape="\\"),
                User.full_name.ilike(pattern, escape="\\"),
                User.email.ilike(pattern, escape="\\"),
            ),
            or_(User.id == current_user.id, hidden.isnot(True)),
        )
        .order_by(User.username)
        .limit(SEARCH_LIMIT)
        .all()
    )

    return {"success": True, "users": [user_preview(user) for user in users]}


# ---------------------------------------------------------------------
# Delete account
# ---------------------------------------------------------------------
@router.delete("/account")
def delete_account(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user_id = current_user.id

    db.query(Relation).filter(
        (Relation.from_user_id == user_id) | (Relation.to_user_id == user_id)
    ).delete(synchronize_session=False)
    db.delete(current_user)
    db.commit()
    logger.info("Deleted account %s", user_id)

    clear_session_cookie(response, request.app.state.settings)

    return {"success": True, "message": "Account deleted successfully"}
