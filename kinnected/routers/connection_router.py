from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from kinnected.auth import get_current_user
from kinnected.core.profile_visibility import can_view_profile
from kinnected.core.rate_limit import rate_limit
from kinnected.core.relations import (
    accept_request,
    add_or_update_relation,
    get_pending_requests,
    get_user_relations,
    reject_request,
)
from kinnected.core.validators import is_valid_id
from kinnected.database import get_db
from kinnected.errors import NotFoundError, ValidationError
from kinnected.models.user import User
from kinnected.schemas.relation_schema import (
    RelationCreate,
    pending_request_out,
    relation_out,
    relation_view,
)

router = APIRouter(
    prefix="/connections",
    tags=["Connections"],
    dependencies=[Depends(rate_limit("api"))],
)


# --------------------------------------------------
# ADD OR UPDATE RELATION
# --------------------------------------------------
@router.post("")
def create_relation(
    payload: RelationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    relation, updated = add_or_update_relation(db, current_user.id, payload)

    return JSONResponse(
        status_code=200 if updated else 201,
        content={
            "success": True,
            "updated": updated,
            "relation": relation_out(relation),
        },
    )


# --------------------------------------------------
# ACCEPTED RELATIONS (either direction)
# --------------------------------------------------
@router.get("/relations")
@router.get("/relations/{user_id}")
def list_relations(
    user_id: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    subject = current_user
    if user_id is not None and user_id != current_user.id:
        if not is_valid_id(user_id):
            raise ValidationError("Invalid user ID")

        subject = db.query(User).filter(User.id == user_id).first()
        if not subject or not can_view_profile(db, current_user.id, subject):
            raise NotFoundError("User not found")

    relations = [
        relation_view(relation, subject.id, current_user.id)
        for relation in get_user_relations(db, subject.id)
    ]

    return {"success": True, "relations": relations}


# --------------------------------------------------
# PENDING REQUESTS (addressed to me)
# --------------------------------------------------
@router.get("/pending")
def list_pending_requests(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    requests = [
        pending_request_out(relation)
        for relation in get_pending_requests(db, current_user.id)
    ]
    return {"success": True, "requests": requests}


# --------------------------------------------------
# ACCEPT / REJECT
# --------------------------------------------------
@router.patch("/accept/{request_id}")
def accept_connection(
    request_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    relation = accept_request(db, request_id, current_user.id)
    return {"success": True, "relation": relation_out(relation)}


@router.patch("/reject/{request_id}")
def reject_connection(
    request_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    reject_request(db, request_id, current_user.id)
    return {"success": True, "message": "Connection request rejected"}
