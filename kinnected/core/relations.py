"""Relation workflow: creating edges and moving requests through their states.

A placeholder relation is accepted on creation, since nobody can confirm it.
A relation to a registered account starts ``pending`` and only its target can
accept or reject it. Rejected relations can be requested again, which reuses
the old record rather than creating a second one for the same pair.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from kinnected.core.validators import is_valid_id
from kinnected.database import commit_or_conflict
from kinnected.errors import ConflictError, NotFoundError, ValidationError
from kinnected.models.relation import (
    Relation,
    RelationStatus,
    new_placeholder_id,
)
from kinnected.models.user import User
from kinnected.schemas.relation_schema import (
    PlaceholderTarget,
    RealTarget,
    RelationCreate,
)

logger = logging.getLogger(__name__)


def _get_user(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


# --------------------------------------------------
# ADD OR UPDATE
# --------------------------------------------------
def add_or_update_relation(
    db: Session, owner_id: str, payload: RelationCreate
) -> Tuple[Relation, bool]:
    """Create a relation owned by ``owner_id``.

    Returns the relation and whether an existing placeholder was updated
    instead of a new record being created.
    """
    target = payload.target
    if isinstance(target, PlaceholderTarget):
        return _upsert_placeholder(db, owner_id, payload.relation_type.value, target)
    return _request_relation(db, owner_id, payload.relation_type.value, target), False


def _upsert_placeholder(
    db: Session, owner_id: str, relation_type: str, target: PlaceholderTarget
) -> Tuple[Relation, bool]:
    if _get_user(db, owner_id) is None:
        raise NotFoundError("User not found")

    name = target.display_name
    if not name:
        raise ValidationError("Placeholder relations require a nickname or full name")

    relation = (
        db.query(Relation)
        .filter(
            Relation.from_user_id == owner_id,
            Relation.is_placeholder.is_(True),
            Relation.relation_type == relation_type,
            Relation.full_name == name,
        )
        .first()
    )

    if relation is not None:
        if target.nickname is not None:
            relation.nickname = target.nickname
        if target.description is not None:
            relation.description = target.description
        if not relation.placeholder_id:
            relation.placeholder_id = new_placeholder_id()
        commit_or_conflict(db, "Placeholder relation already exists")
        db.refresh(relation)
        logger.info("Updated placeholder relation %s", relation.id)
        return relation, True

    relation = Relation(
        from_user_id=owner_id,
        relation_type=relation_type,
        status=RelationStatus.accepted.value,
        is_placeholder=True,
        full_name=name,
        nickname=target.nickname,
        description=target.description,
        placeholder_id=new_placeholder_id(),
    )
    db.add(relation)
    commit_or_conflict(db, "Placeholder relation already exists")
    db.refresh(relation)
    logger.info("Created placeholder relation %s", relation.id)
    return relation, False


def _request_relation(
    db: Session, owner_id: str, relation_type: str, target: RealTarget
) -> Relation:
    target_id = target.to_user
    if not is_valid_id(target_id):
        raise ValidationError("Invalid target user ID")

    owner = _get_user(db, owner_id)
    recipient = _get_user(db, target_id)
    if owner is None or recipient is None:
        raise NotFoundError("User not found")

    if owner.id == recipient.id:
        raise ValidationError("You cannot create a relation with yourself")

    existing = (
        db.query(Relation)
        .filter(
            Relation.is_placeholder.is_(False),
            or_(
                (Relation.from_user_id == owner_id) & (Relation.to_user_id == target_id),
                (Relation.from_user_id == target_id) & (Relation.to_user_id == owner_id),
            ),
        )
        .first()
    )

    if existing is not None:
        if existing.status != RelationStatus.rejected.value:
            raise ConflictError("Relation already exists")

        # Revive the declined request in the new direction
        existing.from_user_id = owner_id
        existing.to_user_id = target_id
        existing.relation_type = relation_type
        existing.status = RelationStatus.pending.value
        commit_or_conflict(db, "Relation already exists")
        db.refresh(existing)
        logger.info("Relation %s re-requested by %s", existing.id, owner_id)
        return existing

    relation = Relation(
        from_user_id=owner_id,
        to_user_id=target_id,
        relation_type=relation_type,
        status=RelationStatus.pending.value,
        is_placeholder=False,
    )
    db.add(relation)
    commit_or_conflict(db, "Relation already exists")
    db.refresh(relation)
    logger.info("Relation request %s sent from %s to %s", relation.id, owner_id, target_id)
    return relation


# --------------------------------------------------
# READS
# --------------------------------------------------
def get_user_relations(db: Session, user_id: str) -> List[Relation]:
    """Accepted relations on either side of ``user_id``."""
    return (
        db.query(Relation)
        .filter(
            Relation.status == RelationStatus.accepted.value,
            (Relation.from_user_id == user_id) | (Relation.to_user_id == user_id),
        )
        .order_by(Relation.created_at)
        .all()
    )


def get_pending_requests(db: Session, user_id: str) -> List[Relation]:
    return (
        db.query(Relation)
        .filter(
            Relation.to_user_id == user_id,
            Relation.status == RelationStatus.pending.value,
        )
        .order_by(Relation.created_at)
        .all()
    )


# --------------------------------------------------
# STATE TRANSITIONS
# --------------------------------------------------
def _get_pending_request(db: Session, request_id: str, user_id: str) -> Relation:
    if not is_valid_id(request_id):
        raise ValidationError("Invalid request ID")

    relation = (
        db.query(Relation)
        .filter(
            Relation.id == request_id,
            Relation.to_user_id == user_id,
            Relation.status == RelationStatus.pending.value,
        )
        .first()
    )
    if relation is None:
        raise NotFoundError("Connection request not found")
    return relation


def accept_request(db: Session, request_id: str, user_id: str) -> Relation:
    relation = _get_pending_request(db, request_id, user_id)
    relation.status = RelationStatus.accepted.value
    db.commit()
    db.refresh(relation)
    logger.info("Relation %s accepted", relation.id)
    return relation


def reject_request(db: Session, request_id: str, user_id: str) -> Relation:
    relation = _get_pending_request(db, request_id, user_id)
    relation.status = RelationStatus.rejected.value
    db.commit()
    db.refresh(relation)
    logger.info("Relation %s rejected", relation.id)
    return relation
