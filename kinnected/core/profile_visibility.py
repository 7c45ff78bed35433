from sqlalchemy.orm import Session

from kinnected.models.relation import Relation, RelationStatus
from kinnected.models.user import User


def are_related(db: Session, user_a_id: str, user_b_id: str) -> bool:
    """True when an accepted relation links the two accounts."""
    return (
        db.query(Relation)
        .filter(
            Relation.status == RelationStatus.accepted.value,
            (
                (Relation.from_user_id == user_a_id)
                & (Relation.to_user_id == user_b_id)
            )
            | (
                (Relation.from_user_id == user_b_id)
                & (Relation.to_user_id == user_a_id)
            ),
        )
        .first()
        is not None
    )


def can_view_profile(db: Session, viewer_id: str, target: User) -> bool:
    # Owner
    if target.id == viewer_id:
        return True

    privacy = target.privacy_settings or {}
    if viewer_id in privacy.get("blockList", []):
        return False

    visibility = privacy.get("profileVisibility", "public")
    if visibility == "public":
        return True
    if visibility == "connections":
        return are_related(db, viewer_id, target.id)

    # private
    return False
