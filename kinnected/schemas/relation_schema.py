from typing import Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from kinnected.models.relation import Relation, RelationType
from kinnected.schemas.user_schema import user_preview

RELATION_TYPES = {relation_type.value for relation_type in RelationType}


# --------------------------------------------------
# TARGET VARIANTS
# --------------------------------------------------
class RealTarget(BaseModel):
    to_user: str


class PlaceholderTarget(BaseModel):
    full_name: Optional[str] = None
    nickname: Optional[str] = None
    description: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.nickname


# --------------------------------------------------
# CREATE / UPDATE RELATION
# --------------------------------------------------
class RelationCreate(BaseModel):
    """Incoming body of ``POST /connections``.

    ``target`` is resolved from the raw fields: a request carrying ``toUser``
    addresses a registered account, anything else describes a placeholder.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    relation_type: RelationType
    to_user: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("toUser", "to_user", "toUserId"),
    )
    is_placeholder: Optional[bool] = None
    full_name: Optional[str] = None
    nickname: Optional[str] = None
    description: Optional[str] = None

    @field_validator("relation_type", mode="before")
    @classmethod
    def _check_relation_type(cls, value):
        if not isinstance(value, str) or value not in RELATION_TYPES:
            raise ValueError("Invalid relation type")
        return value

    @model_validator(mode="after")
    def _check_variant(self) -> "RelationCreate":
        for name in ("to_user", "full_name", "nickname", "description"):
            value = getattr(self, name)
            if isinstance(value, str):
                setattr(self, name, value.strip() or None)

        if self.is_placeholder and self.to_user:
            raise ValueError("A placeholder relation cannot target a registered user")
        if self.is_placeholder is False and not self.to_user:
            raise ValueError("Target user is required")
        if self.to_user is None and not (self.full_name or self.nickname):
            raise ValueError("Placeholder relations require a nickname or full name")
        return self

    @property
    def target(self) -> Union[RealTarget, PlaceholderTarget]:
        if self.to_user:
            return RealTarget(to_user=self.to_user)
        return PlaceholderTarget(
            full_name=self.full_name,
            nickname=self.nickname,
            description=self.description,
        )


# --------------------------------------------------
# RELATION SERIALISERS
# --------------------------------------------------
def relation_out(relation: Relation) -> dict:
    """Full record with both account references populated."""
    return {
        "id": relation.id,
        "fromUser": user_preview(relation.from_user),
        "toUser": user_preview(relation.to_user),
        "relationType": relation.relation_type,
        "status": relation.status,
        "isPlaceholder": relation.is_placeholder,
        "fullName": relation.full_name,
        "nickname": relation.nickname,
        "description": relation.description,
        "placeholderId": relation.placeholder_id,
        "createdAt": _iso(relation.created_at),
        "updatedAt": _iso(relation.updated_at),
    }


def relation_view(relation: Relation, subject_id: str, viewer_id: str) -> dict:
    """Flat shape seen from ``subject_id``'s side of the edge.

    Nickname and description are private annotations of the owner.
    """
    outgoing = relation.from_user_id == subject_id
    other = relation.to_user if outgoing else relation.from_user
    is_owner = relation.from_user_id == viewer_id

    if relation.is_placeholder:
        user_id, username, full_name, picture = None, None, relation.full_name, None
    else:
        user_id = other.id
        username = other.username
        full_name = other.full_name
        picture = other.profile_picture

    return {
        "id": relation.id,
        "userId": user_id,
        "username": username,
        "fullName": full_name,
        "profilePicture": picture,
        "relationType": relation.relation_type,
        "status": relation.status,
        "isPlaceholder": relation.is_placeholder,
        "placeholderId": relation.placeholder_id,
        "direction": "outgoing" if outgoing else "incoming",
        "nickname": relation.nickname if is_owner else None,
        "description": relation.description if is_owner else None,
    }


def pending_request_out(relation: Relation) -> dict:
    return {
        "id": relation.id,
        "fromUser": user_preview(relation.from_user),
        "relationType": relation.relation_type,
        "status": relation.status,
        "createdAt": _iso(relation.created_at),
    }


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None
