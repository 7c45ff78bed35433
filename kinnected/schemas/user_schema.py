from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from kinnected.core.validators import validate_email, validate_full_name


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --------------------------------------------------
# PREFERENCE GROUPS (stored as JSON on the user row)
# --------------------------------------------------
class PrivacySettings(CamelModel):
    profile_visibility: Literal["public", "private", "connections"] = "public"
    hide_from_global_search: bool = False
    block_list: List[str] = Field(default_factory=list)


class FamilyTreePreferences(CamelModel):
    default_center_node: Literal["self", "lastViewed"] = "self"
    show_placeholder_nodes: bool = True
    animation_speed: float = 1
    enable_animations: bool = True
    node_size: int = 100
    layout_style: Literal["standard", "compact"] = "standard"


class NotificationSettings(CamelModel):
    in_app_notifications: bool = True
    connection_request_alerts: bool = True
    nickname_edit_alerts: bool = True


class CustomRelationshipLabel(CamelModel):
    key: str
    label: str


class RelationManagementSettings(CamelModel):
    manage_suggested_relations: bool = True
    allow_others_to_suggest_relations: bool = True
    custom_relationship_labels: List[CustomRelationshipLabel] = Field(default_factory=list)


class AppPreferences(CamelModel):
    theme: Literal["light", "dark", "custom"] = "light"
    font_size: int = 14
    default_landing_page: Literal["home", "profile", "tree"] = "home"


PREFERENCE_GROUPS = {
    "privacy_settings": PrivacySettings,
    "family_tree_preferences": FamilyTreePreferences,
    "notification_settings": NotificationSettings,
    "relation_management_settings": RelationManagementSettings,
    "app_preferences": AppPreferences,
}


def default_preferences(group: str) -> dict:
    return PREFERENCE_GROUPS[group]().model_dump(by_alias=True)


# --------------------------------------------------
# USER OUT
# --------------------------------------------------
class UserPreview(CamelModel):
    id: str
    username: str
    full_name: str
    profile_picture: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class UserOut(UserPreview):
    email: str
    phone_number: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None

    privacy_settings: PrivacySettings = Field(default_factory=PrivacySettings)
    family_tree_preferences: FamilyTreePreferences = Field(default_factory=FamilyTreePreferences)
    notification_settings: NotificationSettings = Field(default_factory=NotificationSettings)
    relation_management_settings: RelationManagementSettings = Field(
        default_factory=RelationManagementSettings
    )
    app_preferences: AppPreferences = Field(default_factory=AppPreferences)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def user_out(user) -> dict:
    return UserOut.model_validate(user).model_dump(by_alias=True, mode="json")


def user_preview(user) -> Optional[dict]:
    if user is None:
        return None
    return UserPreview.model_validate(user).model_dump(by_alias=True, mode="json")


# --------------------------------------------------
# PROFILE UPDATE (explicit list of mutable fields)
# --------------------------------------------------
class ProfileUpdate(CamelModel):
    model_config = ConfigDict(extra="forbid")

    full_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    bio: Optional[str] = Field(default=None, max_length=500)
    location: Optional[str] = None
    profile_picture: Optional[str] = None

    privacy_settings: Optional[PrivacySettings] = None
    family_tree_preferences: Optional[FamilyTreePreferences] = None
    notification_settings: Optional[NotificationSettings] = None
    relation_management_settings: Optional[RelationManagementSettings] = None
    app_preferences: Optional[AppPreferences] = None

    @field_validator("full_name")
    @classmethod
    def _check_full_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return validate_full_name(value)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return validate_email(value)

    @field_validator("phone_number", "location")
    @classmethod
    def _strip(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return value.strip()
