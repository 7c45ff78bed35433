import uuid

from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func

from kinnected.database import Base
from kinnected.schemas.user_schema import default_preferences


class User(Base):
    __tablename__ = "users"

    id = Column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        index=True
    )

    username = Column(String(30), unique=True, index=True, nullable=False)
    full_name = Column(String(50), nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)

    # Optional profile fields
    phone_number = Column(String, nullable=True)
    bio = Column(String(500), nullable=True)
    location = Column(String, nullable=True)
    profile_picture = Column(String, nullable=True)

    # -------------------------------------------------------
    # Preference groups (camelCase JSON documents)
    # -------------------------------------------------------
    privacy_settings = Column(
        JSON, nullable=False, default=lambda: default_preferences("privacy_settings")
    )
    family_tree_preferences = Column(
        JSON, nullable=False, default=lambda: default_preferences("family_tree_preferences")
    )
    notification_settings = Column(
        JSON, nullable=False, default=lambda: default_preferences("notification_settings")
    )
    relation_management_settings = Column(
        JSON, nullable=False, default=lambda: default_preferences("relation_management_settings")
    )
    app_preferences = Column(
        JSON, nullable=False, default=lambda: default_preferences("app_preferences")
    )

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
