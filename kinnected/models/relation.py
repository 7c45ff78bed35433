import enum
import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from kinnected.database import Base


class RelationType(str, enum.Enum):
    mother = "mother"
    father = "father"
    sibling = "sibling"
    spouse = "spouse"
    child = "child"


class RelationStatus(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"


def new_placeholder_id() -> str:
    return uuid.uuid4().hex


class Relation(Base):
    __tablename__ = "relations"

    id = Column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        index=True,
    )

    # Owner of the record, always a registered account
    from_user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Registered target, NULL for placeholders
    to_user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    # mother | father | sibling | spouse | child
    relation_type = Column(String(16), nullable=False)

    # pending | accepted | rejected
    status = Column(
        String(16),
        nullable=False,
        default=RelationStatus.pending.value,
        index=True,
    )

    # ------------------------------------
    # Placeholder relatives
    # ------------------------------------
    is_placeholder = Column(Boolean, nullable=False, default=False)
    full_name = Column(String, nullable=True)
    nickname = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    placeholder_id = Column(String(32), unique=True, nullable=True)

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

    from_user = relationship("User", foreign_keys=[from_user_id])
    to_user = relationship("User", foreign_keys=[to_user_id])

    __table_args__ = (
        CheckConstraint(
            "(is_placeholder AND to_user_id IS NULL AND full_name IS NOT NULL) "
            "OR (NOT is_placeholder AND to_user_id IS NOT NULL)",
            name="ck_relations_target",
        ),
        CheckConstraint(
            "to_user_id IS NULL OR from_user_id != to_user_id",
            name="ck_relations_not_self",
        ),
        CheckConstraint(
            "relation_type IN ('mother', 'father', 'sibling', 'spouse', 'child')",
            name="ck_relations_type",
        ),
        CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected')",
            name="ck_relations_status",
        ),
        # NULL to_user_id never collides, so this only binds real relations
        UniqueConstraint(
            "from_user_id",
            "to_user_id",
            name="uq_relations_pair",
        ),
        Index(
            "uq_relations_placeholder_name",
            "from_user_id",
            "full_name",
            "relation_type",
            unique=True,
            sqlite_where=text("is_placeholder"),
            postgresql_where=text("is_placeholder"),
        ),
        Index(
            "ix_relations_to_status",
            "to_user_id",
            "status",
        ),
    )
