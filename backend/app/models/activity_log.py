from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, validates

from .base import Base


ALLOWED_ACTIVITY_TYPES = frozenset({"login", "logout", "create", "update", "delete"})


class ActivityLog(Base):
    __tablename__ = "activity_logs"
    __table_args__ = (
        CheckConstraint(
            "activity_type IN ('login', 'logout', 'create', 'update', 'delete')",
            name="activity_type_allowed",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    activity_type: Mapped[str] = mapped_column(
        String(20), nullable=False, index=True
    )
    entity_type: Mapped[str] = mapped_column(
        String(50), nullable=False, index=True
    )  # module: progestor, babysite, recluta, babycloud
    description: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    # "metadata" is reserved on declarative classes
    metadata_: Mapped[Any | None] = mapped_column("metadata", JSON, nullable=True)

    @validates("activity_type")
    def validate_activity_type(self, key: str, value: str) -> str:
        if value not in ALLOWED_ACTIVITY_TYPES:
            raise ValueError(
                f"Invalid activity_type '{value}'. "
                f"Must be one of: {', '.join(sorted(ALLOWED_ACTIVITY_TYPES))}"
            )
        return value
