from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    false,
    text,
)

from ..admin.permissions import ACCESS_COLUMNS, enabled_slots
from .base import Base


# The access_N columns are generated from ACCESS_COLUMNS so the table, the
# migration and the API schemas always agree on the bitfield width.
access_table = Table(
    "access",
    Base.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("profile", String(100), nullable=False, index=True),
    Column(
        "user_id",
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        unique=True,
    ),
    *(
        Column(name, Boolean, nullable=False, default=False, server_default=false())
        for name in ACCESS_COLUMNS
    ),
    # One template per profile; user grants may share a profile name.
    Index(
        "uq_access_template_profile",
        "profile",
        unique=True,
        postgresql_where=text("user_id IS NULL"),
    ),
)


class Access(Base):
    """A role template (``user_id`` is NULL) or a per-user grant."""

    __table__ = access_table

    @property
    def is_template(self) -> bool:
        return self.user_id is None

    def flags(self) -> dict[str, bool]:
        return {name: bool(getattr(self, name)) for name in ACCESS_COLUMNS}

    def apply_flags(self, flags: dict[str, bool]) -> None:
        for name, value in flags.items():
            if name not in ACCESS_COLUMNS:
                raise ValueError(f"Unknown access column '{name}'")
            setattr(self, name, bool(value))

    def has_slot(self, column: str) -> bool:
        return bool(getattr(self, column, False))

    def enabled_slots(self) -> list[int]:
        return enabled_slots(self.flags())
