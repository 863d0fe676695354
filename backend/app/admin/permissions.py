"""
Access bitfield definitions.

Every role template and every user grant is one row of the ``access`` table
holding the same fixed set of boolean slots ``access_1`` .. ``access_83``.
The column list is generated here and nowhere else.

Slots 1-6 gate this backend's own endpoints. The remaining slots belong to
client modules and are stored and returned verbatim.
"""
from __future__ import annotations

from enum import IntEnum
from typing import Final, Iterable


ACCESS_FLAG_COUNT: Final[int] = 83
ACCESS_COLUMN_PREFIX: Final[str] = "access_"
ACCESS_COLUMNS: Final[tuple[str, ...]] = tuple(
    f"{ACCESS_COLUMN_PREFIX}{slot}" for slot in range(1, ACCESS_FLAG_COUNT + 1)
)


class AccessSlot(IntEnum):
    """Slots reserved for the admin backend."""

    GUESTS_VIEW = 1
    GUESTS_MANAGE = 2
    USERS_VIEW = 3
    USERS_MANAGE = 4
    ACCESS_MANAGE = 5
    LOGS_VIEW = 6


def column_for(slot: int) -> str:
    """Return the column name for a slot number.

    Raises:
        ValueError: If the slot is outside 1..ACCESS_FLAG_COUNT
    """
    if isinstance(slot, bool) or not 1 <= int(slot) <= ACCESS_FLAG_COUNT:
        raise ValueError(
            f"Access slot must be between 1 and {ACCESS_FLAG_COUNT}, got {slot!r}"
        )
    return f"{ACCESS_COLUMN_PREFIX}{int(slot)}"


def slot_for(column: str) -> int:
    """Return the slot number encoded in a column name like ``access_12``."""
    if not column.startswith(ACCESS_COLUMN_PREFIX):
        raise ValueError(f"Unknown access column '{column}'")
    suffix = column[len(ACCESS_COLUMN_PREFIX):]
    if not suffix.isdigit():
        raise ValueError(f"Unknown access column '{column}'")
    column_for(int(suffix))
    return int(suffix)


def validate_flag_keys(keys: Iterable[str]) -> None:
    unknown = sorted(key for key in keys if key not in ACCESS_COLUMNS)
    if unknown:
        raise ValueError(f"Unknown access columns: {', '.join(unknown)}")


def empty_flags() -> dict[str, bool]:
    return {column: False for column in ACCESS_COLUMNS}


def full_flags() -> dict[str, bool]:
    return {column: True for column in ACCESS_COLUMNS}


def flags_from_slots(slots: Iterable[int]) -> dict[str, bool]:
    flags = empty_flags()
    for slot in slots:
        flags[column_for(slot)] = True
    return flags


def enabled_slots(flags: dict[str, bool]) -> list[int]:
    return sorted(slot_for(column) for column, value in flags.items() if value)
