import pytest

from app.admin.permissions import (
    ACCESS_COLUMNS,
    ACCESS_FLAG_COUNT,
    AccessSlot,
    column_for,
    enabled_slots,
    flags_from_slots,
    full_flags,
    slot_for,
    validate_flag_keys,
)
from app.models.access import Access, access_table
from app.schemas.access import AccessRead, RoleTemplateCreate


def test_access_columns_cover_every_slot() -> None:
    assert len(ACCESS_COLUMNS) == ACCESS_FLAG_COUNT == 83
    assert ACCESS_COLUMNS[0] == "access_1"
    assert ACCESS_COLUMNS[-1] == "access_83"


def test_access_table_has_one_boolean_column_per_slot() -> None:
    flag_columns = [c.name for c in access_table.columns if c.name.startswith("access_")]
    assert flag_columns == list(ACCESS_COLUMNS)
    assert all(not access_table.c[name].nullable for name in ACCESS_COLUMNS)


def test_column_and_slot_round_trip() -> None:
    assert column_for(AccessSlot.LOGS_VIEW) == "access_6"
    assert slot_for("access_83") == 83


@pytest.mark.parametrize("slot", [0, 84, -1, True])
def test_column_for_rejects_out_of_range(slot) -> None:
    with pytest.raises(ValueError):
        column_for(slot)


@pytest.mark.parametrize("column", ["access_0", "access_84", "access_x", "profile"])
def test_slot_for_rejects_unknown_columns(column: str) -> None:
    with pytest.raises(ValueError):
        slot_for(column)


def test_validate_flag_keys_lists_unknown_columns() -> None:
    validate_flag_keys(["access_1", "access_83"])

    with pytest.raises(ValueError, match="access_84, user_id"):
        validate_flag_keys(["access_1", "user_id", "access_84"])


def test_flags_from_slots_and_enabled_slots() -> None:
    flags = flags_from_slots([AccessSlot.USERS_VIEW, 42])

    assert sum(flags.values()) == 2
    assert enabled_slots(flags) == [3, 42]
    assert enabled_slots(full_flags()) == list(range(1, 84))


def test_access_model_apply_flags() -> None:
    access = Access(profile="supervisor", user_id=7)
    access.apply_flags(flags_from_slots([1, 2]))

    assert access.is_template is False
    assert access.has_slot("access_1") is True
    assert access.has_slot("access_3") is False
    assert access.enabled_slots() == [1, 2]

    with pytest.raises(ValueError, match="Unknown access column"):
        access.apply_flags({"enabled": True})


def test_template_row_has_no_user() -> None:
    template = Access(id=1, profile="admin", user_id=None)
    template.apply_flags(full_flags())

    read = AccessRead.from_access(template)
    assert template.is_template is True
    assert read.enabled_slots == list(range(1, 84))
    assert read.flags["access_50"] is True


def test_role_template_payload_rejects_unknown_flags() -> None:
    with pytest.raises(ValueError, match="Unknown access columns"):
        RoleTemplateCreate(profile="viewer", flags={"access_99": True})

    payload = RoleTemplateCreate(profile="viewer", flags={"access_1": True})
    assert payload.flags == {"access_1": True}
