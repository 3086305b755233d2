from __future__ import annotations

import pytest

from signage.schedule_engine import rules
from signage.schedule_engine.rules import Category, Preset, apply, derive_room_number
from signage.schedule_engine.schedule import Project, ScheduleRow, dedupe_rows
from signage.schedule_engine.validate import validate


@pytest.fixture()
def project() -> Project:
    return Project(id="p-test", name="Tower", building="B1", level="2")


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Room C1-100 Lobby", "C1-100"),
        ("no numbers here", ""),
        ("A204 OFFICE", "A204"),
        ("SUITE 3105", "3105"),
        ("ROOM 12.5 EAST", "12.5"),
        ("STAIR 12\nELEVATOR", "12"),
        ("", ""),
        (None, ""),
    ],
)
def test_derive_room_number(text: str | None, expected: str) -> None:
    assert derive_room_number(text) == expected


def test_default_room_name_lookup_is_case_insensitive() -> None:
    assert rules.default_room_name_for("ingress") == "STAIR"
    assert rules.default_room_name_for("EGRESS") == "STAIR"
    assert rules.default_room_name_for("Hall Direct") == "ELEV. LOBBY"
    assert rules.default_room_name_for("callbox") == "ELEV. LOBBY"
    assert rules.default_room_name_for("EVAC") == "ELEV. LOBBY"
    assert rules.default_room_name_for("EXIT") == ""
    assert rules.default_room_name_for(None) == ""


def test_keyword_table_covers_every_category_in_order() -> None:
    assert [rule.category for rule in rules.KEYWORD_RULES] == list(Category)


def test_preset_parse_falls_back_to_default() -> None:
    assert Preset.parse("southwood") is Preset.SOUTHWOOD
    assert Preset.parse(" Southwood ") is Preset.SOUTHWOOD
    assert Preset.parse("SOUTHWOOD") is Preset.SOUTHWOOD
    assert Preset.parse("acme") is Preset.DEFAULT
    assert Preset.parse(None) is Preset.DEFAULT
    assert Preset.parse(Preset.SOUTHWOOD) is Preset.SOUTHWOOD


def test_stair_and_elevator_scenario(project: Project) -> None:
    result = apply("STAIR A ELEVATOR LOBBY", project, "southwood")
    assert result.generated == 5
    assert result.delta == 5
    assert result.categories == (Category.ELEVATOR, Category.STAIR, Category.LOBBY)
    assert [row.sign_type for row in project.schedule] == [
        "CALLBOX",
        "EVAC",
        "HALL DIRECT",
        "INGRESS",
        "EGRESS",
    ]
    assert not any(row.sign_type == "EXIT" for row in project.schedule)
    assert validate(project) == []


def test_southwood_elevator_bundle_rows(project: Project) -> None:
    apply("ELEVATOR", project, Preset.SOUTHWOOD)
    assert [row.to_dict() for row in project.schedule] == [
        {
            "SignType": "CALLBOX",
            "RoomNumber": "1-100",
            "RoomName": "ELEV. LOBBY",
            "Building": "B1",
            "Level": "2",
            "Notes": "Auto",
        },
        {
            "SignType": "EVAC",
            "RoomNumber": "1-100",
            "RoomName": "ELEV. LOBBY",
            "Building": "B1",
            "Level": "2",
            "Notes": "Auto",
        },
        {
            "SignType": "HALL DIRECT",
            "RoomNumber": "C1-100",
            "RoomName": "ELEV. LOBBY",
            "Building": "B1",
            "Level": "2",
            "Notes": "Door to lobby",
        },
    ]


def test_other_preset_elevator_is_single_lobby_row(project: Project) -> None:
    result = apply("ELEVATOR 5", project, "acme")
    assert result.generated == 1
    row = project.schedule[0]
    assert (row.sign_type, row.room_number, row.room_name, row.notes) == (
        "ELEVATOR LOBBY",
        "",
        "ELEVATOR LOBBY",
        "Auto",
    )


def test_mens_restroom_row(project: Project) -> None:
    apply("MEN RESTROOM 204", project, "acme")
    mens = [row for row in project.schedule if row.room_name == "MEN'S RESTROOM"]
    assert len(mens) == 1
    assert mens[0].to_dict() == {
        "SignType": "FOH",
        "RoomNumber": "204",
        "RoomName": "MEN'S RESTROOM",
        "Building": "B1",
        "Level": "2",
        "Notes": "Auto",
    }
    # each keyword pattern is matched independently, so the generic restroom fires too
    assert {row.room_name for row in project.schedule} == {"MEN'S RESTROOM", "RESTROOM"}


@pytest.mark.parametrize(
    ("text", "room_number"),
    [("WOMEN 210", "210"), ("LADIES 12", "12"), ("GIRLS A7", "A7"), ("WOMAN'S 44", "44")],
)
def test_womens_restroom_row(project: Project, text: str, room_number: str) -> None:
    result = apply(text, project, "acme")
    assert Category.WOMENS_RR in result.categories
    womens = [row for row in project.schedule if row.room_name == "WOMEN'S RESTROOM"]
    assert [(row.sign_type, row.room_number, row.notes) for row in womens] == [
        ("FOH", room_number, "Auto")
    ]


def test_womens_text_also_matches_mens_pattern(project: Project) -> None:
    apply("WOMEN 210", project, "acme")
    assert [(row.sign_type, row.room_number, row.room_name) for row in project.schedule] == [
        ("FOH", "210", "WOMEN'S RESTROOM"),
        ("FOH", "210", "MEN'S RESTROOM"),
    ]


def test_uppercase_preset_selects_southwood_bundle(project: Project) -> None:
    apply("ELEVATOR", project, "SOUTHWOOD")
    assert [row.sign_type for row in project.schedule] == ["CALLBOX", "EVAC", "HALL DIRECT"]


@pytest.mark.parametrize(
    ("text", "sign_type", "room_number", "room_name"),
    [
        ("ELECTRICAL 118", "BOH", "118", "ELECTRICAL"),
        ("IDF 110", "BOH", "110", "DATA"),
        ("JANITOR 105", "BOH", "105", "MECH/JANITORIAL"),
        ("YOGA STUDIO 210", "FOH", "210", "YOGA"),
        ("PR FIT 300", "FOH", "300", "PR FIT"),
        ("PRFIT 3", "FOH", "3", "PR FIT"),
        ("MECHANICAL 9", "BOH", "9", "MECH/JANITORIAL"),
        ("CUSTODIAL 14", "BOH", "14", "MECH/JANITORIAL"),
        ("TOILET A12", "FOH", "A12", "RESTROOM"),
    ],
)
def test_single_row_categories(
    project: Project, text: str, sign_type: str, room_number: str, room_name: str
) -> None:
    result = apply(text, project, "southwood")
    assert result.generated == 1
    row = project.schedule[0]
    assert (row.sign_type, row.room_number, row.room_name, row.notes) == (
        sign_type,
        room_number,
        room_name,
        "Auto",
    )


def test_stair_rows_share_derived_room_number(project: Project) -> None:
    apply("STAIR 3", project)
    assert [(row.sign_type, row.room_number, row.room_name) for row in project.schedule] == [
        ("INGRESS", "3", "STAIR"),
        ("EGRESS", "3", "STAIR"),
    ]


def test_exit_only_on_level_one(project: Project) -> None:
    result = apply("EXIT", project)
    assert result.categories == (Category.EXIT,)
    assert result.generated == 0
    assert project.schedule == []

    project.level = " 1 "
    result = apply("EXIT", project)
    assert result.generated == 1
    row = project.schedule[0]
    assert (row.sign_type, row.room_number, row.room_name, row.notes) == (
        "EXIT",
        "",
        "EXIT",
        "Level 1 only",
    )


def test_lobby_is_recognised_but_inert(project: Project) -> None:
    result = apply("LOBBY", project)
    assert result.matched
    assert result.categories == (Category.LOBBY,)
    assert result.generated == 0
    assert project.schedule == []


def test_empty_text_matches_nothing(project: Project) -> None:
    for text in ("", None, "   \n"):
        result = apply(text, project)
        assert not result.matched
        assert result.generated == 0
        assert result.delta == 0


def test_apply_is_idempotent_for_unchanged_text(project: Project) -> None:
    text = "STAIR 12 ELEVATOR ELECTRICAL 118"
    apply(text, project)
    first = [row.to_dict() for row in project.schedule]
    result = apply(text, project)
    assert result.generated == len(first)
    assert result.delta == 0
    assert [row.to_dict() for row in project.schedule] == first


def test_dedup_keeps_last_row_at_first_position(project: Project) -> None:
    project.schedule.extend(
        [
            ScheduleRow("CALLBOX", "1-100", "ELEV. LOBBY", "B1", "2", "manual"),
            ScheduleRow("FOH", "1", "YOGA", "B1", "2", "keep"),
        ]
    )
    apply("ELEVATOR", project, "southwood")
    assert [row.sign_type for row in project.schedule] == ["CALLBOX", "FOH", "EVAC", "HALL DIRECT"]
    assert project.schedule[0].notes == "Auto"
    assert project.schedule[1].notes == "keep"


def test_delta_can_be_negative_when_existing_duplicates_collapse(project: Project) -> None:
    duplicate = ScheduleRow("FOH", "1", "YOGA", "B1", "2", "")
    project.schedule.extend([duplicate, duplicate, duplicate])
    result = apply("nothing here", project)
    assert result.generated == 0
    assert result.delta == -2
    assert len(project.schedule) == 1


def test_no_duplicate_identities_after_apply(project: Project) -> None:
    project.schedule.append(ScheduleRow("INGRESS", "12", "STAIR", "B1", "2", "manual"))
    for text in ("STAIR 12", "STAIR 12 ELEVATOR", "DATA 12 ELECTRICAL 12", "STAIR 12"):
        apply(text, project)
        identities = [row.identity for row in project.schedule]
        assert len(identities) == len(set(identities))


def test_dedupe_rows_ignores_notes() -> None:
    rows = [
        ScheduleRow("FOH", "1", "A", "", "", "first"),
        ScheduleRow("FOH", "2", "B", "", "", ""),
        ScheduleRow("FOH", "1", "A", "", "", "second"),
    ]
    deduped = dedupe_rows(rows)
    assert [row.notes for row in deduped] == ["second", ""]
