from __future__ import annotations

import pytest

from signage.schedule_engine import pins
from signage.schedule_engine.schedule import PlanPage, Project
from signage.schedule_engine.validate import validate


@pytest.fixture()
def project() -> Project:
    return Project(
        id="p-test",
        name="Tower",
        building="B1",
        level="1",
        pages=[
            PlanPage(name="L1.pdf p1", page_number=1, text="STAIR 12 CORRIDOR", text_source="pdf"),
            PlanPage(name="L1.pdf p2", page_number=2),
        ],
    )


def test_find_preset_by_key_or_label() -> None:
    assert pins.find_preset("s").bundle is pins.Bundle.STAIR
    assert pins.find_preset("L").bundle is pins.Bundle.ELEV
    assert pins.find_preset("exit").payload == {"SignType": "EXIT"}
    assert pins.find_preset("1").label == "FOH"
    with pytest.raises(ValueError):
        pins.find_preset("Q")


def test_elevator_bundle_uses_fixed_room_numbers(project: Project) -> None:
    added = pins.drop_pin(project, pins.find_preset("L"), page=0, x=10.0, y=20.0)
    assert [(row.sign_type, row.room_number, row.room_name, row.notes) for row in added] == [
        ("CALLBOX", "1-100", "ELEV. LOBBY", "Bundle"),
        ("EVAC", "1-100", "ELEV. LOBBY", "Bundle"),
        ("HALL DIRECT", "C1-100", "ELEV. LOBBY", "Bundle"),
    ]
    assert all(row.building == "B1" and row.level == "1" for row in added)
    assert project.schedule == added
    assert len(project.pins) == 1
    pin = project.pins[0]
    assert (pin.page, pin.x, pin.y, pin.preset) == (0, 10.0, 20.0, "Elevator Bundle")
    assert validate(project) == []


def test_stair_bundle_derives_room_from_page_text(project: Project) -> None:
    added = pins.drop_pin(project, pins.find_preset("S"), page=0)
    assert [(row.sign_type, row.room_number, row.room_name) for row in added] == [
        ("INGRESS", "12", "STAIR"),
        ("EGRESS", "12", "STAIR"),
    ]


def test_stair_bundle_without_page_text_has_blank_room(project: Project) -> None:
    added = pins.drop_pin(project, pins.find_preset("S"), page=1)
    assert [row.room_number for row in added] == ["", ""]


def test_payload_pin_merges_over_blank_row(project: Project) -> None:
    added = pins.drop_pin(project, pins.find_preset("X"), page=0)
    assert len(added) == 1
    assert added[0].to_dict() == {
        "SignType": "EXIT",
        "RoomNumber": "12",
        "RoomName": "",
        "Building": "B1",
        "Level": "1",
        "Notes": "",
    }


def test_payload_room_name_defaults_from_sign_type(project: Project) -> None:
    preset = pins.PinPreset("E", "Egress", payload={"SignType": "egress"})
    (row,) = pins.drop_pin(project, preset, page=0, page_text="STAIR B 7")
    assert (row.sign_type, row.room_number, row.room_name) == ("egress", "7", "STAIR")


def test_repeated_pins_accumulate_without_dedup(project: Project) -> None:
    preset = pins.find_preset("L")
    pins.drop_pin(project, preset, page=0)
    pins.drop_pin(project, preset, page=0)
    assert len(project.schedule) == 6
    assert len(project.pins) == 2
