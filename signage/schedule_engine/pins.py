"""Pin palette and the rows a dropped pin adds to the schedule."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from .rules import (
    ELEVATOR_BUNDLE,
    ELEVATOR_LOBBY,
    ELEVATOR_ROOM_NUMBERS,
    STAIR_BUNDLE,
    default_room_name_for,
    derive_room_number,
)
from .schedule import Pin, Project, ScheduleRow

logger = logging.getLogger(__name__)


class Bundle(str, Enum):
    ELEV = "ELEV"
    STAIR = "STAIR"


@dataclass(frozen=True)
class PinPreset:
    """A palette entry: either a multi-row bundle or a single-row field payload."""

    key: str
    label: str
    bundle: Bundle | None = None
    payload: Mapping[str, str] = field(default_factory=dict)


PALETTE: tuple[PinPreset, ...] = (
    PinPreset("1", "FOH", payload={"SignType": "FOH"}),
    PinPreset("2", "BOH", payload={"SignType": "BOH"}),
    PinPreset("S", "Stair Bundle", bundle=Bundle.STAIR),
    PinPreset("L", "Elevator Bundle", bundle=Bundle.ELEV),
    PinPreset("X", "Exit", payload={"SignType": "EXIT"}),
)


def find_preset(value: str, palette: tuple[PinPreset, ...] = PALETTE) -> PinPreset:
    """Look up a palette entry by shortcut key or label, case-insensitively."""
    wanted = value.strip().lower()
    for preset in palette:
        if wanted in {preset.key.lower(), preset.label.lower()}:
            return preset
    raise ValueError(f"unknown pin preset: {value}")


def bundle_rows(project: Project, bundle: Bundle, page_text: str = "") -> list[ScheduleRow]:
    if bundle is Bundle.ELEV:
        members = [(sign_type, ELEVATOR_ROOM_NUMBERS[sign_type]) for sign_type in ELEVATOR_BUNDLE]
        room_name = ELEVATOR_LOBBY
    else:
        room_number = derive_room_number(page_text)
        members = [(sign_type, room_number) for sign_type in STAIR_BUNDLE]
        room_name = "STAIR"
    base = project.blank_row()
    return [
        base.merged(
            {"SignType": sign_type, "RoomNumber": number, "RoomName": room_name, "Notes": "Bundle"}
        )
        for sign_type, number in members
    ]


def payload_row(project: Project, payload: Mapping[str, str], page_text: str = "") -> ScheduleRow:
    row = project.blank_row().merged(payload)
    row.room_number = derive_room_number(page_text)
    row.room_name = default_room_name_for(payload.get("SignType"))
    return row


def drop_pin(
    project: Project,
    preset: PinPreset,
    *,
    page: int,
    x: float = 0.0,
    y: float = 0.0,
    page_text: str | None = None,
) -> list[ScheduleRow]:
    """Record a pin on ``page`` and append the rows its preset stands for.

    Rows are appended without deduplication: every pin is a physical location.
    """
    text = page_text if page_text is not None else project.page_text(page)
    if preset.bundle is not None:
        rows = bundle_rows(project, preset.bundle, text)
    elif preset.payload:
        rows = [payload_row(project, preset.payload, text)]
    else:
        rows = []
    project.schedule.extend(rows)
    project.pins.append(Pin(page=page, x=x, y=y, preset=preset.label))
    logger.debug("Pin %s on page %d added %d row(s)", preset.label, page, len(rows))
    return rows
