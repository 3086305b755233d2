"""Schedule data model and deduplication."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

FIELDNAMES = ("SignType", "RoomNumber", "RoomName", "Building", "Level", "Notes")
IDENTITY_FIELDS = FIELDNAMES[:5]

_ATTRIBUTES = {
    "SignType": "sign_type",
    "RoomNumber": "room_number",
    "RoomName": "room_name",
    "Building": "building",
    "Level": "level",
    "Notes": "notes",
}


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass
class ScheduleRow:
    """A single sign entry in the schedule."""

    sign_type: str = ""
    room_number: str = ""
    room_name: str = ""
    building: str = ""
    level: str = ""
    notes: str = ""

    @property
    def identity(self) -> tuple[str, str, str, str, str]:
        return (self.sign_type, self.room_number, self.room_name, self.building, self.level)

    def to_dict(self) -> dict[str, str]:
        return {name: getattr(self, attr) for name, attr in _ATTRIBUTES.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ScheduleRow:
        return cls(**{attr: _text(data.get(name)) for name, attr in _ATTRIBUTES.items()})

    def merged(self, payload: Mapping[str, Any]) -> ScheduleRow:
        """Return a copy with interchange-named ``payload`` fields laid over."""
        data = self.to_dict()
        for name in FIELDNAMES:
            if name in payload:
                data[name] = _text(payload[name])
        return ScheduleRow.from_dict(data)


@dataclass
class PlanPage:
    name: str
    source_file: str = ""
    page_number: int = 1
    text: str = ""
    text_source: str = ""

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "source_file": self.source_file,
            "page_number": self.page_number,
            "text": self.text,
            "text_source": self.text_source,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PlanPage:
        return cls(
            name=_text(data.get("name")),
            source_file=_text(data.get("source_file")),
            page_number=int(data.get("page_number", 1) or 1),
            text=_text(data.get("text")),
            text_source=_text(data.get("text_source")),
        )


@dataclass
class Pin:
    page: int
    x: float
    y: float
    preset: str = ""
    note: str = ""

    def to_dict(self) -> dict[str, object]:
        return {"page": self.page, "x": self.x, "y": self.y, "preset": self.preset, "note": self.note}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Pin:
        return cls(
            page=int(data.get("page", 0) or 0),
            x=float(data.get("x", 0.0) or 0.0),
            y=float(data.get("y", 0.0) or 0.0),
            preset=_text(data.get("preset")),
            note=_text(data.get("note")),
        )


@dataclass
class Project:
    """A signage project: building/level metadata, plan pages, pins and schedule."""

    id: str
    name: str = "Untitled"
    building: str = ""
    level: str = ""
    pages: list[PlanPage] = field(default_factory=list)
    pins: list[Pin] = field(default_factory=list)
    schedule: list[ScheduleRow] = field(default_factory=list)

    @property
    def is_ground_level(self) -> bool:
        return _text(self.level).strip() == "1"

    def blank_row(self) -> ScheduleRow:
        return ScheduleRow(building=_text(self.building), level=_text(self.level))

    def page_text(self, page_index: int) -> str:
        if 0 <= page_index < len(self.pages):
            return self.pages[page_index].text
        return ""

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "building": self.building,
            "level": self.level,
            "pages": [page.to_dict() for page in self.pages],
            "pins": [pin.to_dict() for pin in self.pins],
            "schedule": [row.to_dict() for row in self.schedule],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Project:
        return cls(
            id=_text(data.get("id")),
            name=_text(data.get("name")) or "Untitled",
            building=_text(data.get("building")),
            level=_text(data.get("level")),
            pages=[PlanPage.from_dict(entry) for entry in data.get("pages", []) or []],
            pins=[Pin.from_dict(entry) for entry in data.get("pins", []) or []],
            schedule=[ScheduleRow.from_dict(entry) for entry in data.get("schedule", []) or []],
        )


def dedupe_rows(rows: Iterable[ScheduleRow]) -> list[ScheduleRow]:
    """Collapse rows sharing an identity tuple.

    The last row seen for an identity wins, placed where that identity first
    appeared.
    """
    merged: dict[tuple[str, str, str, str, str], ScheduleRow] = {}
    for row in rows:
        merged[row.identity] = row
    return list(merged.values())
