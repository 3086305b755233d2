"""Keyword rules that turn page text into schedule rows."""
from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from .schedule import Project, ScheduleRow, dedupe_rows

logger = logging.getLogger(__name__)

ROOM_NUMBER_RE = re.compile(r"\b[AC]?\d{1,4}(?:[-. ]?\d{1,3})?\b", re.ASCII)

ELEVATOR_LOBBY = "ELEV. LOBBY"
ELEVATOR_BUNDLE = ("CALLBOX", "EVAC", "HALL DIRECT")
ELEVATOR_ROOM_NUMBERS = {"CALLBOX": "1-100", "EVAC": "1-100", "HALL DIRECT": "C1-100"}
STAIR_BUNDLE = ("INGRESS", "EGRESS")

DEFAULT_ROOM_NAMES = {
    "INGRESS": "STAIR",
    "EGRESS": "STAIR",
    "HALL DIRECT": ELEVATOR_LOBBY,
    "CALLBOX": ELEVATOR_LOBBY,
    "EVAC": ELEVATOR_LOBBY,
}


class Category(str, Enum):
    ELEVATOR = "ELEVATOR"
    STAIR = "STAIR"
    WOMENS_RR = "WOMENS_RR"
    MENS_RR = "MENS_RR"
    RESTROOM = "RESTROOM"
    ELECTRICAL = "ELECTRICAL"
    DATA = "DATA"
    EXIT = "EXIT"
    LOBBY = "LOBBY"
    BOH_MISC = "BOH_MISC"
    YOGA = "YOGA"
    PR_FIT = "PR_FIT"


class Preset(str, Enum):
    """Row-generation variant.

    ``DEFAULT`` is the fallback for every identifier without its own branch,
    so a new preset name never silently produces nothing. Identifiers are
    trimmed and compared case-insensitively, so ``"SOUTHWOOD"`` selects
    ``SOUTHWOOD``.
    """

    SOUTHWOOD = "southwood"
    DEFAULT = "default"

    @classmethod
    def parse(cls, value: str | Preset | None) -> Preset:
        if isinstance(value, Preset):
            return value
        key = (value or "").strip().lower()
        for preset in cls:
            if preset.value == key:
                return preset
        return cls.DEFAULT


@dataclass(frozen=True)
class RuleContext:
    text: str
    project: Project
    preset: Preset

    @property
    def room_number(self) -> str:
        return derive_room_number(self.text)

    def row(self, sign_type: str, room_number: str, room_name: str, notes: str = "") -> ScheduleRow:
        return ScheduleRow(
            sign_type=sign_type,
            room_number=room_number,
            room_name=room_name,
            building=self.project.building or "",
            level=self.project.level or "",
            notes=notes,
        )


RowGenerator = Callable[[RuleContext], list[ScheduleRow]]


@dataclass(frozen=True)
class KeywordRule:
    category: Category
    pattern: re.Pattern[str]
    generate: RowGenerator


@dataclass(frozen=True)
class ApplyResult:
    """Outcome of one ``apply`` call.

    ``generated`` counts rows produced by matched rules before deduplication;
    ``delta`` is the net change in schedule length and may be zero or negative.
    """

    generated: int
    delta: int
    categories: tuple[Category, ...] = ()

    @property
    def matched(self) -> bool:
        return bool(self.categories)


def derive_room_number(text: str | None) -> str:
    """Return the first room-number-looking token in ``text``, or ``""``.

    The first match wins, which may be wrong on crowded plan text.
    """
    if not text:
        return ""
    match = ROOM_NUMBER_RE.search(text)
    return match.group(0) if match else ""


def default_room_name_for(sign_type: str | None) -> str:
    return DEFAULT_ROOM_NAMES.get((sign_type or "").upper(), "")


def _elevator(ctx: RuleContext) -> list[ScheduleRow]:
    if ctx.preset is Preset.SOUTHWOOD:
        return [
            ctx.row(
                sign_type,
                ELEVATOR_ROOM_NUMBERS[sign_type],
                ELEVATOR_LOBBY,
                "Door to lobby" if sign_type == "HALL DIRECT" else "Auto",
            )
            for sign_type in ELEVATOR_BUNDLE
        ]
    return [ctx.row("ELEVATOR LOBBY", "", "ELEVATOR LOBBY", "Auto")]


def _stair(ctx: RuleContext) -> list[ScheduleRow]:
    room_number = ctx.room_number
    return [ctx.row(sign_type, room_number, "STAIR", "Auto") for sign_type in STAIR_BUNDLE]


def _exit(ctx: RuleContext) -> list[ScheduleRow]:
    if not ctx.project.is_ground_level:
        return []
    return [ctx.row("EXIT", "", "EXIT", "Level 1 only")]


def _inert(ctx: RuleContext) -> list[ScheduleRow]:
    # Lobbies are recognised but have no sign rows of their own yet.
    return []


def _single(sign_type: str, room_name: str) -> RowGenerator:
    def generate(ctx: RuleContext) -> list[ScheduleRow]:
        return [ctx.row(sign_type, ctx.room_number, room_name, "Auto")]

    return generate


def _rule(category: Category, pattern: str, generate: RowGenerator) -> KeywordRule:
    return KeywordRule(category, re.compile(pattern, re.IGNORECASE), generate)


KEYWORD_RULES: tuple[KeywordRule, ...] = (
    _rule(Category.ELEVATOR, r"ELEV(?:ATOR|\.|\b)", _elevator),
    _rule(Category.STAIR, r"STAIR", _stair),
    _rule(
        Category.WOMENS_RR,
        r"WOMEN|LADIES|WOMEN'S|WOMAN|GIRLS|W\.?C\.?",
        _single("FOH", "WOMEN'S RESTROOM"),
    ),
    _rule(Category.MENS_RR, r"MEN|MEN'S|BOYS|MENS|M\.?C\.?", _single("FOH", "MEN'S RESTROOM")),
    _rule(Category.RESTROOM, r"TOILET|RESTROOM|BATH", _single("FOH", "RESTROOM")),
    _rule(Category.ELECTRICAL, r"ELECTRICAL", _single("BOH", "ELECTRICAL")),
    _rule(Category.DATA, r"DATA|IT CLOSET|IDF|MDF", _single("BOH", "DATA")),
    _rule(Category.EXIT, r"EXIT", _exit),
    _rule(Category.LOBBY, r"LOBBY", _inert),
    _rule(Category.BOH_MISC, r"MECHANICAL|JANITOR|CUSTOD(?:IAL|IAN)", _single("BOH", "MECH/JANITORIAL")),
    _rule(Category.YOGA, r"YOGA", _single("FOH", "YOGA")),
    _rule(Category.PR_FIT, r"PR\s*FIT|PRFIT", _single("FOH", "PR FIT")),
)


def match_categories(
    text: str | None, rules: tuple[KeywordRule, ...] = KEYWORD_RULES
) -> list[KeywordRule]:
    if not text:
        return []
    return [rule for rule in rules if rule.pattern.search(text)]


def apply(
    text: str | None,
    project: Project,
    preset: str | Preset | None = Preset.SOUTHWOOD,
    *,
    rules: tuple[KeywordRule, ...] = KEYWORD_RULES,
) -> ApplyResult:
    """Append rows for every keyword found in ``text`` and deduplicate the schedule."""
    ctx = RuleContext(text=text or "", project=project, preset=Preset.parse(preset))
    before = len(project.schedule)
    matched = match_categories(ctx.text, rules)
    generated = 0
    for rule in matched:
        rows = rule.generate(ctx)
        logger.debug("Rule %s produced %d row(s)", rule.category.value, len(rows))
        project.schedule.extend(rows)
        generated += len(rows)
    project.schedule[:] = dedupe_rows(project.schedule)
    return ApplyResult(
        generated=generated,
        delta=len(project.schedule) - before,
        categories=tuple(rule.category for rule in matched),
    )
