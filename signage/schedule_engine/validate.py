"""Cross-row consistency checks over a project's schedule."""
from __future__ import annotations

from collections.abc import Callable, Iterable

from .rules import ELEVATOR_BUNDLE, ELEVATOR_LOBBY, STAIR_BUNDLE
from .schedule import Project, ScheduleRow

UTILITY_ROOMS = {"ELECTRICAL", "DATA"}


def group_sign_types(
    rows: Iterable[ScheduleRow],
    sign_types: tuple[str, ...],
    key: Callable[[ScheduleRow], str],
    default: str,
) -> dict[str, set[str]]:
    groups: dict[str, set[str]] = {}
    for row in rows:
        sign_type = row.sign_type.upper()
        if sign_type not in sign_types:
            continue
        groups.setdefault(key(row) or default, set()).add(sign_type)
    return groups


def elevator_issues(rows: list[ScheduleRow]) -> list[str]:
    issues = []
    groups = group_sign_types(rows, ELEVATOR_BUNDLE, lambda row: row.room_name, ELEVATOR_LOBBY)
    for room, present in groups.items():
        for required in ELEVATOR_BUNDLE:
            if required not in present:
                issues.append(f"Elevator bundle incomplete in {room}: missing {required}")
    return issues


def stair_issues(rows: list[ScheduleRow]) -> list[str]:
    issues = []
    groups = group_sign_types(rows, STAIR_BUNDLE, lambda row: row.room_number, "?")
    for room, present in groups.items():
        for required in STAIR_BUNDLE:
            if required not in present:
                issues.append(f"Stair {room}: missing {required}")
    return issues


def exit_issues(rows: list[ScheduleRow], project: Project) -> list[str]:
    if project.is_ground_level:
        return []
    return [
        "EXIT present but project level is not 1"
        for row in rows
        if row.sign_type.upper() == "EXIT"
    ]


def utility_issues(rows: list[ScheduleRow]) -> list[str]:
    return [
        f"{row.room_name}: should be BOH"
        for row in rows
        if row.room_name.upper() in UTILITY_ROOMS and row.sign_type.upper() != "BOH"
    ]


def validate(project: Project) -> list[str]:
    """Return advisory issues for ``project``; an empty list means all good."""
    rows = list(project.schedule)
    return [
        *elevator_issues(rows),
        *stair_issues(rows),
        *exit_issues(rows, project),
        *utility_issues(rows),
    ]
