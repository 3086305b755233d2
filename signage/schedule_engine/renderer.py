"""Rendering utilities for the schedule summary."""
from __future__ import annotations

from collections import Counter
from datetime import UTC, datetime
from pathlib import Path

from .schedule import FIELDNAMES, Project, ScheduleRow
from .validate import validate


def render_summary(project: Project, output_path: Path | None = None) -> str:
    issues = validate(project)
    type_counts: Counter[str] = Counter(row.sign_type or "(blank)" for row in project.schedule)
    now = datetime.now(UTC).replace(microsecond=0).isoformat()
    lines = [f"# Sign Schedule: {project.name}", "", f"_Generated: {now}_", ""]
    lines.append(f"**Building:** {project.building or '-'}  ")
    lines.append(f"**Level:** {project.level or '-'}  ")
    lines.append(f"**Total rows:** {len(project.schedule)}")
    lines.append("")
    if type_counts:
        type_summary = ", ".join(
            f"{sign_type} ({count})" for sign_type, count in sorted(type_counts.items())
        )
        lines.append(f"**By sign type:** {type_summary}")
        lines.append("")
    lines.append("## Schedule")
    lines.append("")
    if not project.schedule:
        lines.append("_No rows yet._")
    else:
        lines.append("| # | " + " | ".join(FIELDNAMES) + " |")
        lines.append("| --- " * (len(FIELDNAMES) + 1) + "|")
        for index, row in enumerate(project.schedule, start=1):
            lines.append(format_row(index, row))
    lines.append("")
    lines.append("## Issues")
    lines.append("")
    if not issues:
        lines.append("All good!")
    else:
        lines.extend(f"- {escape_cell(issue)}" for issue in issues)
    lines.append("")
    content = "\n".join(lines)
    if output_path is not None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")
    return content


def format_row(index: int, row: ScheduleRow) -> str:
    values = row.to_dict()
    cells = [escape_cell(values[name]) for name in FIELDNAMES]
    return f"| {index} | " + " | ".join(cells) + " |"


def escape_cell(value: str) -> str:
    return value.replace("|", "\\|")
