"""Schedule writers for spreadsheet tools."""
from __future__ import annotations

import csv
import re
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from .schedule import FIELDNAMES, Project
from .validate import validate

HEADER_FILL = "1F4E79"
COLUMN_WIDTHS = {
    "SignType": 16,
    "RoomNumber": 14,
    "RoomName": 28,
    "Building": 16,
    "Level": 8,
    "Notes": 32,
}


def default_filename(project: Project, extension: str) -> str:
    stem = re.sub(r"[^A-Za-z0-9_-]+", "_", project.name.strip()).strip("_") or "project"
    return f"{stem}_schedule.{extension}"


def write_csv(project: Project, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as fh:
        writer = csv.DictWriter(fh, fieldnames=list(FIELDNAMES))
        writer.writeheader()
        for row in project.schedule:
            writer.writerow(row.to_dict())
    return path


def write_xlsx(project: Project, path: Path) -> Path:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Schedule"
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color=HEADER_FILL, end_color=HEADER_FILL, fill_type="solid")

    sheet.append(list(FIELDNAMES))
    for column, name in enumerate(FIELDNAMES, start=1):
        cell = sheet.cell(row=1, column=column)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center")
        sheet.column_dimensions[get_column_letter(column)].width = COLUMN_WIDTHS[name]
    for row in project.schedule:
        sheet.append([row.to_dict()[name] for name in FIELDNAMES])
    sheet.freeze_panes = "A2"

    issues_sheet = workbook.create_sheet("Issues")
    issues_sheet.append(["Issue"])
    issues_sheet.cell(row=1, column=1).font = Font(bold=True)
    issues_sheet.column_dimensions["A"].width = 60
    for issue in validate(project):
        issues_sheet.append([issue])

    path.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(str(path))
    return path
