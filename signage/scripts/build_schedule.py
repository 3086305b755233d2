#!/usr/bin/env python3
"""CLI entrypoint for the sign schedule builder."""
from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Any

from signage.schedule_engine import export, extract, pins, renderer, rules, store
from signage.schedule_engine.schedule import FIELDNAMES, Project, ScheduleRow
from signage.schedule_engine.validate import validate

logger = logging.getLogger("signage.schedule_engine.cli")


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


def resolve_preset(value: str | None) -> str:
    return value or os.environ.get("SIGNAGE_PRESET") or rules.Preset.SOUTHWOOD.value


def open_store(args: argparse.Namespace) -> tuple[Path, dict[str, Any]]:
    path = store.resolve_store_path(args.store)
    return path, store.load_store(path)


def require_project(store_data: dict[str, Any], key: str) -> Project:
    project = store.get_project(store_data, key)
    if project is None:
        raise SystemExit(f"Project not found: {key}")
    return project


def commit(path: Path, store_data: dict[str, Any], project: Project) -> None:
    store.put_project(store_data, project)
    store.save_store(path, store_data)


def resolve_page(project: Project, page: int) -> int:
    if not project.pages:
        raise SystemExit("No pages uploaded yet. Run 'scan' with a plan file first.")
    index = page - 1
    if not 0 <= index < len(project.pages):
        raise SystemExit(f"Page {page} out of range (1-{len(project.pages)})")
    return index


def report_issues(project: Project) -> list[str]:
    issues = validate(project)
    if not issues:
        logger.info("All good!")
    for issue in issues:
        logger.warning("%s", issue)
    return issues


def command_new(args: argparse.Namespace) -> None:
    path, store_data = open_store(args)
    project = store.create_project(store_data, args.name)
    project.building = args.building or ""
    project.level = args.level or ""
    commit(path, store_data, project)
    logger.info("Created project %s (%s)", project.name, project.id)


def command_list(args: argparse.Namespace) -> None:
    _, store_data = open_store(args)
    projects = store.list_projects(store_data)
    if not projects:
        print("No projects.")
        return
    print("Id".ljust(12), "Name".ljust(30), "Building".ljust(14), "Level".ljust(6), "Pages", "Rows")
    print("-" * 80)
    for project in projects:
        print(
            project.id.ljust(12),
            project.name.ljust(30),
            project.building.ljust(14),
            project.level.ljust(6),
            str(len(project.pages)).ljust(5),
            len(project.schedule),
        )


def command_set(args: argparse.Namespace) -> None:
    path, store_data = open_store(args)
    project = require_project(store_data, args.project)
    if args.name is not None:
        project.name = args.name
    if args.building is not None:
        project.building = args.building
    if args.level is not None:
        project.level = args.level
    commit(path, store_data, project)
    logger.info(
        "Project %s: building=%r level=%r", project.name, project.building, project.level
    )


def command_scan(args: argparse.Namespace) -> None:
    path, store_data = open_store(args)
    project = require_project(store_data, args.project)
    plan_path = Path(args.file).expanduser().resolve()
    if not plan_path.exists():
        raise SystemExit(f"Plan file not found: {plan_path}")
    if plan_path.suffix.lower() not in extract.SUPPORTED_EXTENSIONS:
        raise SystemExit(f"Unsupported plan file: {plan_path.name}")
    pages, meta = extract.extract_plan_pages(
        plan_path,
        min_pdf_chars=args.min_pdf_chars,
        pdf_backends=parse_backend_list(args.pdf_backends),
        ocr_lang=args.ocr_lang,
        use_ocr=not args.no_ocr,
    )
    for warning in meta.get("warnings", []):
        logger.debug("%s: %s", plan_path.name, warning)
    if meta.get("error"):
        logger.warning("%s: %s", plan_path.name, meta["error"])
    project.pages.extend(pages)
    commit(path, store_data, project)
    with_text = sum(1 for page in pages if page.text.strip())
    logger.info(
        "Added %d page(s) from %s (%d with text)", len(pages), plan_path.name, with_text
    )


def command_generate(args: argparse.Namespace) -> None:
    path, store_data = open_store(args)
    project = require_project(store_data, args.project)
    index = resolve_page(project, args.page)
    text = project.page_text(index)
    if not text.strip():
        raise SystemExit(
            f"No text for page {args.page}. Run 'scan' on a plan with text or OCR first."
        )
    result = rules.apply(text, project, resolve_preset(args.preset))
    commit(path, store_data, project)
    if not result.generated:
        logger.info(
            "No keyword matches found. You can still add rows manually or drop bundles."
        )
    else:
        logger.info(
            "Added %d row(s) from text (schedule changed by %+d)", result.generated, result.delta
        )
    report_issues(project)


def command_pin(args: argparse.Namespace) -> None:
    path, store_data = open_store(args)
    project = require_project(store_data, args.project)
    index = resolve_page(project, args.page)
    try:
        preset = pins.find_preset(args.preset)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc
    added = pins.drop_pin(project, preset, page=index, x=args.x, y=args.y)
    commit(path, store_data, project)
    logger.info("Dropped %s pin on page %d (%d row(s))", preset.label, args.page, len(added))
    report_issues(project)


def command_add_row(args: argparse.Namespace) -> None:
    path, store_data = open_store(args)
    project = require_project(store_data, args.project)
    payload = {
        name: value
        for name, value in (
            ("SignType", args.sign_type),
            ("RoomNumber", args.room_number),
            ("RoomName", args.room_name),
            ("Notes", args.notes),
        )
        if value is not None
    }
    row = project.blank_row().merged(payload)
    if args.room_name is None:
        row.room_name = rules.default_room_name_for(row.sign_type)
    project.schedule.append(row)
    commit(path, store_data, project)
    logger.info("Added row %d: %s", len(project.schedule), format_row(row))
    report_issues(project)


def resolve_row(project: Project, row: int) -> int:
    index = row - 1
    if not 0 <= index < len(project.schedule):
        raise SystemExit(f"Row {row} out of range (1-{len(project.schedule)})")
    return index


def command_edit_row(args: argparse.Namespace) -> None:
    path, store_data = open_store(args)
    project = require_project(store_data, args.project)
    index = resolve_row(project, args.row)
    payload = {
        name: value
        for name, value in (
            ("SignType", args.sign_type),
            ("RoomNumber", args.room_number),
            ("RoomName", args.room_name),
            ("Building", args.building),
            ("Level", args.level),
            ("Notes", args.notes),
        )
        if value is not None
    }
    if not payload:
        raise SystemExit("Nothing to edit. Pass at least one field option.")
    row = project.schedule[index].merged(payload)
    project.schedule[index] = row
    commit(path, store_data, project)
    logger.info("Updated row %d: %s", args.row, format_row(row))
    report_issues(project)


def command_delete_row(args: argparse.Namespace) -> None:
    path, store_data = open_store(args)
    project = require_project(store_data, args.project)
    index = resolve_row(project, args.row)
    removed = project.schedule.pop(index)
    commit(path, store_data, project)
    logger.info("Deleted row %d: %s", args.row, format_row(removed))
    report_issues(project)


def command_clear(args: argparse.Namespace) -> None:
    path, store_data = open_store(args)
    project = require_project(store_data, args.project)
    if args.page is not None and not args.pins:
        raise SystemExit("--page only applies together with --pins")
    if args.pins:
        if args.page is None:
            project.pins.clear()
        else:
            project.pins = [pin for pin in project.pins if pin.page != args.page - 1]
        logger.info("Cleared pins")
    else:
        count = len(project.schedule)
        project.schedule.clear()
        logger.info("Cleared %d schedule row(s)", count)
    commit(path, store_data, project)


def command_validate(args: argparse.Namespace) -> None:
    _, store_data = open_store(args)
    project = require_project(store_data, args.project)
    report_issues(project)


def command_export(args: argparse.Namespace) -> None:
    _, store_data = open_store(args)
    project = require_project(store_data, args.project)
    extension = args.format
    output = (
        Path(args.output).expanduser().resolve()
        if args.output
        else Path.cwd() / export.default_filename(project, extension)
    )
    if extension == "csv":
        export.write_csv(project, output)
    elif extension == "xlsx":
        export.write_xlsx(project, output)
    else:
        renderer.render_summary(project, output)
    logger.info("Wrote %d row(s) to %s", len(project.schedule), output)


def format_row(row: ScheduleRow) -> str:
    values = row.to_dict()
    return " | ".join(f"{name}={values[name]}" for name in FIELDNAMES if values[name])


def parse_backend_list(value: str | None) -> list[str] | None:
    if not value:
        return None
    parts = [entry.strip() for entry in value.split(",") if entry.strip()]
    return parts or None


def build_parser() -> argparse.ArgumentParser:
    parser_obj = argparse.ArgumentParser(description="Build architectural sign schedules")
    parser_obj.add_argument("--store", help="Project store path (overrides SIGNAGE_STORE)")
    parser_obj.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser_obj.add_subparsers(dest="command")

    new_parser = subparsers.add_parser("new", help="Create a project")
    new_parser.add_argument("name")
    new_parser.add_argument("--building")
    new_parser.add_argument("--level")
    new_parser.set_defaults(func=command_new)

    list_parser = subparsers.add_parser("list", help="List projects")
    list_parser.set_defaults(func=command_list)

    set_parser = subparsers.add_parser("set", help="Update project name, building or level")
    set_parser.add_argument("project", help="Project id or name")
    set_parser.add_argument("--name")
    set_parser.add_argument("--building")
    set_parser.add_argument("--level")
    set_parser.set_defaults(func=command_set)

    scan_parser = subparsers.add_parser("scan", help="Add a plan file and extract page text")
    scan_parser.add_argument("project", help="Project id or name")
    scan_parser.add_argument("file", help="PDF, image or text file")
    scan_parser.add_argument(
        "--pdf-backends",
        help="Comma-separated PDF extraction backend order (overrides SIGNAGE_PDF_BACKENDS)",
    )
    scan_parser.add_argument(
        "--min-pdf-chars",
        type=int,
        help="Minimum embedded text before falling back to OCR (overrides SIGNAGE_MIN_PDF_CHARS)",
    )
    scan_parser.add_argument("--ocr-lang", help="Tesseract language (overrides SIGNAGE_OCR_LANG)")
    scan_parser.add_argument("--no-ocr", action="store_true", help="Skip OCR fallback")
    scan_parser.set_defaults(func=command_scan)

    generate_parser = subparsers.add_parser("generate", help="Generate rows from page text")
    generate_parser.add_argument("project", help="Project id or name")
    generate_parser.add_argument("--page", type=int, default=1, help="1-based page number")
    generate_parser.add_argument("--preset", help="Rule preset (overrides SIGNAGE_PRESET)")
    generate_parser.set_defaults(func=command_generate)

    pin_parser = subparsers.add_parser("pin", help="Drop a palette pin on a page")
    pin_parser.add_argument("project", help="Project id or name")
    pin_parser.add_argument("--page", type=int, default=1, help="1-based page number")
    pin_parser.add_argument(
        "--preset",
        required=True,
        help="Palette key or label: "
        + ", ".join(f"{preset.key}={preset.label}" for preset in pins.PALETTE),
    )
    pin_parser.add_argument("--x", type=float, default=0.0)
    pin_parser.add_argument("--y", type=float, default=0.0)
    pin_parser.set_defaults(func=command_pin)

    add_parser = subparsers.add_parser("add-row", help="Append a manual schedule row")
    add_parser.add_argument("project", help="Project id or name")
    add_parser.add_argument("--sign-type")
    add_parser.add_argument("--room-number")
    add_parser.add_argument("--room-name")
    add_parser.add_argument("--notes")
    add_parser.set_defaults(func=command_add_row)

    edit_parser = subparsers.add_parser("edit-row", help="Change fields of a schedule row")
    edit_parser.add_argument("project", help="Project id or name")
    edit_parser.add_argument("row", type=int, help="1-based row number")
    edit_parser.add_argument("--sign-type")
    edit_parser.add_argument("--room-number")
    edit_parser.add_argument("--room-name")
    edit_parser.add_argument("--building")
    edit_parser.add_argument("--level")
    edit_parser.add_argument("--notes")
    edit_parser.set_defaults(func=command_edit_row)

    delete_parser = subparsers.add_parser("delete-row", help="Delete a schedule row")
    delete_parser.add_argument("project", help="Project id or name")
    delete_parser.add_argument("row", type=int, help="1-based row number")
    delete_parser.set_defaults(func=command_delete_row)

    clear_parser = subparsers.add_parser("clear", help="Clear the schedule or pins")
    clear_parser.add_argument("project", help="Project id or name")
    clear_parser.add_argument("--pins", action="store_true", help="Clear pins instead of rows")
    clear_parser.add_argument(
        "--page", type=int, help="Only clear pins on this page (requires --pins)"
    )
    clear_parser.set_defaults(func=command_clear)

    validate_parser = subparsers.add_parser("validate", help="Check schedule consistency")
    validate_parser.add_argument("project", help="Project id or name")
    validate_parser.set_defaults(func=command_validate)

    export_parser = subparsers.add_parser("export", help="Export the schedule")
    export_parser.add_argument("project", help="Project id or name")
    export_parser.add_argument("--format", choices=["csv", "xlsx", "md"], default="csv")
    export_parser.add_argument("--output", help="Output path")
    export_parser.set_defaults(func=command_export)

    return parser_obj


def main(argv: list[str] | None = None) -> None:
    parser_obj = build_parser()
    args = parser_obj.parse_args(argv)
    if not getattr(args, "command", None):
        parser_obj.print_help()
        return
    configure_logging(args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()
