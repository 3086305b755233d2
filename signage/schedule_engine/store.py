"""Project store persistence."""
from __future__ import annotations

import json
import os
import uuid
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, cast

from .schedule import Project

DEFAULT_STORE_NAME = "signage_projects.json"


def now_iso() -> str:
    return datetime.now(UTC).replace(microsecond=0).isoformat()


def resolve_store_path(path: str | None) -> Path:
    if path:
        return Path(path).expanduser().resolve()
    env_value = os.environ.get("SIGNAGE_STORE")
    if env_value:
        return Path(env_value).expanduser().resolve()
    return Path.cwd() / DEFAULT_STORE_NAME


def ensure_store() -> dict[str, Any]:
    timestamp = now_iso()
    return {
        "metadata": {
            "created_at": timestamp,
            "updated_at": timestamp,
            "project_count": 0,
        },
        "projects": {},
    }


def load_store(path: Path) -> dict[str, Any]:
    if not path.exists():
        return ensure_store()
    with path.open("r", encoding="utf-8") as fh:
        return cast(dict[str, Any], json.load(fh))


def save_store(path: Path, store: Mapping[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(store, fh, indent=2, sort_keys=True, ensure_ascii=False)


def _touch(store: dict[str, Any]) -> None:
    projects = cast(dict[str, Any], store.setdefault("projects", {}))
    metadata = cast(dict[str, Any], store.setdefault("metadata", {}))
    metadata["updated_at"] = now_iso()
    metadata["project_count"] = len(projects)


def new_project_id() -> str:
    return "p-" + uuid.uuid4().hex[:7]


def create_project(store: dict[str, Any], name: str) -> Project:
    project = Project(id=new_project_id(), name=name.strip() or "Untitled")
    put_project(store, project)
    return project


def get_project(store: Mapping[str, Any], key: str) -> Project | None:
    """Find a project by id, falling back to a case-insensitive name match."""
    projects = cast(Mapping[str, Mapping[str, Any]], store.get("projects", {}))
    if key in projects:
        return Project.from_dict(projects[key])
    wanted = key.strip().lower()
    for data in projects.values():
        if str(data.get("name", "")).strip().lower() == wanted:
            return Project.from_dict(data)
    return None


def list_projects(store: Mapping[str, Any]) -> list[Project]:
    projects = cast(Mapping[str, Mapping[str, Any]], store.get("projects", {}))
    return [Project.from_dict(data) for data in projects.values()]


def put_project(store: dict[str, Any], project: Project) -> None:
    projects = cast(dict[str, Any], store.setdefault("projects", {}))
    projects[project.id] = project.to_dict()
    _touch(store)


def delete_project(store: dict[str, Any], project_id: str) -> bool:
    projects = cast(dict[str, Any], store.setdefault("projects", {}))
    if projects.pop(project_id, None) is None:
        return False
    _touch(store)
    return True
