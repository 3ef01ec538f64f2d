"""Load task files (YAML front-matter + Markdown body) into a snapshot."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from taskguard import log
from taskguard.config import archive_dir, tasks_dir
from taskguard.tasks.model import ParseError, Priority, Task, TaskSnapshot, TaskStatus


class TaskParseError(ValueError):
    """A task file could not be turned into a :class:`Task`."""


def _as_str_list(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise TaskParseError(f"'{field_name}' must be a list, got {type(value).__name__}")
    return [str(v) for v in value if v is not None and str(v).strip()]


def parse_task(text: str) -> Task:
    """Parse the contents of a single task file.

    Raises ``TaskParseError`` when the front-matter is missing, is not valid
    YAML, lacks ``id``/``title``, or carries an unknown status/priority.
    """
    if not text.lstrip().startswith("---"):
        raise TaskParseError("missing YAML front-matter")
    parts = text.lstrip().split("---", 2)
    if len(parts) < 3:
        raise TaskParseError("unterminated YAML front-matter")

    try:
        data = yaml.safe_load(parts[1])
    except yaml.YAMLError as exc:
        raise TaskParseError(f"invalid YAML front-matter: {exc}") from exc
    if not isinstance(data, dict):
        raise TaskParseError("front-matter must be a mapping")

    task_id = str(data.get("id") or "").strip()
    if not task_id:
        raise TaskParseError("missing id")
    title = str(data.get("title") or "").strip()
    if not title:
        raise TaskParseError(f"{task_id}: missing title")

    try:
        status = TaskStatus.parse(data.get("status", TaskStatus.TODO.value))
        priority = Priority.parse(data.get("priority", Priority.MEDIUM.value))
    except ValueError as exc:
        raise TaskParseError(f"{task_id}: {exc}") from exc

    complexity = data.get("complexity")
    if complexity is not None:
        try:
            complexity = int(complexity)
        except (TypeError, ValueError):
            raise TaskParseError(f"{task_id}: complexity must be an integer") from None

    assignee = data.get("assignee")
    estimate = data.get("estimate")
    return Task(
        id=task_id,
        title=title,
        status=status,
        priority=priority,
        dependencies=_as_str_list(data.get("dependencies"), "dependencies"),
        area=str(data.get("area") or ""),
        tags=_as_str_list(data.get("tags"), "tags"),
        assignee=str(assignee) if assignee is not None else None,
        estimate=str(estimate) if estimate is not None else None,
        complexity=complexity,
        content=parts[2].strip(),
    )


def load_task_file(path: Path) -> Task:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise TaskParseError(f"cannot read file: {exc}") from exc
    return parse_task(text)


def _load_dir(directory: Path, errors: list[ParseError]) -> list[Task]:
    if not directory.is_dir():
        return []
    tasks: list[Task] = []
    for path in sorted(directory.rglob("*.md")):
        if not path.is_file():
            continue
        try:
            tasks.append(load_task_file(path))
        except TaskParseError as exc:
            log.debug(f"Skipping {path}: {exc}")
            errors.append(ParseError(path=str(path), message=str(exc)))
    return tasks


def load_snapshot(root: Path) -> TaskSnapshot:
    """Read every task under ``tasks/`` and ``.taskguard/archive/`` of *root*.

    Unparseable files are recorded in ``parse_errors`` rather than aborting
    the load.
    """
    errors: list[ParseError] = []
    active = _load_dir(tasks_dir(root), errors)
    archived = _load_dir(archive_dir(root), errors)
    log.debug(f"Loaded {len(active)} active and {len(archived)} archived tasks from {root}")
    return TaskSnapshot(active=active, archived=archived, parse_errors=errors)
