"""Configuration defaults, env vars, and project layout helpers for TaskGuard."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


VERSION = "0.4.0"

PROJECT_DIR_NAME = ".taskguard"
TASKS_DIR_NAME = "tasks"
ARCHIVE_DIR_NAME = "archive"

DEFAULT_ROOT_TASK = "setup-001"
DEFAULT_REMOTE = "origin"
DEFAULT_COMMIT_LIMIT = 50
DEFAULT_CONFLICT_MARGIN = 0.2


@dataclass
class Config:
    """Runtime configuration for one invocation.

    Empty/unset fields are resolved from ``TASKGUARD_*`` environment
    variables first, then from the module defaults.
    """

    # Validation
    root_task_id: str = ""

    # Git
    commit_limit: int = DEFAULT_COMMIT_LIMIT
    remote: str = ""
    conflict_margin: float | None = None

    # Misc
    verbose: bool = False

    def __post_init__(self) -> None:
        if not self.root_task_id:
            self.root_task_id = os.environ.get("TASKGUARD_ROOT_TASK") or DEFAULT_ROOT_TASK
        if not self.remote:
            self.remote = os.environ.get("TASKGUARD_REMOTE") or DEFAULT_REMOTE
        if self.conflict_margin is None:
            raw = os.environ.get("TASKGUARD_CONFLICT_MARGIN", "")
            try:
                self.conflict_margin = float(raw) if raw else DEFAULT_CONFLICT_MARGIN
            except ValueError:
                raise ValueError(f"TASKGUARD_CONFLICT_MARGIN must be a number, got {raw!r}") from None
        if self.conflict_margin < 0:
            raise ValueError(f"conflict margin must be >= 0, got {self.conflict_margin}")
        if self.commit_limit < 1:
            raise ValueError(f"commit limit must be >= 1, got {self.commit_limit}")


def find_project_root(start: Path | None = None) -> Path | None:
    """Return the nearest ancestor of *start* holding a ``.taskguard`` directory."""
    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / PROJECT_DIR_NAME).is_dir():
            return candidate
    return None


def require_project_root(start: Path | None = None) -> Path:
    root = find_project_root(start)
    if root is None:
        raise FileNotFoundError(
            f"Not in a TaskGuard project (no {PROJECT_DIR_NAME}/ directory found). "
            f"Create {PROJECT_DIR_NAME}/ at the repository root first."
        )
    return root


def tasks_dir(root: Path) -> Path:
    return root / TASKS_DIR_NAME


def archive_dir(root: Path) -> Path:
    return root / PROJECT_DIR_NAME / ARCHIVE_DIR_NAME
