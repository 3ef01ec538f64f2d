"""Shared fixtures for taskguard tests.

File handling in tests:
- Use tmp_path for any directory or file creation so tests are isolated and cleaned up.
- Git-backed tests build a real repository with the ``git_repo`` fixture.
"""

from __future__ import annotations

import subprocess
from datetime import datetime, timezone
from pathlib import Path

import pytest

from taskguard.activity import CommitRecord, extract_task_ids
from taskguard.tasks.model import Task, TaskSnapshot, TaskStatus


def _git(repo: Path, *args: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(["git", *args], cwd=repo, capture_output=True, text=True)


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Create a minimal git repo (no commits yet)."""
    repo = tmp_path / "repo"
    repo.mkdir()
    subprocess.run(["git", "init"], cwd=repo, capture_output=True, check=True)
    _git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    _git(repo, "config", "user.name", "Test User")
    _git(repo, "config", "user.email", "test@example.com")
    _git(repo, "config", "commit.gpgsign", "false")
    return repo


@pytest.fixture
def commit():
    """Factory fixture: ``commit(repo, message)`` creates an empty commit."""

    def _commit(repo: Path, message: str) -> None:
        subprocess.run(
            ["git", "commit", "--allow-empty", "-m", message],
            cwd=repo,
            capture_output=True,
            check=True,
        )

    return _commit


def _make_task(
    id: str,
    status: TaskStatus | str = TaskStatus.TODO,
    dependencies: list[str] | None = None,
    title: str = "",
) -> Task:
    return Task(
        id=id,
        title=title or f"Task {id}",
        status=TaskStatus.parse(status),
        dependencies=dependencies or [],
    )


def _make_snapshot(active: list[Task], archived: list[Task] | None = None) -> TaskSnapshot:
    return TaskSnapshot(active=active, archived=archived or [])


@pytest.fixture
def make_task():
    """Factory fixture that creates Task instances."""
    return _make_task


@pytest.fixture
def make_snapshot():
    """Factory fixture that creates TaskSnapshot instances."""
    return _make_snapshot


def _make_commits(messages: list[str], start: int = 1_700_000_000) -> list[CommitRecord]:
    """Commit records for *messages* (newest first), one minute apart."""
    records = []
    for i, message in enumerate(messages):
        records.append(
            CommitRecord(
                hash=f"{i:040x}",
                message=message,
                author="Test User",
                timestamp=datetime.fromtimestamp(start - 60 * i, tz=timezone.utc),
                referenced_ids=tuple(extract_task_ids(message)),
            )
        )
    return records


@pytest.fixture
def make_commits():
    """Factory fixture that creates CommitRecord lists from messages."""
    return _make_commits


def write_task_file(
    path: Path,
    id: str,
    title: str = "",
    status: str = "todo",
    dependencies: list[str] | None = None,
    body: str = "## Objectives\n- [ ] Do it\n",
) -> Path:
    deps = ", ".join(dependencies or [])
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        "---\n"
        f"id: {id}\n"
        f"title: {title or 'Task ' + id}\n"
        f"status: {status}\n"
        "priority: medium\n"
        f"dependencies: [{deps}]\n"
        "---\n\n"
        f"{body}",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """An empty TaskGuard project root (``.taskguard/`` + ``tasks/``)."""
    root = tmp_path / "project"
    (root / ".taskguard").mkdir(parents=True)
    (root / "tasks").mkdir()
    return root


@pytest.fixture
def write_task():
    """Factory fixture: ``write_task(path, id, ...)`` writes a task file."""
    return write_task_file
