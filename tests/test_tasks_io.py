"""Tests for taskguard.tasks.io — task file parsing and snapshot loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from taskguard.tasks.io import TaskParseError, load_snapshot, parse_task
from taskguard.tasks.model import Priority, TaskStatus


FULL_TASK = """---
id: backend-002
title: JWT authentication
status: doing
priority: high
tags: [auth, api]
dependencies: [setup-001, backend-001]
assignee: ada
created: 2025-01-15T10:00:00Z
estimate: 4h
complexity: 5
area: backend
---

# JWT authentication

## Tasks
- [ ] Issue tokens
"""


class TestParseTask:
    def test_full_front_matter(self) -> None:
        task = parse_task(FULL_TASK)
        assert task.id == "backend-002"
        assert task.title == "JWT authentication"
        assert task.status is TaskStatus.DOING
        assert task.priority is Priority.HIGH
        assert task.dependencies == ["setup-001", "backend-001"]
        assert task.tags == ["auth", "api"]
        assert task.assignee == "ada"
        assert task.estimate == "4h"
        assert task.complexity == 5
        assert task.content.startswith("# JWT authentication")

    def test_minimal_defaults(self) -> None:
        task = parse_task("---\nid: docs-001\ntitle: Write docs\n---\n")
        assert task.status is TaskStatus.TODO
        assert task.priority is Priority.MEDIUM
        assert task.dependencies == []
        assert task.area == "docs"

    def test_status_is_case_insensitive(self) -> None:
        assert parse_task("---\nid: a-001\ntitle: A\nstatus: Done\n---\n").status is TaskStatus.DONE

    def test_single_dependency_string(self) -> None:
        task = parse_task("---\nid: a-002\ntitle: A\ndependencies: a-001\n---\n")
        assert task.dependencies == ["a-001"]

    def test_empty_dependency_entries_dropped(self) -> None:
        task = parse_task("---\nid: a-002\ntitle: A\ndependencies: [a-001, '', null]\n---\n")
        assert task.dependencies == ["a-001"]

    @pytest.mark.parametrize(
        "text, fragment",
        [
            ("# no front-matter\n", "front-matter"),
            ("---\nid: a-001\ntitle: A\n", "unterminated"),
            ("---\n- just\n- a list\n---\n", "mapping"),
            ("---\ntitle: A\n---\n", "missing id"),
            ("---\nid: a-001\n---\n", "missing title"),
            ("---\nid: a-001\ntitle: A\nstatus: finished\n---\n", "unknown status"),
            ("---\nid: a-001\ntitle: A\npriority: urgent\n---\n", "unknown priority"),
            ("---\nid: a-001\ntitle: A\ncomplexity: lots\n---\n", "complexity"),
            ("---\nid: a-001\ntitle: A\ndependencies: {x: 1}\n---\n", "dependencies"),
            ("---\nid: [unclosed\n---\n", "invalid YAML"),
        ],
    )
    def test_invalid_files(self, text: str, fragment: str) -> None:
        with pytest.raises(TaskParseError, match=fragment):
            parse_task(text)


class TestLoadSnapshot:
    def test_active_archived_and_errors(self, project: Path, write_task) -> None:
        write_task(project / "tasks" / "setup" / "setup-001.md", "setup-001", status="done")
        write_task(project / "tasks" / "api" / "api-001.md", "api-001", dependencies=["setup-001"])
        write_task(project / ".taskguard" / "archive" / "api-000.md", "api-000", status="done")
        (project / "tasks" / "broken.md").write_text("no front-matter here\n", encoding="utf-8")
        (project / "tasks" / "notes.txt").write_text("ignored\n", encoding="utf-8")

        snapshot = load_snapshot(project)

        assert sorted(t.id for t in snapshot.active) == ["api-001", "setup-001"]
        assert [t.id for t in snapshot.archived] == ["api-000"]
        assert len(snapshot.parse_errors) == 1
        assert snapshot.parse_errors[0].path.endswith("broken.md")
        assert snapshot.get_task("api-000").is_done
        assert snapshot.get_task("api-001").dependencies == ["setup-001"]

    def test_missing_directories(self, tmp_path: Path) -> None:
        snapshot = load_snapshot(tmp_path)
        assert snapshot.active == []
        assert snapshot.archived == []
        assert snapshot.parse_errors == []
