"""Task records and the per-invocation task snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class TaskStatus(str, Enum):
    TODO = "todo"
    DOING = "doing"
    REVIEW = "review"
    DONE = "done"
    BLOCKED = "blocked"

    @classmethod
    def parse(cls, raw: object) -> TaskStatus:
        """Parse a status string; unknown values raise ``ValueError``."""
        if isinstance(raw, cls):
            return raw
        value = str(raw).strip().lower()
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise ValueError(f"unknown status {raw!r} (expected one of: {allowed})") from None


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @classmethod
    def parse(cls, raw: object) -> Priority:
        if isinstance(raw, cls):
            return raw
        value = str(raw).strip().lower()
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(p.value for p in cls)
            raise ValueError(f"unknown priority {raw!r} (expected one of: {allowed})") from None


@dataclass
class Task:
    id: str
    title: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: Priority = Priority.MEDIUM
    dependencies: list[str] = field(default_factory=list)
    area: str = ""
    tags: list[str] = field(default_factory=list)
    assignee: str | None = None
    estimate: str | None = None
    complexity: int | None = None
    content: str = ""

    def __post_init__(self) -> None:
        if not self.area and "-" in self.id:
            self.area = self.id.rsplit("-", 1)[0]

    @property
    def is_done(self) -> bool:
        return self.status is TaskStatus.DONE


@dataclass
class ParseError:
    path: str
    message: str


@dataclass
class TaskSnapshot:
    """Active and archived tasks loaded once per invocation."""

    active: list[Task] = field(default_factory=list)
    archived: list[Task] = field(default_factory=list)
    parse_errors: list[ParseError] = field(default_factory=list)

    def all_tasks(self) -> list[Task]:
        return [*self.active, *self.archived]

    def all_ids(self) -> set[str]:
        return {t.id for t in self.active} | {t.id for t in self.archived}

    def active_ids(self) -> set[str]:
        return {t.id for t in self.active}

    def get_task(self, task_id: str) -> Task | None:
        for t in self.active:
            if t.id == task_id:
                return t
        for t in self.archived:
            if t.id == task_id:
                return t
        return None
