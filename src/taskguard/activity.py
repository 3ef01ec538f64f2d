"""Commit activity extraction: task-id references grouped per task."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from taskguard import log
from taskguard.git_ops import RawCommit, read_commit_log
from taskguard.inference import suggest_status
from taskguard.tasks.model import TaskStatus

MAX_IDS_PER_MESSAGE = 100
MAX_NORMALIZED_CHARS = 4096

# How far back to look for a version-number prefix such as "1.2.3-".
_VERSION_CONTEXT = 10

_SPACE_VARIANTS = dict.fromkeys(
    map(ord, "\u00a0\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"), " "
)
_ZERO_WIDTH = dict.fromkeys(map(ord, "\u200b\u200c\u200d\ufeff"))


@dataclass(frozen=True)
class CommitRecord:
    hash: str
    message: str
    author: str
    timestamp: datetime
    referenced_ids: tuple[str, ...] = ()


@dataclass
class TaskActivity:
    task_id: str
    commits: list[CommitRecord] = field(default_factory=list)  # newest first
    last_activity: datetime | None = None
    suggested_status: TaskStatus | None = None
    confidence: float = 0.0


# ── Reference patterns ──────────────────────────────────────────────


def _area_id(match: re.Match[str], message: str) -> str | None:
    preceding = message[max(0, match.start() - _VERSION_CONTEXT):match.start()]
    if "." in preceding and any(c.isdigit() for c in preceding):
        return None  # e.g. "1.2.3-backend-001"
    return f"{match.group(1)}-{match.group(2)}"


def _numbered_ref(match: re.Match[str], message: str) -> str | None:
    number = match.group(1)
    if int(number) == 0:
        return None
    return f"task-{number}"


Normalizer = Callable[[re.Match[str], str], str | None]

# (pattern, normalizer) pairs; add a row to recognise a new reference style.
REFERENCE_PATTERNS: tuple[tuple[re.Pattern[str], Normalizer], ...] = (
    (re.compile(r"\b([A-Za-z]{1,20})-(\d{3})\b"), _area_id),
    (re.compile(r"(?:\b(?:task|issue)|#)\s*(\d{1,6})\b", re.IGNORECASE), _numbered_ref),
)


def normalize_message(message: str) -> str:
    """Replace control and exotic space characters so word boundaries survive."""
    cleaned = "".join(
        " " if (ord(c) < 32 or 127 <= ord(c) < 160) and c not in "\n\t\r " else c
        for c in message
    )
    cleaned = cleaned.translate(_SPACE_VARIANTS).translate(_ZERO_WIDTH)
    return cleaned[:MAX_NORMALIZED_CHARS]


def extract_task_ids(message: str) -> list[str]:
    """Return the task ids referenced by *message*, deduplicated, first-seen order."""
    text = normalize_message(message)
    found: list[str] = []
    for pattern, normalize in REFERENCE_PATTERNS:
        for match in pattern.finditer(text):
            task_id = normalize(match, text)
            if task_id is None or task_id in found:
                continue
            found.append(task_id)
            if len(found) >= MAX_IDS_PER_MESSAGE:
                return found
    return found


def to_commit_records(raw_commits: Iterable[RawCommit]) -> list[CommitRecord]:
    """Attach referenced ids to each commit, dropping commits that reference none."""
    records: list[CommitRecord] = []
    for raw in raw_commits:
        ids = extract_task_ids(raw.message)
        if not ids:
            continue
        records.append(
            CommitRecord(
                hash=raw.hash,
                message=raw.message,
                author=raw.author,
                timestamp=raw.timestamp,
                referenced_ids=tuple(ids),
            )
        )
    return records


def build_activity(commits: Sequence[CommitRecord]) -> list[TaskActivity]:
    """Group *commits* (newest first) by referenced id and infer a status for each.

    The result is ordered by most recent activity, then by task id.
    """
    groups: dict[str, list[CommitRecord]] = {}
    for commit in commits:
        for task_id in commit.referenced_ids:
            groups.setdefault(task_id, []).append(commit)

    activities: list[TaskActivity] = []
    for task_id, group in groups.items():
        status, confidence = suggest_status(group)
        activities.append(
            TaskActivity(
                task_id=task_id,
                commits=group,
                last_activity=max(c.timestamp for c in group),
                suggested_status=status,
                confidence=confidence,
            )
        )

    activities.sort(key=lambda a: a.task_id)
    activities.sort(key=lambda a: a.last_activity, reverse=True)
    return activities


def analyze_ref(ref: str = "HEAD", limit: int = 100, cwd: Path | None = None) -> list[TaskActivity]:
    """Read up to *limit* commits of *ref* and build per-task activity.

    Raises ``GitLogError`` if the ref cannot be read.
    """
    raw = read_commit_log(ref, limit=limit, cwd=cwd)
    records = to_commit_records(raw)
    activities = build_activity(records)
    log.debug(f"{ref}: {len(records)}/{len(raw)} commits reference {len(activities)} tasks")
    return activities
