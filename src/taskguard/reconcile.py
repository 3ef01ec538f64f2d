"""Reconcile status suggestions computed from two refs (local vs. remote).

Resolution is a confidence-margin rule, not last-writer-wins: commit recency
says nothing reliable about the true state of a task. The reconciler only
recommends; applying a resolution is up to the caller.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from taskguard import log
from taskguard.activity import TaskActivity
from taskguard.config import DEFAULT_CONFLICT_MARGIN
from taskguard.tasks.model import TaskStatus


class Resolution(str, Enum):
    NO_CONFLICT = "no_conflict"
    ACCEPT_REMOTE = "accept_remote"
    KEEP_LOCAL = "keep_local"
    INTERACTIVE = "interactive"


@dataclass(frozen=True)
class SyncConflict:
    task_id: str
    local_status: TaskStatus
    local_confidence: float
    remote_status: TaskStatus
    remote_confidence: float
    resolution: Resolution


def resolve(
    local_status: TaskStatus,
    local_confidence: float,
    remote_status: TaskStatus,
    remote_confidence: float,
    margin: float = DEFAULT_CONFLICT_MARGIN,
) -> Resolution:
    """Classify one local/remote pair of suggestions."""
    if local_status is remote_status:
        return Resolution.NO_CONFLICT
    diff = remote_confidence - local_confidence
    # A gap of exactly ``margin`` is ambiguous even after float rounding.
    if abs(diff) <= margin or math.isclose(abs(diff), margin, abs_tol=1e-9):
        return Resolution.INTERACTIVE
    return Resolution.ACCEPT_REMOTE if diff > 0 else Resolution.KEEP_LOCAL


def detect_conflicts(
    local: Iterable[TaskActivity],
    remote: Iterable[TaskActivity],
    margin: float = DEFAULT_CONFLICT_MARGIN,
) -> list[SyncConflict]:
    """Return conflicts for tasks whose local and remote suggestions differ.

    Tasks without a suggestion on either side are skipped, as are tasks whose
    suggestions agree. The result is sorted by task id.
    """
    if margin < 0:
        raise ValueError(f"margin must be >= 0, got {margin}")

    local_map = {a.task_id: a for a in local}
    remote_map = {a.task_id: a for a in remote}

    conflicts: list[SyncConflict] = []
    for task_id in sorted(local_map.keys() & remote_map.keys()):
        mine, theirs = local_map[task_id], remote_map[task_id]
        if mine.suggested_status is None or theirs.suggested_status is None:
            continue
        resolution = resolve(
            mine.suggested_status,
            mine.confidence,
            theirs.suggested_status,
            theirs.confidence,
            margin,
        )
        if resolution is Resolution.NO_CONFLICT:
            continue
        log.debug(
            f"{task_id}: local {mine.suggested_status.value} ({mine.confidence:.2f}) vs "
            f"remote {theirs.suggested_status.value} ({theirs.confidence:.2f}) -> {resolution.value}"
        )
        conflicts.append(
            SyncConflict(
                task_id=task_id,
                local_status=mine.suggested_status,
                local_confidence=mine.confidence,
                remote_status=theirs.suggested_status,
                remote_confidence=theirs.confidence,
                resolution=resolution,
            )
        )
    return conflicts
