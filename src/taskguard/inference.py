"""Keyword heuristic that guesses a task's status from its recent commits.

Each keyword class that appears in a commit message (case-folded, substring
match) adds its weight to one candidate status. Classes are independent, so a
single message can raise several candidates. The candidate with the highest
total wins and that total is reported as the confidence. It is a ranking
score between candidates of one task, not a probability, and is not capped.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from taskguard.tasks.model import TaskStatus

if TYPE_CHECKING:
    from taskguard.activity import CommitRecord

RECENT_COMMITS = 5

DEFAULT_STATUS = TaskStatus.DOING
DEFAULT_CONFIDENCE = 0.3

# Equal totals resolve to the earliest entry.
TIE_BREAK_ORDER: tuple[TaskStatus, ...] = (TaskStatus.DONE, TaskStatus.REVIEW, TaskStatus.DOING)


@dataclass(frozen=True)
class KeywordClass:
    keywords: tuple[str, ...]
    weight: float
    target: TaskStatus

    def matches(self, text: str) -> bool:
        return any(k in text for k in self.keywords)


KEYWORD_CLASSES: tuple[KeywordClass, ...] = (
    KeywordClass(("complete", "finish", "done"), 0.8, TaskStatus.DONE),
    KeywordClass(("test", "fix", "bug"), 0.6, TaskStatus.REVIEW),
    KeywordClass(("wip", "progress", "implement"), 0.7, TaskStatus.DOING),
    KeywordClass(("start", "initial", "begin"), 0.5, TaskStatus.DOING),
)


def score_messages(messages: Sequence[str]) -> dict[TaskStatus, float]:
    """Accumulate keyword weights per candidate status over *messages*."""
    scores: dict[TaskStatus, float] = {}
    for message in messages:
        text = message.casefold()
        for kc in KEYWORD_CLASSES:
            if kc.matches(text):
                scores[kc.target] = scores.get(kc.target, 0.0) + kc.weight
    return scores


def pick_status(scores: dict[TaskStatus, float]) -> tuple[TaskStatus, float]:
    """Return the highest-scoring status, breaking ties by ``TIE_BREAK_ORDER``."""
    if not scores:
        return DEFAULT_STATUS, DEFAULT_CONFIDENCE
    candidates = [s for s in TIE_BREAK_ORDER if s in scores]
    # max() keeps the first of equal maxima.
    best = max(candidates, key=lambda s: scores[s])
    return best, scores[best]


def suggest_status_from_messages(messages: Sequence[str]) -> tuple[TaskStatus | None, float]:
    """Suggest a status from commit *messages*, newest first."""
    if not messages:
        return None, 0.0
    return pick_status(score_messages(messages[:RECENT_COMMITS]))


def suggest_status(commits: Sequence[CommitRecord]) -> tuple[TaskStatus | None, float]:
    """Suggest a status from a task's commits (newest first).

    Only the ``RECENT_COMMITS`` newest commits are considered. An empty list
    gives ``(None, 0.0)``; commits without any keyword give ``(doing, 0.3)``.
    """
    return suggest_status_from_messages([c.message for c in commits])
