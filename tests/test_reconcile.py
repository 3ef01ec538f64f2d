"""Tests for taskguard.reconcile — local vs. remote conflict resolution."""

from __future__ import annotations

import pytest

from taskguard.activity import TaskActivity
from taskguard.reconcile import Resolution, SyncConflict, detect_conflicts, resolve
from taskguard.tasks.model import TaskStatus


def _act(task_id: str, status: TaskStatus | None, confidence: float) -> TaskActivity:
    return TaskActivity(task_id=task_id, suggested_status=status, confidence=confidence)


class TestResolve:
    def test_agreeing_statuses(self):
        assert resolve(TaskStatus.DONE, 0.6, TaskStatus.DONE, 0.9) is Resolution.NO_CONFLICT

    def test_keep_local(self):
        assert resolve(TaskStatus.DONE, 0.8, TaskStatus.DOING, 0.3, margin=0.2) is Resolution.KEEP_LOCAL

    def test_accept_remote(self):
        assert resolve(TaskStatus.DOING, 0.3, TaskStatus.DONE, 0.8, margin=0.2) is Resolution.ACCEPT_REMOTE

    def test_within_margin_is_interactive(self):
        assert resolve(TaskStatus.REVIEW, 0.6, TaskStatus.DOING, 0.7, margin=0.2) is Resolution.INTERACTIVE

    def test_exact_margin_is_interactive(self):
        assert resolve(TaskStatus.DONE, 0.8, TaskStatus.REVIEW, 0.6, margin=0.2) is Resolution.INTERACTIVE

    def test_zero_margin(self):
        assert resolve(TaskStatus.DONE, 0.8, TaskStatus.REVIEW, 0.8, margin=0.0) is Resolution.INTERACTIVE
        assert resolve(TaskStatus.DONE, 0.8, TaskStatus.REVIEW, 0.7, margin=0.0) is Resolution.KEEP_LOCAL


class TestDetectConflicts:
    def test_agreeing_statuses_excluded(self):
        conflicts = detect_conflicts([_act("api-001", TaskStatus.DONE, 0.6)],
                                     [_act("api-001", TaskStatus.DONE, 0.9)])
        assert conflicts == []

    def test_keep_local_conflict(self):
        conflicts = detect_conflicts([_act("api-001", TaskStatus.DONE, 0.8)],
                                     [_act("api-001", TaskStatus.DOING, 0.3)], margin=0.2)
        assert conflicts == [
            SyncConflict("api-001", TaskStatus.DONE, 0.8, TaskStatus.DOING, 0.3, Resolution.KEEP_LOCAL)
        ]

    def test_one_sided_activity_is_not_a_conflict(self):
        conflicts = detect_conflicts([_act("api-001", TaskStatus.DONE, 0.8)],
                                     [_act("api-002", TaskStatus.DOING, 0.7)])
        assert conflicts == []

    def test_missing_suggestion_is_not_a_conflict(self):
        conflicts = detect_conflicts([_act("api-001", None, 0.0)],
                                     [_act("api-001", TaskStatus.DOING, 0.7)])
        assert conflicts == []

    def test_sorted_by_task_id(self):
        local = [_act("b-001", TaskStatus.DONE, 0.8), _act("a-001", TaskStatus.DONE, 0.8)]
        remote = [_act("a-001", TaskStatus.DOING, 0.7), _act("b-001", TaskStatus.REVIEW, 1.6)]
        conflicts = detect_conflicts(local, remote)
        assert [c.task_id for c in conflicts] == ["a-001", "b-001"]
        assert [c.resolution for c in conflicts] == [Resolution.INTERACTIVE, Resolution.ACCEPT_REMOTE]

    def test_inputs_are_not_mutated(self):
        local = [_act("api-001", TaskStatus.DONE, 0.8)]
        remote = [_act("api-001", TaskStatus.DOING, 0.3)]
        detect_conflicts(local, remote)
        assert local[0].suggested_status is TaskStatus.DONE
        assert remote[0].suggested_status is TaskStatus.DOING

    def test_negative_margin_rejected(self):
        with pytest.raises(ValueError, match="margin"):
            detect_conflicts([], [], margin=-0.1)
