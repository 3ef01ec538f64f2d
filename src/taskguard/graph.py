"""Dependency graph validation: missing deps, cycles, availability, orphans.

Usage::

    report = validate_graph(snapshot, root_id="setup-001")
    report.cyclic_task_ids      # ids lying on a dependency cycle
    report.available_ids        # non-done tasks whose deps are all done
    report.blocked              # non-done tasks with unmet deps

The graph is rebuilt from the snapshot on every call; nothing is cached
between calls.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum

from taskguard import log
from taskguard.config import DEFAULT_ROOT_TASK
from taskguard.tasks.model import Task, TaskSnapshot


@dataclass(frozen=True)
class MissingDependency:
    task_id: str
    missing_id: str


@dataclass(frozen=True)
class BlockedTask:
    task_id: str
    unmet_ids: tuple[str, ...]
    # Subset of unmet_ids that do not exist in the snapshot at all.
    missing_ids: tuple[str, ...] = ()

    @property
    def incomplete_ids(self) -> tuple[str, ...]:
        return tuple(d for d in self.unmet_ids if d not in self.missing_ids)


@dataclass(frozen=True)
class ValidationReport:
    missing_dependencies: tuple[MissingDependency, ...] = ()
    cyclic_task_ids: frozenset[str] = frozenset()
    available_ids: frozenset[str] = frozenset()
    blocked: tuple[BlockedTask, ...] = ()
    orphan_ids: frozenset[str] = frozenset()

    @property
    def is_valid(self) -> bool:
        """``True`` when no structural problem (missing id, cycle) was found."""
        return not self.missing_dependencies and not self.cyclic_task_ids

    @property
    def issue_count(self) -> int:
        return len(self.missing_dependencies) + len(self.cyclic_task_ids)

    def blocked_ids(self) -> set[str]:
        return {b.task_id for b in self.blocked}


# ── Cycle detection ─────────────────────────────────────────────────


class Color(int, Enum):
    WHITE = 0  # unvisited
    GRAY = 1  # on the current DFS stack
    BLACK = 2  # fully resolved


@dataclass
class DfsScratch:
    """Mutable traversal state owned by exactly one validation pass.

    ``index``/``lowlink`` turn the three-color walk into Tarjan's SCC
    algorithm so every task on a cycle is reported, not only the one where
    the back edge was found.
    """

    color: dict[str, Color] = field(default_factory=dict)
    index: dict[str, int] = field(default_factory=dict)
    lowlink: dict[str, int] = field(default_factory=dict)
    stack: list[str] = field(default_factory=list)
    counter: int = 0

    def color_of(self, node: str) -> Color:
        return self.color.get(node, Color.WHITE)


def _visit(
    start: str,
    edges: Mapping[str, list[str]],
    scratch: DfsScratch,
    cyclic: set[str],
) -> None:
    """Iterative DFS from *start*; records members of every cycle found."""
    scratch.color[start] = Color.GRAY
    scratch.index[start] = scratch.lowlink[start] = scratch.counter
    scratch.counter += 1
    scratch.stack.append(start)
    work: list[tuple[str, int]] = [(start, 0)]

    while work:
        node, pos = work[-1]
        deps = edges[node]

        if pos < len(deps):
            work[-1] = (node, pos + 1)
            dep = deps[pos]
            if dep not in edges:
                # Missing id: dead end, never part of a cycle.
                continue
            if dep == node:
                cyclic.add(node)
                continue
            state = scratch.color_of(dep)
            if state is Color.WHITE:
                scratch.color[dep] = Color.GRAY
                scratch.index[dep] = scratch.lowlink[dep] = scratch.counter
                scratch.counter += 1
                scratch.stack.append(dep)
                work.append((dep, 0))
            elif state is Color.GRAY:
                # Back edge onto the current stack.
                scratch.lowlink[node] = min(scratch.lowlink[node], scratch.index[dep])
            continue

        work.pop()
        if work:
            parent = work[-1][0]
            scratch.lowlink[parent] = min(scratch.lowlink[parent], scratch.lowlink[node])

        if scratch.lowlink[node] == scratch.index[node]:
            component: list[str] = []
            while True:
                member = scratch.stack.pop()
                scratch.color[member] = Color.BLACK
                component.append(member)
                if member == node:
                    break
            if len(component) > 1:
                cyclic.update(component)


def find_cycles(edges: Mapping[str, list[str]]) -> frozenset[str]:
    """Return every node that lies on a cycle of the *edges* graph.

    *edges* maps each known id to its dependency ids; ids absent from the
    mapping are treated as dead ends.
    """
    scratch = DfsScratch()
    cyclic: set[str] = set()
    for node in sorted(edges):
        if scratch.color_of(node) is Color.WHITE:
            _visit(node, edges, scratch, cyclic)
    return frozenset(cyclic)


# ── Validation ──────────────────────────────────────────────────────


def _build_edges(tasks: Iterable[Task]) -> dict[str, list[str]]:
    edges: dict[str, list[str]] = {}
    for task in tasks:
        deps = list(dict.fromkeys(d for d in task.dependencies if d))
        # First record wins on duplicate ids; active tasks come first.
        edges.setdefault(task.id, deps)
    return edges


def validate_graph(snapshot: TaskSnapshot, root_id: str = DEFAULT_ROOT_TASK) -> ValidationReport:
    """Validate the dependency graph of *snapshot*.

    Findings are always returned as report entries; nothing here raises on
    bad task data.
    """
    all_tasks = snapshot.all_tasks()
    edges = _build_edges(all_tasks)
    known_ids = set(edges)

    status_by_id: dict[str, Task] = {}
    for task in all_tasks:
        status_by_id.setdefault(task.id, task)
    done_ids = {tid for tid, t in status_by_id.items() if t.is_done}

    active = sorted(snapshot.active, key=lambda t: t.id)

    missing: list[MissingDependency] = []
    available: set[str] = set()
    blocked: list[BlockedTask] = []

    for task in active:
        if task.is_done:
            continue
        # Repeated entries count once, in first-seen order.
        deps = list(dict.fromkeys(d for d in task.dependencies if d))

        task_missing = [d for d in deps if d not in known_ids]
        missing.extend(MissingDependency(task.id, d) for d in task_missing)

        unmet = [d for d in deps if d not in done_ids]
        if unmet:
            blocked.append(
                BlockedTask(
                    task_id=task.id,
                    unmet_ids=tuple(unmet),
                    missing_ids=tuple(task_missing),
                )
            )
        else:
            available.add(task.id)

    cyclic = find_cycles(edges)

    dependents: set[str] = set()
    for task in snapshot.active:
        dependents.update(d for d in task.dependencies if d and d != task.id)
    orphans = {
        t.id
        for t in snapshot.active
        if t.id != root_id and not any(d for d in t.dependencies) and t.id not in dependents
    }

    log.debug(
        f"Validated {len(snapshot.active)} active / {len(snapshot.archived)} archived tasks: "
        f"{len(missing)} missing, {len(cyclic)} cyclic, {len(available)} available, "
        f"{len(blocked)} blocked, {len(orphans)} orphans"
    )

    return ValidationReport(
        missing_dependencies=tuple(missing),
        cyclic_task_ids=cyclic,
        available_ids=frozenset(available),
        blocked=tuple(blocked),
        orphan_ids=frozenset(orphans),
    )
