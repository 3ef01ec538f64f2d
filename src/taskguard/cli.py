"""TaskGuard CLI — dependency validation and git-based status sync.

Installed as ``taskguard`` console_script via pipx / pip.
"""

from __future__ import annotations

import sys
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path

import click
from rich.markup import escape
from rich.table import Table

from taskguard import __version__
from taskguard import log
from taskguard.config import Config, DEFAULT_COMMIT_LIMIT
from taskguard.reconcile import Resolution
from taskguard.tasks.model import TaskStatus


CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])

_STATUS_ICONS: dict[TaskStatus, str] = {
    TaskStatus.TODO: "⭕",
    TaskStatus.DOING: "🔄",
    TaskStatus.REVIEW: "👀",
    TaskStatus.DONE: "✅",
    TaskStatus.BLOCKED: "🚫",
}

_RESOLUTION_LABELS: dict[Resolution, str] = {
    Resolution.NO_CONFLICT: "nothing to do",
    Resolution.ACCEPT_REMOTE: "accept remote",
    Resolution.KEEP_LOCAL: "keep local",
    Resolution.INTERACTIVE: "needs your decision",
}


def _load_project(start: Path | None = None):
    """Return ``(root, snapshot)`` or exit with an error."""
    from taskguard.config import require_project_root
    from taskguard.tasks.io import load_snapshot

    try:
        root = require_project_root(start)
    except FileNotFoundError as exc:
        log.error(str(exc))
        sys.exit(1)
    return root, load_snapshot(root)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option("-v", "--verbose", is_flag=True, help="Show debug output")
@click.version_option(__version__, prog_name="taskguard")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """TaskGuard — local task management with Git integration.

    \b
    EXAMPLES:
      taskguard validate                   # Check dependencies, cycles, orphans
      taskguard sync                       # Suggest statuses from local commits
      taskguard sync --remote --limit 100  # Compare with origin's history
    """
    log.set_verbose(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


# ── Subcommand: validate ─────────────────────────────────────────


@main.command()
@click.option("--root-task", default="", help="Task id exempt from orphan checks (default: setup-001)")
@click.pass_context
def validate(ctx: click.Context, root_task: str) -> None:
    """Validate task dependencies: missing ids, cycles, blocked tasks, orphans."""
    from taskguard.graph import validate_graph

    try:
        cfg = Config(root_task_id=root_task, verbose=ctx.obj.get("verbose", False))
    except ValueError as exc:
        log.error(f"Invalid configuration: {exc}")
        sys.exit(1)
    log.configure(cfg)
    _, snapshot = _load_project()

    if snapshot.parse_errors:
        log.section("PARSE ERRORS")
        for err in snapshot.parse_errors:
            log.error(escape(f"{err.path}: {err.message}"))

    if not snapshot.active:
        log.warn("No tasks found to validate.")
        sys.exit(1 if snapshot.parse_errors else 0)

    report = validate_graph(snapshot, root_id=cfg.root_task_id)

    if report.missing_dependencies:
        log.section("DEPENDENCY ISSUES")
        for md in report.missing_dependencies:
            log.item(f"❌ {md.task_id}: depends on missing task '{md.missing_id}'")

    if report.cyclic_task_ids:
        log.section("CIRCULAR DEPENDENCIES")
        for task_id in sorted(report.cyclic_task_ids):
            log.item(f"❌ {task_id}: part of a dependency cycle")

    log.section("TASK STATUS")
    if report.available_ids:
        log.item("Available tasks (dependencies satisfied):")
        for task_id in sorted(report.available_ids):
            task = snapshot.get_task(task_id)
            icon = _STATUS_ICONS[task.status] if task else "❓"
            title = escape(task.title) if task else ""
            log.item(f"{icon} {task_id} - {title}", depth=2)
    if report.blocked:
        log.item("Blocked tasks:")
        for entry in report.blocked:
            task = snapshot.get_task(entry.task_id)
            title = escape(task.title) if task else ""
            waiting = ", ".join(entry.incomplete_ids) or "-"
            line = f"🚫 {entry.task_id} - {title} (waiting for: {waiting}"
            if entry.missing_ids:
                line += f"; missing: {', '.join(entry.missing_ids)}"
            log.item(line + ")", depth=2)

    if report.orphan_ids:
        log.section("ORPHAN TASKS")
        for task_id in sorted(report.orphan_ids):
            log.item(f"⚠️  {task_id}: no dependencies and no dependents")

    total_issues = report.issue_count + len(snapshot.parse_errors)
    log.console.print()
    if total_issues == 0:
        log.success(f"Validation passed: no issues found in {len(snapshot.active)} tasks")
    else:
        log.error(f"Validation failed: {total_issues} issues across {len(snapshot.active)} tasks")

    table = Table(title="Summary", show_header=False)
    table.add_row("Total tasks", str(len(snapshot.active)))
    table.add_row("Archived tasks", str(len(snapshot.archived)))
    table.add_row("Available", str(len(report.available_ids)))
    table.add_row("Blocked", str(len(report.blocked)))
    table.add_row("Orphans", str(len(report.orphan_ids)))
    table.add_row("Parse errors", str(len(snapshot.parse_errors)))
    table.add_row("Dependency issues", str(len(report.missing_dependencies)))
    table.add_row("Cyclic tasks", str(len(report.cyclic_task_ids)))
    log.console.print(table)

    if total_issues:
        sys.exit(1)


# ── Subcommand: sync ─────────────────────────────────────────────


@main.command()
@click.option("--limit", "-l", type=int, default=DEFAULT_COMMIT_LIMIT, show_default=True, help="Commits to scan per ref")
@click.option("--remote", "use_remote", is_flag=True, help="Compare with the remote's history")
@click.option("--remote-name", default="", help="Remote to compare with (default: origin)")
@click.option("--margin", type=float, default=None, help="Confidence margin for auto-resolution (default: 0.2)")
@click.option("--verbose", "-v", "sync_verbose", is_flag=True, help="Show recent commits per task")
@click.pass_context
def sync(
    ctx: click.Context,
    limit: int,
    use_remote: bool,
    remote_name: str,
    margin: float | None,
    sync_verbose: bool,
) -> None:
    """Suggest task statuses from Git history, optionally reconciling with a remote."""
    from taskguard import git_ops
    from taskguard.activity import analyze_ref
    from taskguard.git_ops import GitLogError
    from taskguard.reconcile import detect_conflicts

    verbose = sync_verbose or ctx.obj.get("verbose", False)
    try:
        cfg = Config(commit_limit=limit, remote=remote_name, conflict_margin=margin, verbose=verbose)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc
    log.configure(cfg)

    root, snapshot = _load_project()
    use_remote = use_remote or bool(remote_name)

    log.section("ANALYZING GIT HISTORY")
    log.item(f"Scanning {cfg.commit_limit} recent commits for task activity…")

    try:
        if use_remote:
            git_ops.fetch_remote(cfg.remote, cwd=root)
            remote_ref = git_ops.remote_tracking_ref(cfg.remote, cwd=root)
            # Each side reads its own log; nothing is shared between them.
            with ThreadPoolExecutor(max_workers=2) as pool:
                local_future = pool.submit(analyze_ref, "HEAD", cfg.commit_limit, root)
                remote_future = pool.submit(analyze_ref, remote_ref, cfg.commit_limit, root)
                local = local_future.result()
                remote_activity = remote_future.result()
        else:
            local = analyze_ref("HEAD", cfg.commit_limit, root)
            remote_activity = []
    except GitLogError as exc:
        log.error(f"Failed to analyze Git activity: {exc}")
        sys.exit(1)

    if not local:
        log.info("No task-related activity found in recent commits.")
        log.info("Tip: reference task IDs in commit messages (e.g. 'Fix bug in backend-001')")
    else:
        _show_local_activity(snapshot, local, verbose)

    if use_remote:
        conflicts = detect_conflicts(local, remote_activity, margin=cfg.conflict_margin)
        _show_conflicts(conflicts, cfg.remote)

    if verbose:
        log.section("REPOSITORY")
        log.item(f"Current branch: {git_ops.current_branch(cwd=root)}")
        log.item(f"Remotes: {', '.join(git_ops.list_remotes(cwd=root)) or '-'}")


def _show_local_activity(snapshot, activities, verbose: bool) -> None:
    log.section("TASK ACTIVITY ANALYSIS")
    log.item(f"Found activity for {len(activities)} tasks:")

    now = datetime.now(timezone.utc)
    suggestions = 0
    for activity in activities:
        task = snapshot.get_task(activity.task_id)
        title = escape(task.title) if task else "Unknown task"
        current = task.status.value if task else "unknown"

        log.console.print()
        log.console.print(f"📝 {activity.task_id} - {title}")
        if activity.last_activity is not None:
            days = (now - activity.last_activity).days
            log.item(f"Last activity: {days} days ago")
        log.item(f"Current status: {current}")
        log.item(f"Commits found: {len(activity.commits)}")

        if verbose:
            log.item("Recent commits:")
            for commit in activity.commits[:3]:
                first_line = commit.message.splitlines()[0] if commit.message else ""
                if len(first_line) > 60:
                    first_line = first_line[:60] + "..."
                log.item(f"{commit.hash[:8]} - {escape(first_line)}", depth=2)

        status = activity.suggested_status
        if status is not None and status.value != current and activity.confidence > 0.5:
            suggestions += 1
            log.item(f"💡 Suggestion: consider changing status to '{status.value}'")
            log.item(f"Confidence score: {activity.confidence:.2f}", depth=2)

    log.console.print()
    if suggestions:
        log.info(f"Found {suggestions} status suggestions based on Git activity")
        log.info("Review them and update the task files manually")
    else:
        log.success("No status changes recommended based on current Git activity")

    stale = [
        t for t in snapshot.active
        if not t.is_done and t.id not in {a.task_id for a in activities}
    ]
    if stale:
        log.info(f"Tasks with no recent Git activity: {len(stale)}")
        if verbose:
            for task in stale[:5]:
                log.item(f"{task.id} - {escape(task.title)} ({task.status.value})", depth=2)


def _show_conflicts(conflicts, remote: str) -> None:
    log.section(f"SYNC WITH '{remote}'")
    if not conflicts:
        log.success("Local and remote history agree on every task")
        return

    table = Table(show_lines=False)
    table.add_column("Task")
    table.add_column("Local")
    table.add_column("Remote")
    table.add_column("Recommendation")
    for c in conflicts:
        table.add_row(
            c.task_id,
            f"{c.local_status.value} ({c.local_confidence:.2f})",
            f"{c.remote_status.value} ({c.remote_confidence:.2f})",
            _RESOLUTION_LABELS[c.resolution],
        )
    log.console.print(table)
    interactive = sum(1 for c in conflicts if c.resolution is Resolution.INTERACTIVE)
    if interactive:
        log.warn(f"{interactive} conflicts need a manual decision")
