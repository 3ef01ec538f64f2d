"""Git operations: bounded commit logs, remotes, fetch."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from taskguard import log

# Hard ceiling on commits walked per ref, whatever the caller asks for.
MAX_COMMITS = 1000
MAX_MESSAGE_BYTES = 64 * 1024

UNKNOWN_AUTHOR = "Unknown"

_FIELD_SEP = "\x1f"
# `git log -z` terminates records with NUL, which a commit message cannot hold.
_RECORD_SEP = "\0"
_LOG_FORMAT = "%H%x1f%an%x1f%at%x1f%B"


class GitLogError(RuntimeError):
    """A commit log could not be read for the requested ref."""


@dataclass(frozen=True)
class RawCommit:
    """One commit as read from ``git log``, before task-id extraction."""

    hash: str
    message: str
    author: str
    timestamp: datetime


def _git(*args: str, cwd: Path | None = None, check: bool = False) -> subprocess.CompletedProcess[str]:
    """Run a git command, capturing output."""
    return subprocess.run(
        ["git", *args],
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
        cwd=cwd,
        check=check,
    )


def is_repository(cwd: Path | None = None) -> bool:
    try:
        r = _git("rev-parse", "--git-dir", cwd=cwd)
    except OSError:
        # Missing cwd or no git executable.
        return False
    return r.returncode == 0


def current_branch(cwd: Path | None = None) -> str:
    r = _git("rev-parse", "--abbrev-ref", "HEAD", cwd=cwd)
    return r.stdout.strip() if r.returncode == 0 else "main"


def ref_exists(ref: str, cwd: Path | None = None) -> bool:
    r = _git("rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}", cwd=cwd)
    return r.returncode == 0


def has_commits(cwd: Path | None = None) -> bool:
    return ref_exists("HEAD", cwd=cwd)


def list_remotes(cwd: Path | None = None) -> list[str]:
    r = _git("remote", cwd=cwd)
    if r.returncode != 0 or not r.stdout.strip():
        return []
    return [line.strip() for line in r.stdout.splitlines() if line.strip()]


def fetch_remote(remote: str, cwd: Path | None = None) -> bool:
    """Fetch *remote*. Returns ``False`` (with a warning) on failure."""
    log.info(f"Fetching from remote '{remote}'…")
    r = _git("fetch", remote, cwd=cwd)
    if r.returncode != 0:
        log.warn(f"Failed to fetch from remote '{remote}': {r.stderr.strip()}")
        log.warn("Proceeding with locally cached remote data…")
        return False
    log.debug(f"Fetch from '{remote}' completed")
    return True


def remote_tracking_ref(remote: str, cwd: Path | None = None) -> str:
    """Return the remote-tracking ref for *remote* (``master`` then ``main``).

    Raises ``GitLogError`` when neither exists.
    """
    for branch in ("master", "main"):
        ref = f"refs/remotes/{remote}/{branch}"
        if ref_exists(ref, cwd=cwd):
            return ref
    raise GitLogError(
        f"No remote tracking branch found for '{remote}' "
        f"(looked for {remote}/master and {remote}/main)"
    )


def _parse_timestamp(raw: str) -> datetime:
    try:
        return datetime.fromtimestamp(int(raw.strip()), tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return datetime.now(timezone.utc)


def parse_log_output(output: str) -> list[RawCommit]:
    """Parse ``git log -z`` output produced with the module's record format.

    Missing authors fall back to ``"Unknown"`` and unreadable timestamps to
    the current UTC time.
    """
    commits: list[RawCommit] = []
    for record in output.split(_RECORD_SEP):
        record = record.strip("\n")
        if not record.strip():
            continue
        fields = record.split(_FIELD_SEP, 3)
        if len(fields) < 4:
            fields += [""] * (4 - len(fields))
        sha, author, stamp, message = fields
        sha = sha.strip()
        if not sha:
            continue
        if len(message.encode("utf-8", errors="replace")) > MAX_MESSAGE_BYTES:
            log.debug(f"Skipping commit {sha[:8]}: message too large")
            continue
        commits.append(
            RawCommit(
                hash=sha,
                message=message.strip(),
                author=author.strip() or UNKNOWN_AUTHOR,
                timestamp=_parse_timestamp(stamp),
            )
        )
    return commits


def read_commit_log(ref: str = "HEAD", limit: int = 100, cwd: Path | None = None) -> list[RawCommit]:
    """Return up to *limit* commits reachable from *ref*, newest first.

    A repository without any commit yields an empty list for ``HEAD``.
    Any other unreadable ref raises ``GitLogError``.
    """
    if limit < 1:
        return []
    if not is_repository(cwd=cwd):
        raise GitLogError(f"Not a git repository: {cwd or Path.cwd()}")
    if ref == "HEAD" and not has_commits(cwd=cwd):
        log.debug("Repository has no commits yet")
        return []
    if not ref_exists(ref, cwd=cwd):
        raise GitLogError(f"Cannot read ref '{ref}'")

    safe_limit = min(limit, MAX_COMMITS)
    r = _git("log", "-z", f"--max-count={safe_limit}", f"--format={_LOG_FORMAT}", ref, "--", cwd=cwd)
    if r.returncode != 0:
        raise GitLogError(f"git log failed for '{ref}': {r.stderr.strip()}")
    commits = parse_log_output(r.stdout)
    log.debug(f"Read {len(commits)} commits from {ref}")
    return commits
