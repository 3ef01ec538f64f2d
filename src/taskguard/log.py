"""Console output for TaskGuard commands, colored via Rich.

Commands print a ``section()`` heading followed by indented ``item()``
lines; status lines use the level functions. Errors go to stderr.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console

if TYPE_CHECKING:
    from taskguard.config import Config

console = Console(highlight=False)
_err_console = Console(highlight=False, stderr=True)

INDENT = "   "

_verbose = False


def set_verbose(enabled: bool) -> None:
    global _verbose
    _verbose = enabled


def configure(cfg: Config) -> None:
    """Apply the output settings of *cfg* (currently only the debug gate)."""
    set_verbose(cfg.verbose)


def info(msg: str) -> None:
    console.print(f"[blue]\\[INFO][/blue] {msg}")


def success(msg: str) -> None:
    console.print(f"[green]\\[OK][/green] {msg}")


def warn(msg: str) -> None:
    console.print(f"[yellow]\\[WARN][/yellow] {msg}")


def error(msg: str) -> None:
    _err_console.print(f"[red]\\[ERROR][/red] {msg}")


def debug(msg: str) -> None:
    if _verbose:
        console.print(f"[dim]\\[DEBUG] {msg}[/dim]")


def section(title: str) -> None:
    """Print a blank line and a bold section heading."""
    console.print()
    console.print(f"[bold]{title}[/bold]")


def item(text: str, depth: int = 1) -> None:
    """Print *text* under the current section, indented *depth* levels."""
    console.print(f"{INDENT * depth}{text}")
