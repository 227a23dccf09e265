"""
Rendering functions for dvsync output.

This module handles pretty-printing of change histories and patches.
Core functions return data, this module makes it human-readable.
"""

from rich.table import Table
from rich.console import Console
from rich import box
from typing import List, Optional

from .domain import ChangeKind, Modification, PatchOperation

console = Console()

_KIND_STYLES = {
    ChangeKind.ADDED: "green",
    ChangeKind.MODIFIED: "yellow",
    ChangeKind.DELETED: "red",
}


def render_modifications(mods: List[Modification], title: Optional[str] = "Changes") -> None:
    """
    Render modifications as a pretty table, one row per file change.

    Args:
        mods: Modifications, oldest first
        title: Optional table title
    """
    if not mods:
        console.print("[yellow]No new changes.[/yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )

    table.add_column("Version", style="cyan")
    table.add_column("Author")
    table.add_column("Date", style="dim")
    table.add_column("Change")
    table.add_column("Path")
    table.add_column("Message")

    for mod in mods:
        commit = mod.commit
        date = commit.timestamp.strftime("%Y-%m-%d %H:%M:%S") if commit.timestamp else ""
        first_line = commit.message.splitlines()[0] if commit.message else ""
        for index, change in enumerate(mod.changes):
            style = _KIND_STYLES.get(change.kind, "")
            kind = f"[{style}]{change.kind.value}[/{style}]" if style else change.kind.value
            path = f"[dim]{change.path}[/dim]" if change.is_placeholder else change.path
            if index == 0:
                table.add_row(commit.version, commit.author_name or "", date, kind, path, first_line)
            else:
                table.add_row("", "", "", kind, path, "")

    console.print(table)

    degraded = sum(1 for mod in mods if mod.is_degraded)
    if degraded:
        console.print(f"[yellow]{degraded} commit(s) without file detail[/yellow]")


def render_patch(operations: List[PatchOperation], title: Optional[str] = "Patch") -> None:
    """Render patch operations as a pretty table."""
    if not operations:
        console.print("[yellow]Patch is empty.[/yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )

    table.add_column("Operation")
    table.add_column("Path", style="cyan")
    table.add_column("Bytes", justify="right")
    table.add_column("Version", style="dim")

    for op in operations:
        if op.is_delete:
            table.add_row("[red]delete[/red]", op.path, "", op.version or "")
        else:
            table.add_row("[green]write[/green]", op.path, str(op.length), op.version or "")

    console.print(table)
