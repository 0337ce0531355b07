"""Rich rendering of campaign runs and plan checks.

All CLI output goes through the shared ``console`` so the live status line
and the final summaries never interleave.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from ..constants import RunStatus
from ..content import GenerationProgress

# Windows cp1252 encoding doesn't support Unicode box drawing characters
console = Console(safe_box=sys.platform == "win32")

STATUS_STYLES = {
    RunStatus.COMPLETED: "green",
    RunStatus.COMPLETED_WITH_ERRORS: "yellow",
    RunStatus.FAILED: "red",
    RunStatus.CANCELLED: "dim",
}


def print_error(message: str, details: dict[str, Any] | None = None) -> None:
    """Print an error line, with one indented line per detail."""
    console.print(f"[red]Error: {message}[/red]")
    for key, value in (details or {}).items():
        console.print(f"  [dim]{key}:[/dim] [yellow]{value}[/yellow]")


def format_progress(progress: GenerationProgress) -> str:
    """One-line live status for a running campaign."""
    eta = progress.estimated_seconds_remaining
    eta_text = f" | ETA {eta:.0f}s" if eta is not None else ""
    current = f" | {progress.current_item_id}: {progress.current_step}" if progress.current_item_id else ""
    return (
        f"[cyan]{progress.campaign_id}[/cyan] "
        f"{progress.completed_items}/{progress.total_items} "
        f"({progress.percentage:.0f}%) | errors {len(progress.errors)}{current}{eta_text}"
    )


def show_run_result(progress: GenerationProgress, saved: list[Path]) -> None:
    """Display the terminal snapshot of a run."""
    style = STATUS_STYLES.get(progress.status, "white")
    console.print(
        f"\nCampaign [cyan]{progress.campaign_id}[/cyan]: "
        f"[{style}]{progress.status.value}[/{style}] "
        f"({progress.completed_items}/{progress.total_items} items)"
    )

    if progress.errors:
        table = Table(title="Failed items")
        table.add_column("Item", style="cyan")
        table.add_column("Error kind", style="red")
        table.add_column("Recovery")
        table.add_column("Message")
        for error in progress.errors:
            table.add_row(
                error.item_id,
                error.error_kind.value,
                error.recovery_action.value if error.recovery_action else "-",
                error.message,
            )
        console.print(table)

    if saved:
        console.print(f"Saved {len(saved)} publication(s) to [dim]{saved[0].parent}[/dim]")


def show_plan_check(campaign_id: str, rows: list[tuple[str, str, str, str, float | None]]) -> None:
    """Display the strategy chosen for each plan item.

    Args:
        campaign_id: Plan being checked.
        rows: (item id, platform, content type, strategy name or problem,
            estimated seconds or None when the item cannot be generated).
    """
    table = Table(title=f"Plan {campaign_id}")
    table.add_column("Item", style="cyan")
    table.add_column("Platform")
    table.add_column("Type")
    table.add_column("Strategy")
    table.add_column("Estimate", justify="right")

    problems = 0
    total_seconds = 0.0
    for item_id, platform, content_type, strategy, seconds in rows:
        if seconds is None:
            problems += 1
            table.add_row(item_id, platform, content_type, f"[red]{strategy}[/red]", "-")
        else:
            total_seconds += seconds
            table.add_row(item_id, platform, content_type, strategy, f"{seconds:.0f}s")
    console.print(table)

    if problems:
        print_error(f"{problems} item(s) cannot be generated with the current configuration")
    else:
        console.print(f"[green]{len(rows)} item(s) OK, estimated {total_seconds:.0f}s[/green]")
