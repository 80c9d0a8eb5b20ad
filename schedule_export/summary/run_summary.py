from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from schedule_export.models.records import OutputRecord
from schedule_export.models.state import ServiceState
from schedule_export.transform.row_transformer import TransformResult

SAMPLE_SIZE = 3
SAMPLE_COLUMNS = ("Startdatum", "Startzeit", "Treffpunkt", "Heimspiel", "Gegner", "Spielort")


def _counts_table(result: TransformResult, state: ServiceState) -> Table:
    table = Table(show_header=False, box=None)
    table.add_column(style="cyan")
    table.add_column(justify="right")
    table.add_row("Rows read", str(result.total_rows))
    table.add_row("Games exported", str(len(result.records)))
    table.add_row("  home", str(result.home_games))
    table.add_row("  away", str(result.away_games))
    table.add_row("Other teams", str(result.skipped))
    table.add_row("Dropped", str(result.dropped))
    if state.correction_calls:
        table.add_row(
            "Text corrections (failed)",
            f"{state.correction_calls} ({state.correction_failures})",
        )
    if state.distance_calls:
        table.add_row(
            "Distance lookups (failed)",
            f"{state.distance_calls} ({state.distance_failures})",
        )
    return table


def _sample_table(result: TransformResult) -> Table:
    columns = OutputRecord.columns()
    indexes = [columns.index(name) for name in SAMPLE_COLUMNS]
    table = Table(title=f"First {SAMPLE_SIZE} games")
    for name in SAMPLE_COLUMNS:
        table.add_column(name)
    for record in result.records[:SAMPLE_SIZE]:
        row = record.to_row()
        table.add_row(*(str(row[i]) for i in indexes))
    return table


def print_summary(
    result: TransformResult,
    written_path: Path,
    state: ServiceState,
    console: Optional[Console] = None,
) -> None:
    """Prints counts and a few sample games of the finished run."""
    console = console or Console()
    console.print(
        Panel(
            _counts_table(result, state),
            title="Schedule export",
            subtitle=str(written_path),
        )
    )
    if result.records:
        console.print(_sample_table(result))
    else:
        console.print("[yellow]No games matched the configured team.[/yellow]")
