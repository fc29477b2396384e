"""show command — list the new issues in a report."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from prca_core.errors import PrcaError
from prca_core.orchestrator import sort_records
from prca_core.report import ReportProcessor
from prca_core.resolver import SourceTreeResolver
from prca_core.severity import SeverityService

console = Console()


@click.command("show")
@click.option("--report", "report_path", required=True, help="Path to the analysis report.")
@click.option(
    "--source-dir",
    default=None,
    envvar="PRCA_SOURCE_DIR",
    help="Checked-out sources, to reconcile module-relative paths.",
)
def show_cmd(report_path: str, source_dir: str | None):
    """Print the new issues of an analysis report, highest severity first."""
    resolver = SourceTreeResolver(source_dir) if source_dir else None
    processor = ReportProcessor(SeverityService(), resolver=resolver)
    try:
        records = processor.fetch_comments(report_path)
    except PrcaError as e:
        raise click.ClickException(str(e))

    if not records:
        console.print("[yellow]No new issues in this report.[/yellow]")
        return

    table = Table(title=f"New issues ({len(records)})")
    table.add_column("Severity")
    table.add_column("File", style="cyan")
    table.add_column("Line", justify="right")
    table.add_column("Message")
    for r in sort_records(records):
        table.add_row(r.severity.name.lower(), r.file, str(r.line), r.content)
    console.print(table)
