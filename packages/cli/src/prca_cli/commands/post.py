"""post command — publish new analysis issues on a pull request."""

from __future__ import annotations

import click
from rich.console import Console

from prca_core.errors import PrcaError
from prca_core.gh.pull_request import PullRequestCommentService, get_pull, get_repo
from prca_core.models import IssueRecord
from prca_core.orchestrator import PrcaOrchestrator
from prca_core.report import find_report
from prca_core.severity import Severity

console = Console()

_SEVERITY_NAMES = [s.name.lower() for s in Severity]
_SEVERITY_COLOR = {
    Severity.BLOCKER: "bold red",
    Severity.CRITICAL: "red",
    Severity.MAJOR: "yellow",
    Severity.MINOR: "blue",
    Severity.INFO: "dim",
    Severity.NONE: "dim",
}


def print_shadow_comments(records: list[IssueRecord]) -> None:
    """Print the comments that would be posted, without touching GitHub."""
    if not records:
        console.print("[yellow]Shadow mode: no comments would be posted.[/yellow]")
        return
    console.print(f"\n[bold]Shadow run — {len(records)} comment(s) (not posted)[/bold]\n")
    for r in records:
        color = _SEVERITY_COLOR.get(r.severity, "white")
        console.print(
            f"[bold cyan]{r.file}[/bold cyan]  line [bold]{r.line}[/bold]  "
            f"[{color}]{r.severity.name}[/{color}]"
        )
        console.print(f"  {r.content}")
        console.print()


class ShadowCommentService:
    """Reads the real change set but never deletes or posts."""

    def __init__(self, service: PullRequestCommentService):
        self.service = service

    def delete_comments_by_authors(self, names: list[str]) -> None:
        if names:
            console.print(f"[dim]Shadow mode: would delete previous comments by {', '.join(names)}.[/dim]")

    def list_changed_files(self) -> list[str]:
        return self.service.list_changed_files()

    def create_comments(self, records: list[IssueRecord]) -> None:
        print_shadow_comments(records)


@click.command("post")
@click.option("--repo", required=True, envvar="GITHUB_REPOSITORY", help="GitHub repository in owner/name format.")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.option(
    "--report",
    "report_path",
    default=None,
    help="Path to the analysis report. Omit to search the source directory.",
)
@click.option(
    "--source-dir",
    default=".",
    show_default=True,
    envvar="PRCA_SOURCE_DIR",
    help="Checked-out sources; used to find the report and reconcile module paths.",
)
@click.option("--message-limit", type=int, default=None, help="Maximum number of comments to post.")
@click.option(
    "--minimum-severity",
    type=click.Choice(_SEVERITY_NAMES, case_sensitive=False),
    default=None,
    help="Only post issues at or above this severity.",
)
@click.option(
    "--failed-severity",
    type=click.Choice(_SEVERITY_NAMES, case_sensitive=False),
    default=None,
    help="Fail when a posted issue is at or above this severity ('none' never fails).",
)
@click.option(
    "--delete-author",
    "delete_authors",
    multiple=True,
    help="Delete earlier comments by this login before posting. Repeatable.",
)
@click.option("--report-url", default=None, help="Analysis server URL used to link rule descriptions.")
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print the comments instead of posting them.",
)
@click.pass_context
def post_cmd(
    ctx,
    repo: str,
    pr_number: int,
    report_path: str | None,
    source_dir: str,
    message_limit: int | None,
    minimum_severity: str | None,
    failed_severity: str | None,
    delete_authors: tuple[str, ...],
    report_url: str | None,
    shadow: bool,
):
    """Post new static-analysis issues to a pull request.

    Previous comments by the --delete-author logins are removed first, then
    every new issue in a file changed by the pull request is posted, highest
    severity first.

    \b
    Required environment variables:
      GITHUB_TOKEN         GitHub token with pull request write access (or GH_TOKEN, or gh CLI)
    """
    from prca_cli.auth import resolve_github_token
    from prca_core.config import load_config

    config_path = ctx.obj.get("config_path", ".prca.yml") if ctx.obj else ".prca.yml"
    config = load_config(
        config_path,
        cli_overrides={
            "message_limit": message_limit,
            "minimum_severity_to_display": minimum_severity,
            "failed_task_severity": failed_severity,
            "comment_author_names_to_delete": list(delete_authors) or None,
            "base_report_url": report_url,
        },
    )

    token = resolve_github_token()
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )
    config["github_token"] = token

    try:
        if report_path is None:
            report_path = find_report(source_dir, config["report_directory_pattern"], config["report_file_name"])
    except PrcaError as e:
        console.print(f"[red]{e}[/red]")
        ctx.exit(1)

    service = PullRequestCommentService(get_pull(get_repo(repo, token=token), pr_number))
    if shadow:
        service = ShadowCommentService(service)

    try:
        orchestrator = PrcaOrchestrator.create(config, service, source_dir=source_dir)
    except ValueError as e:
        raise click.UsageError(str(e))

    outcome = orchestrator.post_issues(report_path)
    if not outcome.success:
        console.print(f"[red]Pull request code analysis failed: {outcome.reason}[/red]")
        ctx.exit(1)

    console.print(f"[green]{outcome.reason}[/green]")
    if outcome.dropped:
        console.print(f"[yellow]{outcome.dropped} issue(s) were not posted because of the message limit.[/yellow]")
