"""CLI entry point for prca.

Commands:
  post  — post new static-analysis issues from a report to a pull request
  show  — print the new issues in a report without contacting GitHub
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from prca_cli.commands.post import post_cmd
from prca_cli.commands.show import show_cmd


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    # PyGithub's request tracing is too noisy even for --verbose.
    logging.getLogger("github").setLevel(logging.WARNING)


@click.group()
@click.version_option(
    version=importlib.metadata.version("prca"),
    prog_name="prca",
)
@click.option(
    "--config",
    "config_path",
    default=".prca.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRCA_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log every pipeline step.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Post static-analysis findings as pull request review comments."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(post_cmd)
main.add_command(show_cmd)
