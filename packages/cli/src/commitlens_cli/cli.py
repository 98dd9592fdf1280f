"""CLI entry point for commitlens.

Commands:
  track    — record the current commit and its test runs (run from a post-commit hook)
  history  — display tracked commits from the history file
  stats    — aggregate test outcomes and churn across the history
  init     — write .commitlens.yml and install the post-commit hook
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from commitlens_cli.commands.history import history_cmd
from commitlens_cli.commands.init import init_cmd
from commitlens_cli.commands.stats import stats_cmd
from commitlens_cli.commands.track import track_cmd

console = Console()


def _build_store(config: dict):
    """Instantiate the history store from .commitlens.yml settings.

    This factory lives in cli.py so neither commitlens_core nor commitlens_store
    know about the CLI config format.
    """
    from commitlens_store.json_file import JsonHistoryStore

    return JsonHistoryStore(config["history_file"])


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("commitlens"),
    prog_name="commitlens",
)
@click.option(
    "--config",
    "config_path",
    default=".commitlens.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="COMMITLENS_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log every git query and request.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Commit and test-run telemetry for your repository."""
    from commitlens_core.config import load_config

    _setup_logging(verbose)
    ctx.ensure_object(dict)
    config = load_config(config_path)

    store = _build_store(config)
    ctx.obj["store"] = store
    ctx.obj["config"] = config
    ctx.obj["config_path"] = config_path
    ctx.call_on_close(store.close)


main.add_command(track_cmd)
main.add_command(history_cmd)
main.add_command(stats_cmd)
main.add_command(init_cmd)
