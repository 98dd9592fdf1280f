"""track command — record the current commit and the test runs that led to it."""

from __future__ import annotations

import asyncio
import logging

import click
from rich.console import Console

from commitlens_core.config import excluded_paths
from commitlens_core.telemetry import TelemetryClient
from commitlens_core.tracker import TrackSummary, track_commit
from commitlens_core.vcs import GitInspector, GitRunner
from commitlens_store.models import CommitDetails, CommitRecord, StatsRecord

console = Console()
logger = logging.getLogger(__name__)


def _summary_to_record(summary: TrackSummary) -> CommitRecord:
    """Map a TrackSummary returned by track_commit() to a CommitRecord for the store.

    The record keeps the Pending ref and its /commit/HEAD URL; the next run
    resolves both once this commit is no longer the tip.
    """
    info = summary.info
    return CommitRecord(
        sha=info.ref,
        author=info.author,
        commit=CommitDetails(date=info.date, message=info.message, url=info.url),
        stats=StatsRecord(
            additions=info.stats.additions,
            deletions=info.stats.deletions,
            date=info.stats.date,
        ),
        coverage=summary.window.coverage,
        test_count=summary.window.test_count,
        failed_tests=summary.window.failed_tests,
        conclusion=summary.window.conclusion,
    )


def run_tracking(config: dict, store, inspector: GitInspector | None = None) -> TrackSummary | None:
    """Inspect, send and persist. Returns None when there was no commit to track."""
    store.ensure()

    inspector = inspector or GitInspector(GitRunner(), excluded=excluded_paths(config))
    client = TelemetryClient(
        config["api_url"],
        user_id=inspector.user_name(),
        repo_name=inspector.repo_name(),
        timeout=config.get("request_timeout"),
    )

    def persist(summary: TrackSummary) -> None:
        store.record(_summary_to_record(summary), inspector.previous_sha)

    # The history is written while the sends are still in flight.
    return asyncio.run(track_commit(inspector, client, config["test_log_file"], persist=persist))


@click.command("track")
@click.option("--api-url", default=None, help="Telemetry collector base URL. Overrides config file.")
@click.option("--no-save", is_flag=True, help="Send telemetry but leave the history file untouched.")
@click.pass_context
def track_cmd(ctx, api_url: str | None, no_save: bool):
    """Record the current commit and its test runs.

    Meant to run from a post-commit hook (see `commitlens init`). Telemetry
    failures are reported but never fail the command; only unexpected errors
    exit non-zero.
    """
    from commitlens_store.noop import NoOpHistoryStore

    config = dict(ctx.obj["config"])
    if api_url:
        config["api_url"] = api_url.rstrip("/")
    store = NoOpHistoryStore() if no_save else ctx.obj["store"]

    try:
        summary = run_tracking(config, store)
    except Exception as e:
        logger.debug("Commit tracking failed", exc_info=True)
        console.print(f"[red]Error in commit tracking: {type(e).__name__}: {e}[/red]")
        ctx.exit(1)

    if summary is None:
        console.print("[yellow]No commit information available. Nothing was sent or saved.[/yellow]")
        return

    for result in summary.results:
        if not result.ok:
            console.print(f"[yellow]Could not deliver {result.endpoint}: {result.error}[/yellow]")
    console.print(
        f"[green]Tracked {summary.sha[:7]}[/green] on [bold]{summary.branch}[/bold] "
        f"({len(summary.window.runs)} test run(s), conclusion: {summary.window.conclusion})"
    )
