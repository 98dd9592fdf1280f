"""history command — display tracked commits from the history file."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

console = Console()

_CONCLUSION_STYLE = {
    "success": "green",
    "failure": "red",
    "neutral": "dim",
}


def _require_history(ctx):
    store = ctx.obj.get("store") if ctx.obj else None
    path = getattr(store, "path", None)
    if store is None or path is None or not path.exists():
        raise click.UsageError(
            "No commit history found. Run `commitlens track` after a commit, "
            "or `commitlens init` to install the post-commit hook."
        )
    return store


@click.command("history")
@click.option("--limit", default=20, show_default=True, help="Maximum number of commits to show.")
@click.pass_context
def history_cmd(ctx, limit: int):
    """Show tracked commits, newest first."""
    store = _require_history(ctx)

    records = store.load()
    if not records:
        console.print("[yellow]No commits tracked yet.[/yellow]")
        return

    records = list(reversed(records))[:limit]

    table = Table(title="Commit History", show_header=True, header_style="bold cyan")
    table.add_column("SHA", width=8)
    table.add_column("Author", max_width=20)
    table.add_column("Message", max_width=40)
    table.add_column("+/-", justify="right", width=12)
    table.add_column("Tests", justify="right", width=8)
    table.add_column("Conclusion", width=10)
    table.add_column("Date", width=20)

    for r in records:
        style = _CONCLUSION_STYLE.get(r.conclusion, "white")
        sha = "pending" if r.is_pending else str(r.sha)[:7]
        tests = f"{r.test_count - r.failed_tests}/{r.test_count}" if r.test_count else "-"
        table.add_row(
            sha,
            r.author,
            r.commit.message.splitlines()[0][:40] if r.commit.message else "",
            f"+{r.stats.additions} -{r.stats.deletions}",
            tests,
            f"[{style}]{r.conclusion}[/{style}]",
            r.commit.date[:19].replace("T", " "),
        )

    console.print(table)
