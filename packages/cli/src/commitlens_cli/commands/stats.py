"""stats command — aggregate test outcomes and churn across the history."""

from __future__ import annotations

from collections import Counter

import click
from rich.console import Console
from rich.table import Table

from commitlens_cli.commands.history import _CONCLUSION_STYLE, _require_history
from commitlens_store.models import CONCLUSIONS

console = Console()


@click.command("stats")
@click.option("--top", default=5, show_default=True, help="Number of authors to show.")
@click.pass_context
def stats_cmd(ctx, top: int):
    """Show aggregated statistics for the tracked commits.

    Reports how often commits landed with green, red or no tests, how many
    lines were changed, and who commits most — useful for checking whether
    the team actually runs tests before committing.
    """
    store = _require_history(ctx)

    records = store.load()
    if not records:
        console.print("[yellow]No commits tracked yet.[/yellow]")
        return

    total_commits = len(records)
    additions = sum(r.stats.additions for r in records)
    deletions = sum(r.stats.deletions for r in records)
    conclusion_counter: Counter[str] = Counter(r.conclusion for r in records)
    author_counter: Counter[str] = Counter(r.author for r in records)

    # --- Summary ---
    console.print("\n[bold]Commit stats[/bold]")
    console.print(f"  Total commits:   {total_commits}")
    console.print(f"  Lines added:     {additions}")
    console.print(f"  Lines deleted:   {deletions}")
    console.print(f"  Avg churn:       {(additions + deletions) / total_commits:.1f}")

    # --- Conclusion breakdown ---
    table = Table(title="Test Conclusion", show_header=True)
    table.add_column("Conclusion", style="bold")
    table.add_column("Commits", justify="right")
    table.add_column("% of total", justify="right")
    for conclusion in CONCLUSIONS:
        count = conclusion_counter.get(conclusion, 0)
        style = _CONCLUSION_STYLE[conclusion]
        table.add_row(f"[{style}]{conclusion}[/{style}]", str(count), f"{count / total_commits * 100:.1f}%")
    console.print(table)

    # --- Most active authors ---
    author_table = Table(title=f"Top {top} Authors", show_header=True)
    author_table.add_column("Author")
    author_table.add_column("Commits", justify="right")
    for author, count in author_counter.most_common(top):
        author_table.add_row(author or "unknown", str(count))
    console.print(author_table)
