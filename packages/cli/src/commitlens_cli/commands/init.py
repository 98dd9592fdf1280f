"""init command — set up commitlens in a repository.

Writes .commitlens.yml, creates an empty history file so the first
`commitlens track` has something to reconcile against, and installs a
post-commit hook so every commit is tracked without anyone remembering to.
"""

from __future__ import annotations

import stat
import subprocess
from pathlib import Path

import click
import yaml
from rich.console import Console

from commitlens_core.config import CONFIG_FILENAME, DEFAULT_CONFIG

console = Console()

_HOOK_MARKER = "# commitlens post-commit hook"

_HOOK_TEMPLATE = """\
#!/bin/sh
{marker}
# Never block a commit on telemetry.
commitlens track || true
"""


@click.command("init")
@click.option("--api-url", default=None, help="Telemetry collector base URL.")
@click.option("--yes", "-y", is_flag=True, help="Accept defaults without prompting.")
@click.pass_context
def init_cmd(ctx, api_url: str | None, yes: bool):
    """Set up commitlens for this repository."""
    console.print("\n[bold cyan]commitlens init[/bold cyan]\n")
    config_path = Path(ctx.obj.get("config_path", CONFIG_FILENAME) if ctx.obj else CONFIG_FILENAME)

    if api_url is None:
        api_url = DEFAULT_CONFIG["api_url"]
        if not yes:
            api_url = click.prompt("Telemetry API URL", default=api_url)

    history_file = DEFAULT_CONFIG["history_file"]
    test_log_file = DEFAULT_CONFIG["test_log_file"]
    if not yes:
        history_file = click.prompt("Commit history file", default=history_file)
        test_log_file = click.prompt("Test log file", default=test_log_file)

    _write_config(
        config_path,
        {"api_url": api_url.rstrip("/"), "history_file": history_file, "test_log_file": test_log_file},
    )
    console.print(f"[green]Wrote {config_path}[/green]")

    from commitlens_store.json_file import JsonHistoryStore

    JsonHistoryStore(history_file).ensure()
    console.print(f"[green]History file ready at {history_file}[/green]")

    install_hook = yes or click.confirm("\nInstall a post-commit git hook?", default=True)
    if install_hook:
        hook_path = _hooks_dir() / "post-commit"
        if _write_hook(hook_path):
            console.print(f"[green]Installed {hook_path}[/green]")
        else:
            console.print(
                f"[yellow]{hook_path} already exists and was not written by commitlens. "
                "Add `commitlens track || true` to it manually.[/yellow]"
            )

    console.print("\n[bold green]Setup complete![/bold green]")


def _write_config(path: Path, config: dict) -> None:
    """Write or update the config file, preserving any existing keys."""
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    existing.update(config)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))


def _hooks_dir() -> Path:
    """Resolve the hooks directory, honouring core.hooksPath and worktrees."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--git-path", "hooks"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0 and result.stdout.strip():
            return Path(result.stdout.strip())
    except (FileNotFoundError, subprocess.TimeoutExpired):
        pass
    return Path(".git/hooks")


def _write_hook(hook_path: Path) -> bool:
    """Write the hook unless a foreign hook is already there. Returns True if written."""
    if hook_path.exists() and _HOOK_MARKER not in hook_path.read_text():
        return False
    hook_path.parent.mkdir(parents=True, exist_ok=True)
    hook_path.write_text(_HOOK_TEMPLATE.format(marker=_HOOK_MARKER))
    hook_path.chmod(hook_path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return True
