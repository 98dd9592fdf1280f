import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "api_url": "http://localhost:8000",
    "history_file": "script/commit-history.json",
    "test_log_file": "script/tdd_log.json",
    "request_timeout": None,  # None = wait as long as the collector takes
}

CONFIG_FILENAME = ".commitlens.yml"


def load_config(config_path: str = CONFIG_FILENAME, cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .commitlens.yml in the current directory
      3. CLI argument overrides
      4. COMMITLENS_API_URL from the environment
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    api_url = os.environ.get("COMMITLENS_API_URL")
    if api_url:
        config["api_url"] = api_url
    config["api_url"] = str(config["api_url"]).rstrip("/")

    return config


def excluded_paths(config: dict) -> list[str]:
    """Files commitlens itself writes to or reads from; kept out of diff stats."""
    return [config["history_file"], config["test_log_file"]]
