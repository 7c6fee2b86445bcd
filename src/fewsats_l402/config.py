"""Client configuration.

Settings are resolved from environment variables first, then from
~/.fewsats/config.json, then from built-in defaults.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from fewsats_l402.store import Store

DEFAULT_DOMAIN = "https://api.fewsats.com"
DEFAULT_LOG_LEVEL = "info"

_CONFIG_DIR = Path.home() / ".fewsats"
_CONFIG_FILE = "config.json"
_DB_FILE = "fewsats.db"

# setting name -> (environment variable, config file key)
_SETTINGS = {
    "domain": ("FEWSATS_DOMAIN", "domain"),
    "api_key": ("FEWSATS_API_KEY", "apiKey"),
    "db_path": ("FEWSATS_DB_PATH", "dbPath"),
    "log_level": ("FEWSATS_LOG_LEVEL", "logLevel"),
}


@dataclass
class Config:
    """Resolved client settings."""

    domain: str = DEFAULT_DOMAIN
    api_key: str = ""
    log_level: str = DEFAULT_LOG_LEVEL
    config_dir: Path = _CONFIG_DIR
    db_path: Path = field(default_factory=lambda: _CONFIG_DIR / _DB_FILE)

    def open_store(self) -> Store:
        """Open (and migrate) the local credentials database."""
        return Store.open(self.db_path)


def _is_real_value(val: str | None) -> bool:
    """Check if an env var value is a real setting (not a placeholder)."""
    if not val:
        return False
    return not val.startswith("${")


def _load_config_file(path: Path) -> dict:
    """Load the JSON config file if it exists."""
    try:
        if path.exists():
            data = json.loads(path.read_text())
            if isinstance(data, dict):
                return data
    except (json.JSONDecodeError, OSError):
        pass
    return {}


def _resolve(env_var: str, config_key: str, file_config: dict) -> str:
    """Resolve a setting: env var first (skip placeholders), then config file."""
    val = os.environ.get(env_var, "")
    if _is_real_value(val):
        return val
    return str(file_config.get(config_key, "") or "")


def load_config(config_dir: str | Path | None = None) -> Config:
    """Load the client configuration.

    Args:
        config_dir: Directory holding config.json and the database.
            Defaults to ~/.fewsats.
    """
    base_dir = Path(config_dir) if config_dir is not None else _CONFIG_DIR
    file_config = _load_config_file(base_dir / _CONFIG_FILE)
    values = {
        name: _resolve(env_var, key, file_config)
        for name, (env_var, key) in _SETTINGS.items()
    }

    return Config(
        domain=(values["domain"] or DEFAULT_DOMAIN).rstrip("/"),
        api_key=values["api_key"],
        log_level=values["log_level"] or DEFAULT_LOG_LEVEL,
        config_dir=base_dir,
        db_path=Path(values["db_path"]) if values["db_path"] else base_dir / _DB_FILE,
    )


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Send package logs to stderr at the given level name."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
