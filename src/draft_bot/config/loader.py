from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Dict


DEFAULT_CONFIG_PATH = Path("config.toml")
CONFIG_PATH_ENV = "DRAFT_BOT_CONFIG"


def load_toml_file(path: str | Path) -> Dict[str, Any]:
    """Parse ``path`` as TOML, returning an empty dict when the file is missing."""
    target = Path(path)
    if not target.is_file():
        return {}

    with target.open("rb") as handle:
        return tomllib.load(handle)


def load_raw_config(path: str | Path | None = None) -> Dict[str, Any]:
    """
    Load the application config (``config.toml`` by default).

    ``DRAFT_BOT_CONFIG`` overrides the default location. Returns an empty dict
    when the file is missing so callers can fall back to environment variables.
    """
    if path is None:
        path = os.getenv(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH
    return load_toml_file(path)


__all__ = ["load_raw_config", "load_toml_file", "DEFAULT_CONFIG_PATH"]
