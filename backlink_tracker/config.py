# backlink_tracker/config.py
"""
Centralized configuration management.

Handles loading defaults, merging in settings from pyproject.toml,
and applying runtime overrides.
"""
from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, MutableMapping

try:
    import tomli
except ImportError:
    tomli = None  # type: ignore

log = logging.getLogger(__name__)

# Name the scheduler registers its recurring trigger under.
TICK_HANDLER = "process_backlink_batch"

# Sheet columns D, J, X, Y, Z, 1-based.
DEFAULT_COLUMNS: dict[str, int] = {
    "source": 4,
    "target": 10,
    "status": 24,
    "checked_at": 25,
    "remark": 26,
}

# This is the baseline configuration dictionary.
DEFAULT_CONFIG: dict[str, Any] = {
    "batch_size": 250,
    "tick_interval_minutes": 5,
    "datasets": ["RAW DATA"],
    "workbook": "backlinks.xlsx",
    "columns": DEFAULT_COLUMNS,
    "email_queue_sheet": "EmailQueue",
    # "regex" is the reference matcher; "soup" parses the page with BeautifulSoup.
    "matcher": "regex",
    "max_related_links": 10,
    "timeout": 10.0,
    "user_agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/108.0.0.0 Safari/537.36"
    ),
    "state": {
        # A concrete path, or "os-default" for the platform cache directory.
        "directory": ".backlink_tracker_state",
    },
}


def _deep_merge_dict(
    base: MutableMapping[str, Any], overrides: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Recursively merge dicts."""
    for key, value in overrides.items():
        if isinstance(value, MutableMapping) and isinstance(
            base.get(key), MutableMapping
        ):
            base[key] = _deep_merge_dict(base[key], value)
        else:
            base[key] = value
    return base


def load_config(pyproject_path: Path | None = None) -> dict[str, Any]:
    """
    Loads configuration from defaults and merges settings from pyproject.toml.

    1. Starts with DEFAULT_CONFIG.
    2. If `tomli` is installed, it looks for `pyproject.toml`.
    3. If `pyproject.toml` is found, it merges settings from
       `[tool.backlink_tracker]` over the defaults.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if tomli is None:
        log.debug("tomli not installed. Skipping pyproject.toml configuration.")
        return config

    if pyproject_path is None:
        pyproject_path = Path.cwd() / "pyproject.toml"

    if not pyproject_path.exists():
        log.debug(
            "No pyproject.toml found at %s. Using default config.", pyproject_path
        )
        return config

    try:
        with pyproject_path.open("rb") as f:
            toml_data = tomli.load(f)

        project_config = toml_data.get("tool", {}).get("backlink_tracker", {})
        if project_config:
            log.info("Loading config from %s", pyproject_path)
            config = _deep_merge_dict(config, project_config)  # type: ignore
        else:
            log.debug("No [tool.backlink_tracker] section in %s.", pyproject_path)

    except Exception as e:
        log.warning(
            "Failed to load or parse %s: %s. Using default config.",
            pyproject_path,
            e,
            exc_info=True,
        )

    return config


def apply_overrides(config: dict[str, Any], **overrides: Any) -> dict[str, Any]:
    """Set every override that is not None. Returns the same dict."""
    for key, value in overrides.items():
        if value is None:
            continue
        config[key] = value
        log.info("Applied override - %s set to: %s", key, value)
    return config
