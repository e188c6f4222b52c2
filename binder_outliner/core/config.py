"""
Configuration helpers for Binder Outliner.

Design overview
---------------
Project data (binder tree, text contents, metadata) lives in each
project directory and is never stored here. This module only keeps a
small per-user bootstrap configuration that remembers which project was
open last and a short list of recently opened projects.

The bootstrap directory follows the familiar ``~/.<tool>`` pattern::

    ~/.binder_outliner/config.json

with contents such as::

    {
      "last_project_dir": "/Users/me/Writing/Novel",
      "recent_projects": ["/Users/me/Writing/Novel", "/Users/me/Writing/Short"]
    }

Per-machine view state (outliner columns and sort order, window
geometry) is kept in ``QSettings`` by the GUI instead, so that it does
not travel with the config file.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

# ---------------------------------------------------------------------------
# Paths and constants
# ---------------------------------------------------------------------------

APP_DIR_NAME = ".binder_outliner"

CONFIG_FILENAME = "config.json"

# Number of entries kept in ``recent_projects``.
MAX_RECENT_PROJECTS = 10

# QSettings organization/application names used by the GUI.
SETTINGS_ORGANIZATION = "BinderOutliner"
SETTINGS_APPLICATION = "Outliner"


# ---------------------------------------------------------------------------
# Low-level helpers for bootstrap directory and config.json
# ---------------------------------------------------------------------------


def get_bootstrap_dir() -> Path:
    """Return the per-user bootstrap directory (``~/.binder_outliner``)."""

    return Path.home() / APP_DIR_NAME


def get_config_path() -> Path:
    """Return the full path to ``config.json`` inside the bootstrap directory."""

    return get_bootstrap_dir() / CONFIG_FILENAME


def _load_raw_config() -> Dict[str, Any]:
    """Load the raw configuration dictionary from disk.

    If the file does not exist or cannot be parsed, an empty dictionary
    is returned. Higher-level helpers apply defaults on top.
    """

    path = get_config_path()
    if not path.exists():
        return {}

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logging.warning("Ignoring unreadable config file %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        return {}
    return data


def _save_raw_config(cfg: Dict[str, Any]) -> None:
    """Atomically write the given configuration dictionary to disk."""

    bootstrap = get_bootstrap_dir()
    bootstrap.mkdir(parents=True, exist_ok=True)

    path = get_config_path()
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(cfg, indent=2, sort_keys=True), encoding="utf-8")
    tmp.replace(path)


# ---------------------------------------------------------------------------
# High-level configuration model
# ---------------------------------------------------------------------------


def _ensure_default_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Ensure that the configuration dictionary has the required keys.

    Args:
        raw: Existing configuration dictionary (possibly empty).

    Returns:
        A configuration dictionary with at least ``last_project_dir``
        and ``recent_projects``.
    """

    cfg = dict(raw) if raw is not None else {}

    last = cfg.get("last_project_dir")
    if not isinstance(last, str) or not last:
        cfg["last_project_dir"] = None

    recent = cfg.get("recent_projects")
    if not isinstance(recent, list):
        recent = []
    cfg["recent_projects"] = [p for p in recent if isinstance(p, str) and p][
        :MAX_RECENT_PROJECTS
    ]

    return cfg


def load_config() -> Dict[str, Any]:
    """Load the application configuration, applying defaults as needed.

    Any defaults added here are written back so that subsequent runs see
    a consistent file.
    """

    raw = _load_raw_config()
    cfg = _ensure_default_config(raw)

    if cfg != raw:
        _save_raw_config(cfg)

    return cfg


def get_last_project_dir() -> Optional[Path]:
    """Return the most recently opened project directory, or None if unset."""
    cfg = load_config()
    last = cfg.get("last_project_dir")
    if not last:
        return None
    return Path(last).expanduser()


def get_recent_projects() -> List[Path]:
    """Return recently opened project directories, most recent first."""
    cfg = load_config()
    return [Path(p).expanduser() for p in cfg.get("recent_projects", [])]


def set_last_project_dir(path: Path) -> None:
    """Remember ``path`` as the last opened project and move it to the
    front of the recent projects list."""
    cfg = load_config()
    value = str(path)
    cfg["last_project_dir"] = value
    recent = [p for p in cfg.get("recent_projects", []) if p != value]
    cfg["recent_projects"] = [value] + recent[: MAX_RECENT_PROJECTS - 1]
    _save_raw_config(cfg)
