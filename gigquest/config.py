"""
gigquest.config — YAML Configuration Loader
============================================

Reads ``config.yaml`` for non-secret tuning (token lifetimes, leaderboard
and feed sizes, pagination caps).  Secrets and connection strings
(``DATABASE_URL``, ``JWT_SECRET``) stay in the environment / ``.env``.

Usage::

    from gigquest.config import load_config

    cfg = load_config()                  # ./config.yaml or $GIGQUEST_CONFIG
    print(cfg.access_token_minutes)      # 60
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class GigQuestConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    app_name: str = "GigQuest"

    # Auth provider
    access_token_minutes: int = 60
    refresh_token_days: int = 7

    # Gamification reads
    leaderboard_default_limit: int = 10
    recent_activity_limit: int = 10

    # Listing endpoints
    page_size_default: int = 10
    page_size_max: int = 100


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path | None = None) -> GigQuestConfig:
    """Read *path* and return a :class:`GigQuestConfig`.

    Parameters
    ----------
    path:
        YAML file to read.  Defaults to ``$GIGQUEST_CONFIG`` or
        ``config.yaml`` in the working directory.  A missing default file
        yields the built-in defaults; a missing *explicit* file is an error.

    Raises
    ------
    FileNotFoundError
        If *path* was given explicitly and doesn't exist.
    ValueError
        If a value cannot be converted to its declared type.
    """
    explicit = path is not None or "GIGQUEST_CONFIG" in os.environ
    config_path = Path(path or os.getenv("GIGQUEST_CONFIG", "config.yaml"))

    if not config_path.exists():
        if explicit:
            raise FileNotFoundError(
                f"Configuration file not found: {config_path.resolve()}\n"
                "Hint: copy config.yaml.example → config.yaml and edit it."
            )
        return GigQuestConfig()

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    defaults = GigQuestConfig()
    return GigQuestConfig(
        app_name=str(raw.get("app_name", defaults.app_name)),
        access_token_minutes=int(raw.get("access_token_minutes", defaults.access_token_minutes)),
        refresh_token_days=int(raw.get("refresh_token_days", defaults.refresh_token_days)),
        leaderboard_default_limit=int(
            raw.get("leaderboard_default_limit", defaults.leaderboard_default_limit)
        ),
        recent_activity_limit=int(
            raw.get("recent_activity_limit", defaults.recent_activity_limit)
        ),
        page_size_default=int(raw.get("page_size_default", defaults.page_size_default)),
        page_size_max=int(raw.get("page_size_max", defaults.page_size_max)),
    )
