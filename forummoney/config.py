"""
forummoney.config — YAML Configuration Loader
==============================================

Reads ``config.yaml`` for **infrastructure-only** settings (forum identity,
log level, notification forwarding).  Reward amounts and thresholds live in
the ``settings`` database table; the database URL comes from the
``DATABASE_URL`` environment variable.

Usage::

    from forummoney.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.forum_name)        # "My Forum"
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from forummoney.constants import EVENT_NOTIFY_CHANNEL


@dataclass(frozen=True, slots=True)
class ForumMoneyConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    forum_name: str
    log_level: str = "INFO"

    # Re-broadcast balance changes over PostgreSQL NOTIFY
    publish_notifications: bool = False
    notify_channel: str = EVENT_NOTIFY_CHANNEL


def load_config(path: str | Path = "config.yaml") -> ForumMoneyConfig:
    """Read *path* and return a :class:`ForumMoneyConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return ForumMoneyConfig(
        forum_name=raw["forum_name"],
        log_level=str(raw.get("log_level", "INFO")).upper(),
        publish_notifications=bool(raw.get("publish_notifications", False)),
        notify_channel=raw.get("notify_channel") or EVENT_NOTIFY_CHANNEL,
    )
