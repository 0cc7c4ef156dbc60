"""
forummoney.database.seed — Default Settings Seeder
===================================================

Baseline money settings seeded on first startup so the reward rules have a
row to edit for every knob.

Idempotent — only inserts keys that don't already exist.  Values edited by
an admin are never overwritten.
"""

from __future__ import annotations

import json
import logging

from sqlalchemy import Engine, select

from forummoney.constants import (
    SETTING_AMOUNT_PER_DISCUSSION,
    SETTING_AMOUNT_PER_LIKE,
    SETTING_AMOUNT_PER_POST,
    SETTING_AUTO_REMOVE,
    SETTING_CASCADE_REMOVE,
    SETTING_IGNORE_NOTIFYING_USERS,
    SETTING_POST_MINIMUM_LENGTH,
)
from forummoney.database.engine import get_session
from forummoney.database.models import Setting

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Default settings catalogue
# ---------------------------------------------------------------------------
DEFAULT_SETTINGS: dict[str, tuple[object, str, str]] = {
    SETTING_AMOUNT_PER_POST: (0, "money", "Money awarded per reply"),
    SETTING_POST_MINIMUM_LENGTH: (
        0, "money", "Minimum reply length (after mention filtering) to earn money",
    ),
    SETTING_AMOUNT_PER_DISCUSSION: (0, "money", "Money awarded per started discussion"),
    SETTING_AMOUNT_PER_LIKE: (0, "money", "Money awarded to a post author per like"),
    SETTING_AUTO_REMOVE: (
        "onHide", "money", "Take money back when content is hidden (onHide) or deleted (onDelete)",
    ),
    SETTING_CASCADE_REMOVE: (
        False, "money", "Also take back reply money when a whole discussion is removed",
    ),
    SETTING_IGNORE_NOTIFYING_USERS: (
        False, "money", "Ignore @mention quotes when measuring reply length",
    ),
}
"""Each entry maps ``key`` → ``(default_value, category, description)``."""


# ---------------------------------------------------------------------------
# Seeder
# ---------------------------------------------------------------------------
def seed_default_settings(engine: Engine) -> int:
    """Insert the default settings whose key is not in the table yet.

    Returns the number of rows inserted.
    """
    with get_session(engine) as session:
        present = set(session.scalars(
            select(Setting.key).where(Setting.key.in_(list(DEFAULT_SETTINGS)))
        ))
        missing = [key for key in DEFAULT_SETTINGS if key not in present]
        session.add_all(
            Setting(
                key=key,
                value_json=json.dumps(DEFAULT_SETTINGS[key][0]),
                category=DEFAULT_SETTINGS[key][1],
                description=DEFAULT_SETTINGS[key][2],
            )
            for key in missing
        )

    if missing:
        logger.info("Seeded %d default money settings: %s", len(missing), ", ".join(missing))
    return len(missing)
