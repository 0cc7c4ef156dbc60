"""
forummoney.constants — Shared Constants & Helpers
==================================================

Single source of truth for setting keys, permission names and the
notification channel.  Import from here instead of repeating string
literals in the engine, services and tests.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Settings keys (``settings`` table, category "money")
# ---------------------------------------------------------------------------
SETTING_AMOUNT_PER_POST = "money.amount_per_post"
SETTING_POST_MINIMUM_LENGTH = "money.post_minimum_length"
SETTING_AMOUNT_PER_DISCUSSION = "money.amount_per_discussion"
SETTING_AMOUNT_PER_LIKE = "money.amount_per_like"
SETTING_AUTO_REMOVE = "money.auto_remove"
SETTING_CASCADE_REMOVE = "money.cascade_remove"
SETTING_IGNORE_NOTIFYING_USERS = "money.ignore_notifying_users"


# ---------------------------------------------------------------------------
# Permissions
# ---------------------------------------------------------------------------
ADMIN_GROUP_ID = 1

EDIT_MONEY_ABILITY = "edit_money"


def disable_money_permission(tag_id: int) -> str:
    """Permission key that opts a member out of earning in tag *tag_id*."""
    return f"tag{tag_id}.discussion.money.disable_money"


def ability_permission(ability: str) -> str:
    """Group permission key that grants *ability* over other accounts."""
    return f"user.{ability}"


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
MONEY_UPDATED = "money_updated"

EVENT_NOTIFY_CHANNEL = "money_events"
