"""
forummoney.engine.rules — Reward Rule Configuration
====================================================

One immutable :class:`RuleConfig` snapshot per engine.  Values come from
the ``settings`` table (via :class:`~forummoney.engine.cache.SettingsCache`)
and fall back to the documented defaults when a key is missing or invalid,
so an engine can always be constructed.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Protocol

from forummoney.constants import (
    SETTING_AMOUNT_PER_DISCUSSION,
    SETTING_AMOUNT_PER_LIKE,
    SETTING_AMOUNT_PER_POST,
    SETTING_AUTO_REMOVE,
    SETTING_CASCADE_REMOVE,
    SETTING_IGNORE_NOTIFYING_USERS,
    SETTING_POST_MINIMUM_LENGTH,
)

logger = logging.getLogger(__name__)


class AutoRemoveMode(enum.StrEnum):
    """When rewards are taken back: on hide (reversible) or on hard delete."""
    ON_HIDE = "onHide"
    ON_DELETE = "onDelete"

    @classmethod
    def parse(cls, raw: Any, default: AutoRemoveMode | None = None) -> AutoRemoveMode:
        """Accept the enum values, short aliases, or the legacy integers 1 / 2."""
        fallback = default or cls.ON_HIDE
        if raw is None:
            return fallback
        if isinstance(raw, cls):
            return raw
        key = str(raw).strip().lower()
        if key in _AUTO_REMOVE_ALIASES:
            return _AUTO_REMOVE_ALIASES[key]
        logger.warning("Unknown auto-remove mode %r, using %s", raw, fallback.value)
        return fallback


_AUTO_REMOVE_ALIASES: dict[str, AutoRemoveMode] = {
    "onhide": AutoRemoveMode.ON_HIDE,
    "hide": AutoRemoveMode.ON_HIDE,
    "hidden": AutoRemoveMode.ON_HIDE,
    "1": AutoRemoveMode.ON_HIDE,
    "ondelete": AutoRemoveMode.ON_DELETE,
    "delete": AutoRemoveMode.ON_DELETE,
    "deleted": AutoRemoveMode.ON_DELETE,
    "2": AutoRemoveMode.ON_DELETE,
}


class SettingsProvider(Protocol):
    """Read-only typed settings lookup (satisfied by SettingsCache)."""

    def get_setting(self, key: str, default: Any = None) -> Any: ...

    def get_int(self, key: str, default: int = 0) -> int: ...

    def get_float(self, key: str, default: float = 0.0) -> float: ...

    def get_bool(self, key: str, default: bool = False) -> bool: ...


# ---------------------------------------------------------------------------
# RuleConfig — immutable amounts and thresholds
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class RuleConfig:
    """Configured amounts and thresholds for one engine instance."""

    amount_per_post: float = 0.0
    minimum_post_length: int = 0
    amount_per_discussion: float = 0.0
    amount_per_like: float = 0.0
    auto_remove_mode: AutoRemoveMode = AutoRemoveMode.ON_HIDE
    cascade_remove_enabled: bool = False
    suppress_mention_notifications: bool = False

    @property
    def removes_on_hide(self) -> bool:
        return self.auto_remove_mode == AutoRemoveMode.ON_HIDE

    @property
    def removes_on_delete(self) -> bool:
        return self.auto_remove_mode == AutoRemoveMode.ON_DELETE


def load_rule_config(settings: SettingsProvider) -> RuleConfig:
    """Read every money setting once and return a :class:`RuleConfig`."""
    rules = RuleConfig(
        amount_per_post=settings.get_float(SETTING_AMOUNT_PER_POST, 0.0),
        minimum_post_length=settings.get_int(SETTING_POST_MINIMUM_LENGTH, 0),
        amount_per_discussion=settings.get_float(SETTING_AMOUNT_PER_DISCUSSION, 0.0),
        amount_per_like=settings.get_float(SETTING_AMOUNT_PER_LIKE, 0.0),
        auto_remove_mode=AutoRemoveMode.parse(settings.get_setting(SETTING_AUTO_REMOVE)),
        cascade_remove_enabled=settings.get_bool(SETTING_CASCADE_REMOVE, False),
        suppress_mention_notifications=settings.get_bool(SETTING_IGNORE_NOTIFYING_USERS, False),
    )
    logger.debug("Loaded rule config: %s", rules)
    return rules
