"""
forummoney.engine.cache — In-Memory Settings Cache
===================================================

Mirrors one category of the ``settings`` table (``money`` by default) in
memory and exposes typed accessors.  The reward rules read it once when an
engine is built; call :meth:`SettingsCache.reload` after an admin edit to
pick up new values for engines built afterwards.

Values are stored as JSON.  Rows written by older tooling may hold bare
strings (``"1"``, ``"onHide"``); :func:`decode_setting` keeps those as-is.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from forummoney.database.models import Setting

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

_FALSE_STRINGS = frozenset({"", "0", "false", "no", "off"})


def decode_setting(raw: str | None) -> Any:
    """Parse a stored ``value_json``, falling back to the raw string."""
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return raw


class SettingsCache:
    """Thread-safe snapshot of the settings of one category.

    Usage:
        cache = SettingsCache(engine)
        cache.load_all()

        amount = cache.get_float("money.amount_per_post", 0.0)
    """

    def __init__(self, engine: Engine, category: str | None = "money") -> None:
        self._engine = engine
        self._category = category
        self._lock = threading.Lock()
        self._values: dict[str, Any] = {}
        self.generation = 0

    def load_all(self) -> None:
        """Read the category from the DB. Call on startup."""
        count = self._refresh()
        logger.info("SettingsCache loaded: %d %s settings", count, self._category or "")

    def reload(self) -> None:
        logger.info("Settings cache invalidated, reloading")
        self._refresh()

    def _refresh(self) -> int:
        stmt = select(Setting.key, Setting.value_json)
        if self._category is not None:
            stmt = stmt.where(Setting.category == self._category)
        with Session(self._engine) as session:
            fresh = {key: decode_setting(raw) for key, raw in session.execute(stmt)}

        with self._lock:
            self._values = fresh
            self.generation += 1
        return len(fresh)

    # -------------------------------------------------------------------
    # Typed accessors
    # -------------------------------------------------------------------
    def get_setting(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._values.get(key, default)

    def _coerce(self, key: str, cast, default):
        value = self.get_setting(key)
        if value is None:
            return default
        try:
            return cast(value)
        except (TypeError, ValueError):
            logger.warning("Setting %s=%r is not a valid %s", key, value, cast.__name__)
            return default

    def get_int(self, key: str, default: int = 0) -> int:
        return self._coerce(key, int, default)

    def get_float(self, key: str, default: float = 0.0) -> float:
        return self._coerce(key, float, default)

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get_setting(key)
        if value is None:
            return default
        # Legacy rows store flags as "0" / "1" strings
        if isinstance(value, str):
            return value.strip().lower() not in _FALSE_STRINGS
        return bool(value)

    def get_str(self, key: str, default: str = "") -> str:
        return self._coerce(key, str, default)
