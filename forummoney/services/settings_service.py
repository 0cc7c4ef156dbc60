"""
forummoney.services.settings_service — Settings reads & writes
===============================================================

Read/write access to the ``settings`` table.  ``bulk_upsert`` and
``get_all_settings`` back the ``--set`` and ``--show-settings`` options of
the entry point; ``upsert_setting`` and ``get_setting_value`` are the
single-key forms for admin tooling.  Running engines keep their
RuleConfig snapshot; reload the
:class:`~forummoney.engine.cache.SettingsCache` and build a new engine to
apply edits.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from forummoney.database.models import Setting
from forummoney.engine.cache import decode_setting

logger = logging.getLogger(__name__)


def get_setting_value(session: Session, key: str, default=None):
    """Parsed value of *key* within an open session, or *default*."""
    row = session.get(Setting, key)
    return default if row is None else decode_setting(row.value_json)


def get_all_settings(engine, category: str | None = None) -> list[Setting]:
    """Setting rows ordered by category then key, detached from the session."""
    stmt = select(Setting).order_by(Setting.category, Setting.key)
    if category is not None:
        stmt = stmt.where(Setting.category == category)
    with Session(engine, expire_on_commit=False) as session:
        rows = list(session.scalars(stmt))
        session.expunge_all()
    return rows


def _write(session: Session, key: str, value: Any, category: str, description: str | None) -> None:
    row = session.get(Setting, key)
    if row is None:
        row = Setting(key=key, category=category)
        session.add(row)
    else:
        row.category = category or row.category
    row.value_json = json.dumps(value)
    if description is not None:
        row.description = description


def upsert_setting(
    engine,
    *,
    key: str,
    value: Any,
    category: str = "money",
    description: str | None = None,
) -> None:
    """Insert or update a single setting."""
    with Session(engine) as session:
        _write(session, key, value, category, description)
        session.commit()
    logger.info("Setting %s = %r", key, value)


def bulk_upsert(engine, settings: dict[str, Any], *, category: str = "money") -> int:
    """Upsert many ``key → value`` pairs in one transaction.  Returns rows touched."""
    with Session(engine) as session:
        for key, value in settings.items():
            _write(session, key, value, category, None)
        session.commit()
    logger.info("Upserted %d %s settings", len(settings), category)
    return len(settings)
