"""
forummoney.__main__ — Entry point for ``python -m forummoney``
===============================================================

Wiring:
1. Load .env (DATABASE_URL).
2. Load config.yaml (soft settings).
3. Create the SQLAlchemy engine, ensure tables exist, seed settings,
   apply any ``--set KEY=VALUE`` overrides.
4. Warm the SettingsCache and take the RuleConfig snapshot.
5. Optionally forward balance notifications over PG NOTIFY.
6. Optionally replay a JSON-lines file of forum events.
7. Optionally report account balances (``--balance ID``).

Run with::

    python -m forummoney --replay events.jsonl
    python -m forummoney --set money.amount_per_post=5 --show-settings
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from forummoney.config import load_config
from forummoney.database.engine import create_db_engine, init_db
from forummoney.engine.cache import SettingsCache, decode_setting
from forummoney.engine.events import ForumEvent
from forummoney.engine.notifications import NotificationHub, make_pg_forwarder
from forummoney.engine.permissions import PermissionDeniedError
from forummoney.engine.rules import load_rule_config
from forummoney.services.account_service import get_balance
from forummoney.services.event_service import process_event
from forummoney.services.settings_service import bulk_upsert, get_all_settings

logger = logging.getLogger("forummoney")


def parse_overrides(pairs: list[str]) -> dict[str, Any]:
    """Turn ``KEY=VALUE`` strings into settings; VALUE is JSON or a bare string."""
    overrides: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected KEY=VALUE, got {pair!r}")
        overrides[key.strip()] = decode_setting(raw.strip())
    return overrides


def replay_file(engine, rules, path: Path, hub: NotificationHub) -> tuple[int, int]:
    """Process every event in a JSON-lines file.

    Malformed lines and rejected balance edits are logged and skipped.
    Returns ``(processed, skipped)``.
    """
    processed = skipped = 0
    with open(path, encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                event = ForumEvent.from_dict(json.loads(line))
            except (json.JSONDecodeError, ValueError) as exc:
                logger.warning("Line %d: invalid event (%s)", lineno, exc)
                skipped += 1
                continue
            try:
                applied = process_event(engine, rules, event, notifier=hub)
            except PermissionDeniedError as exc:
                logger.warning("Line %d: %s", lineno, exc)
                skipped += 1
                continue
            if applied:
                processed += 1
            else:
                skipped += 1
    return processed, skipped


def main(argv: list[str] | None = None) -> int:
    """Bootstrap forummoney and optionally replay events."""
    parser = argparse.ArgumentParser(prog="forummoney")
    parser.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    parser.add_argument("--replay", type=Path, help="JSON-lines file of forum events")
    parser.add_argument(
        "--set", action="append", default=[], metavar="KEY=VALUE",
        help="Store a money setting before the rules are loaded (repeatable)",
    )
    parser.add_argument(
        "--show-settings", action="store_true", help="Log every money setting",
    )
    parser.add_argument(
        "--balance", action="append", type=int, default=[], metavar="ACCOUNT_ID",
        help="Log the balance of an account after any replay (repeatable)",
    )
    args = parser.parse_args(argv)

    # 1. Environment variables (secrets).
    load_dotenv()

    # 2. Soft configuration.
    cfg = load_config(args.config)
    logging.basicConfig(
        level=cfg.log_level,
        format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
        datefmt="%H:%M:%S",
    )
    logger.info("Config loaded — Forum: %s", cfg.forum_name)

    # 3. Database.
    try:
        engine = create_db_engine()
    except RuntimeError as exc:
        logger.critical("%s", exc)
        return 1
    init_db(engine)

    if args.set:
        try:
            overrides = parse_overrides(args.set)
        except ValueError as exc:
            logger.critical("%s", exc)
            return 2
        bulk_upsert(engine, overrides)
    if args.show_settings:
        for row in get_all_settings(engine, category="money"):
            logger.info("  %-32s %s", row.key, row.value_json)

    # 4. Rules snapshot.
    cache = SettingsCache(engine)
    cache.load_all()
    rules = load_rule_config(cache)
    logger.info("Money rules: %s", rules)

    # 5. Notifications.
    hub = NotificationHub()
    if cfg.publish_notifications:
        if engine.dialect.name == "postgresql":
            hub.subscribe(make_pg_forwarder(engine, cfg.notify_channel))
        else:
            logger.warning(
                "publish_notifications needs PostgreSQL, not %s — disabled",
                engine.dialect.name,
            )

    # 6. Replay.
    if args.replay is not None:
        processed, skipped = replay_file(engine, rules, args.replay, hub)
        logger.info("Replay finished: %d processed, %d skipped", processed, skipped)

    # 7. Balance report.
    for account_id in args.balance:
        balance = get_balance(engine, account_id)
        if balance is None:
            logger.warning("Account %d not found", account_id)
        else:
            logger.info("Account %d balance: %.2f", account_id, balance)

    return 0


if __name__ == "__main__":
    sys.exit(main())
