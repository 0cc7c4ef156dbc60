"""
forummoney.engine.notifications — Balance change notifications
================================================================

Every balance mutation publishes a :class:`BalanceUpdated`.  The engine
writes into a :class:`NotificationBuffer` while the database transaction
is open; the event service flushes the buffer into the
:class:`NotificationHub` after commit, so subscribers never see a change
that was rolled back.

Subscribers are plain callables.  :func:`make_pg_forwarder` builds one
that re-broadcasts each notification over PostgreSQL ``NOTIFY`` for
out-of-process consumers (e.g. a real-time UI push service).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from sqlalchemy import text

from forummoney.constants import EVENT_NOTIFY_CHANNEL, MONEY_UPDATED

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from forummoney.database.models import Account

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BalanceUpdated:
    """The balance of ``account`` changed.

    ``delta`` is None for a direct balance edit (the value was set, not
    adjusted).
    """

    account: Account
    delta: float | None = None

    def to_payload(self) -> dict:
        return {
            "type": MONEY_UPDATED,
            "account_id": self.account.id,
            "balance": self.account.balance,
            "delta": self.delta,
        }


class Notifier(Protocol):
    def publish(self, notification: BalanceUpdated) -> None: ...


Subscriber = Callable[[BalanceUpdated], None]


class NotificationHub:
    """Synchronous fan-out to registered subscribers.

    A failing subscriber is logged and skipped; the others still run.
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)
        logger.info("Registered balance subscriber %r", callback)

    def publish(self, notification: BalanceUpdated) -> None:
        for callback in list(self._subscribers):
            try:
                callback(notification)
            except Exception:
                logger.exception(
                    "Balance subscriber %r failed for account %s",
                    callback, notification.account.id,
                )


class NotificationBuffer:
    """Collects notifications until the surrounding transaction commits."""

    def __init__(self) -> None:
        self.pending: list[BalanceUpdated] = []

    def publish(self, notification: BalanceUpdated) -> None:
        self.pending.append(notification)

    def flush_to(self, target: Notifier) -> int:
        """Publish every pending notification to *target* and clear the buffer."""
        pending, self.pending = self.pending, []
        for notification in pending:
            target.publish(notification)
        return len(pending)

    def clear(self) -> None:
        self.pending.clear()


# ---------------------------------------------------------------------------
# PostgreSQL NOTIFY forwarding
# ---------------------------------------------------------------------------
def send_event_notify(engine: Engine, payload: dict, channel: str = EVENT_NOTIFY_CHANNEL) -> None:
    """Send a NOTIFY on *channel* with a JSON payload.

    Parameters
    ----------
    engine : Engine
        SQLAlchemy engine bound to a PostgreSQL database.
    payload : dict
        Must include a ``"type"`` key.  Serialised to JSON.
    """
    if "type" not in payload:
        raise ValueError("Event payload must include a 'type' key")
    if not channel.isidentifier():
        raise ValueError(f"Invalid NOTIFY channel name: {channel!r}")
    raw = json.dumps(payload, default=str)
    # Escape single quotes for PG
    escaped = raw.replace("'", "''")
    with engine.connect() as conn:
        conn.execute(text(f"NOTIFY {channel}, '{escaped}'"))
        conn.commit()


def make_pg_forwarder(engine: Engine, channel: str = EVENT_NOTIFY_CHANNEL) -> Subscriber:
    """Return a subscriber that forwards each notification over NOTIFY."""

    def _forward(notification: BalanceUpdated) -> None:
        send_event_notify(engine, notification.to_payload(), channel)

    return _forward
