"""
forummoney.services.account_service — Account persistence helpers
==================================================================

``SqlAccountStore`` is what the event service writes through.
``get_balance`` backs the ``--balance`` report of the entry point;
``get_or_create_account`` is for forum-side integrations that sync members
into the ``accounts`` table.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from forummoney.database.models import Account

logger = logging.getLogger(__name__)


class SqlAccountStore:
    """AccountStore that writes through the current session.

    Changes are flushed immediately and committed by whoever owns the
    session, so all mutations of one event land in one transaction.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def save(self, account: Account) -> None:
        self._session.add(account)
        self._session.flush()


def get_or_create_account(session: Session, username: str) -> Account:
    """Fetch an account by username, inserting it if missing."""
    account = session.scalar(select(Account).where(Account.username == username))
    if account is None:
        account = Account(username=username, balance=0.0)
        session.add(account)
        session.flush()
    return account


def get_balance(engine, account_id: int) -> float | None:
    """Current balance of an account, or None if it does not exist."""
    with Session(engine) as session:
        account = session.get(Account, account_id)
        return account.balance if account is not None else None
