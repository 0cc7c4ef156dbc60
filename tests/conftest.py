"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from forummoney.constants import ability_permission
from forummoney.database.models import Account, Base, Discussion, Post, PostType, Tag
from forummoney.engine.money import MoneyEngine
from forummoney.engine.permissions import PermissionDeniedError
from forummoney.engine.rules import RuleConfig


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all forummoney tables.

    Uses StaticPool so every session shares the same in-memory database.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


# ---------------------------------------------------------------------------
# In-memory collaborators for pure engine tests
# ---------------------------------------------------------------------------
class FakePermissions:
    """PermissionOracle over an explicit set of (account_id, permission) grants."""

    def __init__(self, grants: set[tuple[int, str]] | None = None) -> None:
        self.grants = set(grants or ())

    def grant(self, account: Account, permission: str) -> None:
        self.grants.add((account.id, permission))

    def has_permission(self, account: Account, permission: str) -> bool:
        return (account.id, permission) in self.grants

    def assert_can(self, actor: Account | None, ability: str, target: Account) -> None:
        if actor is None or not self.has_permission(actor, ability_permission(ability)):
            raise PermissionDeniedError(
                ability, actor.id if actor else None, target.id if target else None,
            )


@pytest.fixture
def permissions() -> FakePermissions:
    return FakePermissions()


@pytest.fixture
def store() -> MagicMock:
    return MagicMock()


@pytest.fixture
def notifier() -> MagicMock:
    return MagicMock()


@pytest.fixture
def make_engine(store, permissions, notifier):
    """Factory building a MoneyEngine around the mock collaborators."""

    def _make(**rule_overrides) -> MoneyEngine:
        return MoneyEngine(
            RuleConfig(**rule_overrides),
            store=store,
            permissions=permissions,
            notifier=notifier,
        )

    return _make


# ---------------------------------------------------------------------------
# Transient entity builders
# ---------------------------------------------------------------------------
def make_account(account_id: int, balance: float = 0.0) -> Account:
    return Account(id=account_id, username=f"user{account_id}", balance=balance)


def make_discussion(
    starter: Account | None,
    *,
    discussion_id: int = 1,
    tags: list[Tag] | None = None,
) -> Discussion:
    return Discussion(id=discussion_id, title="A discussion", user=starter, tags=tags or [])


def make_post(
    discussion: Discussion,
    author: Account | None,
    *,
    number: int,
    content: str = "x" * 30,
    type: str = PostType.COMMENT.value,
    hidden: bool = False,
) -> Post:
    return Post(
        discussion=discussion,
        user=author,
        number=number,
        content=content,
        type=type,
        hidden_at=datetime.now(UTC) if hidden else None,
    )
