"""
forummoney.services.event_service — Event resolution & rule application
========================================================================

Entry point for event sources.  Each :class:`ForumEvent` envelope is
handled in its own session:

1. Resolve ids to ORM entities (missing rows → event skipped)
2. Build a session-bound MoneyEngine around the shared RuleConfig
3. Dispatch the typed event
4. Commit
5. Publish the buffered BalanceUpdated notifications

Delivery is assumed to be exactly-once; replaying an envelope applies its
rewards again.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from forummoney.database.models import Account, Discussion, Post
from forummoney.engine.events import (
    DISCUSSION_EVENT_KINDS,
    POST_EVENT_KINDS,
    AccountSaving,
    DiscussionDeleted,
    DiscussionHidden,
    DiscussionRestored,
    DiscussionStarted,
    EventKind,
    ForumEvent,
    MoneyEvent,
    PostCreated,
    PostDeleted,
    PostHidden,
    PostLiked,
    PostRestored,
    PostUnliked,
)
from forummoney.engine.money import MoneyEngine
from forummoney.engine.notifications import NotificationBuffer
from forummoney.services.account_service import SqlAccountStore
from forummoney.services.permission_service import SqlPermissionOracle

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from forummoney.engine.notifications import Notifier
    from forummoney.engine.rules import RuleConfig

logger = logging.getLogger(__name__)

_POST_EVENTS: dict[EventKind, type] = {
    EventKind.POST_CREATED: PostCreated,
    EventKind.POST_RESTORED: PostRestored,
    EventKind.POST_HIDDEN: PostHidden,
    EventKind.POST_DELETED: PostDeleted,
    EventKind.POST_LIKED: PostLiked,
    EventKind.POST_UNLIKED: PostUnliked,
}

_DISCUSSION_EVENTS: dict[EventKind, type] = {
    EventKind.DISCUSSION_STARTED: DiscussionStarted,
    EventKind.DISCUSSION_RESTORED: DiscussionRestored,
    EventKind.DISCUSSION_HIDDEN: DiscussionHidden,
    EventKind.DISCUSSION_DELETED: DiscussionDeleted,
}


def resolve_event(session: Session, event: ForumEvent) -> MoneyEvent | None:
    """Load the entities referenced by *event* and build the typed event.

    Returns None (and logs a warning) when a required row does not exist.
    An unknown ``actor_id`` resolves to an absent actor.
    """
    actor = session.get(Account, event.actor_id) if event.actor_id is not None else None

    if event.kind in POST_EVENT_KINDS:
        post = session.get(Post, event.post_id) if event.post_id is not None else None
        if post is None:
            logger.warning("Skipping %s: post %s not found", event.kind, event.post_id)
            return None
        return _POST_EVENTS[event.kind](post=post, actor=actor)

    if event.kind in DISCUSSION_EVENT_KINDS:
        discussion = (
            session.get(Discussion, event.discussion_id)
            if event.discussion_id is not None else None
        )
        if discussion is None:
            logger.warning(
                "Skipping %s: discussion %s not found", event.kind, event.discussion_id,
            )
            return None
        return _DISCUSSION_EVENTS[event.kind](discussion=discussion, actor=actor)

    account = session.get(Account, event.account_id) if event.account_id is not None else None
    if account is None:
        logger.warning("Skipping %s: account %s not found", event.kind, event.account_id)
        return None
    return AccountSaving(account=account, actor=actor, data=event.data)


def process_event(
    engine: Engine,
    rules: RuleConfig,
    event: ForumEvent,
    *,
    notifier: Notifier | None = None,
) -> bool:
    """Apply the money rules for one envelope.

    Returns False if the event was skipped because an entity is missing.
    Notifications reach *notifier* only after a successful commit.

    Raises
    ------
    PermissionDeniedError
        For a balance edit by an actor without ``edit_money``.  The
        transaction is rolled back.
    """
    buffer = NotificationBuffer()
    # Subscribers read the accounts after the session is closed
    with Session(engine, expire_on_commit=False) as session:
        money_event = resolve_event(session, event)
        if money_event is None:
            return False

        money = MoneyEngine(
            rules,
            store=SqlAccountStore(session),
            permissions=SqlPermissionOracle(session),
            notifier=buffer,
        )
        money.dispatch(money_event)

        if isinstance(money_event, AccountSaving):
            session.add(money_event.account)
        session.commit()

    published = buffer.flush_to(notifier) if notifier is not None else 0
    logger.debug("Processed %s (%d balance notifications)", event.kind, published)
    return True
