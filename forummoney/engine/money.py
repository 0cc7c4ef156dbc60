"""
forummoney.engine.money — Money rules and balance mutation
===========================================================

:class:`MoneyEngine` owns the only code path that changes a balance
(:meth:`MoneyEngine.award`, plus the explicit admin edit in
``AccountSaving``).  Every forum event is routed through
:data:`EVENT_HANDLERS`, one handler per :data:`MoneyEvent` variant.

This module does no database I/O of its own: persistence goes through an
:class:`AccountStore`, permission checks through a
:class:`~forummoney.engine.permissions.PermissionOracle` and notifications
through a :class:`~forummoney.engine.notifications.Notifier`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol

from forummoney.constants import EDIT_MONEY_ABILITY
from forummoney.engine.content import content_length
from forummoney.engine.eligibility import can_earn
from forummoney.engine.events import (
    AccountSaving,
    DiscussionDeleted,
    DiscussionHidden,
    DiscussionRestored,
    DiscussionStarted,
    MoneyEvent,
    PostCreated,
    PostDeleted,
    PostHidden,
    PostLiked,
    PostRestored,
    PostUnliked,
)
from forummoney.engine.notifications import BalanceUpdated

if TYPE_CHECKING:
    from forummoney.database.models import Account, Discussion, Post
    from forummoney.engine.notifications import Notifier
    from forummoney.engine.permissions import PermissionOracle
    from forummoney.engine.rules import RuleConfig

logger = logging.getLogger(__name__)


class AccountStore(Protocol):
    def save(self, account: Account) -> None: ...


class MoneyEngine:
    """Applies the configured money rules to forum events.

    Parameters
    ----------
    rules : RuleConfig snapshot, constant for the engine's lifetime.
    store : persists an account after its balance changed.
    permissions : answers tag opt-out and edit_money checks.
    notifier : receives a BalanceUpdated for every change.
    """

    def __init__(
        self,
        rules: RuleConfig,
        *,
        store: AccountStore,
        permissions: PermissionOracle,
        notifier: Notifier,
    ) -> None:
        self.rules = rules
        self._store = store
        self._permissions = permissions
        self._notifier = notifier

    # -------------------------------------------------------------------
    # Balance mutation
    # -------------------------------------------------------------------
    def award(self, account: Account | None, amount: float) -> bool:
        """Add *amount* (may be negative) to *account*'s balance.

        Returns False without side effects when *account* is None.  Balances
        are not clamped and may go negative.
        """
        if account is None:
            return False

        account.balance = (account.balance or 0.0) + amount
        self._store.save(account)
        self._notifier.publish(BalanceUpdated(account, amount))
        logger.debug(
            "Money %+.2f for account %s → %.2f", amount, account.id, account.balance,
        )
        return True

    def award_for_post(self, account: Account | None, amount: float, post: Post) -> bool:
        """Award *amount* only if *account* may earn in the post's discussion."""
        if not can_earn(account, post.discussion, self._permissions):
            return False
        return self.award(account, amount)

    def can_earn(self, account: Account | None, discussion: Discussion | None) -> bool:
        return can_earn(account, discussion, self._permissions)

    def meets_minimum_length(self, post: Post) -> bool:
        length = content_length(
            post.content,
            suppress_mentions=self.rules.suppress_mention_notifications,
        )
        return length >= self.rules.minimum_post_length

    def _is_rewardable_comment(self, post: Post) -> bool:
        return post.is_comment and self.meets_minimum_length(post)

    # -------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------
    def dispatch(self, event: MoneyEvent) -> None:
        """Run the handler registered for ``type(event)``.

        Raises
        ------
        TypeError
            If no handler is registered for the event type.
        """
        handler = EVENT_HANDLERS.get(type(event))
        if handler is None:
            raise TypeError(f"No money rule registered for {type(event).__name__}")
        handler(self, event)

    # -------------------------------------------------------------------
    # Post handlers
    # -------------------------------------------------------------------
    def on_post_created(self, event: PostCreated) -> None:
        post = event.post
        # The opening post is paid through the discussion rule
        if post.number > 1 and self.meets_minimum_length(post):
            self.award_for_post(event.actor, self.rules.amount_per_post, post)

    def on_post_restored(self, event: PostRestored) -> None:
        post = event.post
        if self.rules.removes_on_hide and self._is_rewardable_comment(post):
            self.award_for_post(post.user, self.rules.amount_per_post, post)

    def on_post_hidden(self, event: PostHidden) -> None:
        post = event.post
        if self.rules.removes_on_hide and self._is_rewardable_comment(post):
            self.award_for_post(post.user, -self.rules.amount_per_post, post)

    def on_post_deleted(self, event: PostDeleted) -> None:
        post = event.post
        if self.rules.removes_on_delete and self._is_rewardable_comment(post):
            self.award_for_post(post.user, -self.rules.amount_per_post, post)

    # -------------------------------------------------------------------
    # Discussion handlers
    # -------------------------------------------------------------------
    def on_discussion_started(self, event: DiscussionStarted) -> None:
        if self.can_earn(event.actor, event.discussion):
            self.award(event.actor, self.rules.amount_per_discussion)

    def on_discussion_restored(self, event: DiscussionRestored) -> None:
        if not self.rules.removes_on_hide:
            return
        discussion = event.discussion
        if self.can_earn(discussion.user, discussion):
            self.award(discussion.user, self.rules.amount_per_discussion)
        self.cascade_posts(discussion, 1)

    def on_discussion_hidden(self, event: DiscussionHidden) -> None:
        if not self.rules.removes_on_hide:
            return
        discussion = event.discussion
        # No eligibility re-check on removal
        self.award(discussion.user, -self.rules.amount_per_discussion)
        self.cascade_posts(discussion, -1)

    def on_discussion_deleted(self, event: DiscussionDeleted) -> None:
        if not self.rules.removes_on_delete:
            return
        discussion = event.discussion
        self.award(discussion.user, -self.rules.amount_per_discussion)
        self.cascade_posts(discussion, -1)

    def cascade_posts(self, discussion: Discussion, multiplier: int) -> int:
        """Re-apply (``+1``) or reverse (``-1``) the reward of every paid reply.

        Only visible comment replies (number > 1) long enough to have been
        paid are touched.  Returns the number of balance mutations.
        """
        if not self.rules.cascade_remove_enabled:
            return 0

        applied = 0
        for post in discussion.posts:
            if (
                post.number > 1
                and post.is_visible
                and self._is_rewardable_comment(post)
                and self.award_for_post(post.user, multiplier * self.rules.amount_per_post, post)
            ):
                applied += 1

        logger.info(
            "Cascade x%d on discussion %s: %d post rewards adjusted",
            multiplier, discussion.id, applied,
        )
        return applied

    # -------------------------------------------------------------------
    # Like handlers (no eligibility check)
    # -------------------------------------------------------------------
    def on_post_liked(self, event: PostLiked) -> None:
        self.award(event.post.user, self.rules.amount_per_like)

    def on_post_unliked(self, event: PostUnliked) -> None:
        self.award(event.post.user, -self.rules.amount_per_like)

    # -------------------------------------------------------------------
    # Direct balance edit
    # -------------------------------------------------------------------
    def on_account_saving(self, event: AccountSaving) -> None:
        """Set the balance from an edit payload carrying ``attributes.money``.

        Raises PermissionDeniedError if the actor lacks ``edit_money`` over
        the account; nothing is changed in that case.
        """
        attributes = (event.data or {}).get("attributes") or {}
        if not isinstance(attributes, dict) or "money" not in attributes:
            return

        account = event.account
        self._permissions.assert_can(event.actor, EDIT_MONEY_ABILITY, account)
        account.balance = float(attributes["money"])
        self._notifier.publish(BalanceUpdated(account))
        logger.info(
            "Balance of account %s set to %.2f by %s",
            account.id, account.balance, event.actor.id if event.actor else None,
        )


# ---------------------------------------------------------------------------
# Handler registry — one entry per MoneyEvent variant
# ---------------------------------------------------------------------------
EVENT_HANDLERS: dict[type, Callable[[MoneyEngine, Any], None]] = {
    PostCreated: MoneyEngine.on_post_created,
    PostRestored: MoneyEngine.on_post_restored,
    PostHidden: MoneyEngine.on_post_hidden,
    PostDeleted: MoneyEngine.on_post_deleted,
    DiscussionStarted: MoneyEngine.on_discussion_started,
    DiscussionRestored: MoneyEngine.on_discussion_restored,
    DiscussionHidden: MoneyEngine.on_discussion_hidden,
    DiscussionDeleted: MoneyEngine.on_discussion_deleted,
    PostLiked: MoneyEngine.on_post_liked,
    PostUnliked: MoneyEngine.on_post_unliked,
    AccountSaving: MoneyEngine.on_account_saving,
}
