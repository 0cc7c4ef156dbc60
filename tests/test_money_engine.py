"""
tests/test_money_engine.py — Unit Tests for the Money Rules
============================================================

Pure engine tests: transient ORM objects, mock store and notifier, no
database.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import get_args

import pytest
from conftest import make_account, make_discussion, make_post

from forummoney.constants import ability_permission, disable_money_permission
from forummoney.database.models import PostType, Tag
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
from forummoney.engine.money import EVENT_HANDLERS
from forummoney.engine.notifications import BalanceUpdated
from forummoney.engine.permissions import PermissionDeniedError
from forummoney.engine.rules import AutoRemoveMode


# ---------------------------------------------------------------------------
# Balance mutation
# ---------------------------------------------------------------------------
class TestAward:
    def test_absent_account_is_noop(self, make_engine, store, notifier):
        engine = make_engine()
        assert engine.award(None, 10) is False
        store.save.assert_not_called()
        notifier.publish.assert_not_called()

    def test_adds_delta_persists_and_notifies(self, make_engine, store, notifier):
        account = make_account(1, balance=5.0)
        assert make_engine().award(account, 2.5) is True
        assert account.balance == 7.5
        store.save.assert_called_once_with(account)
        notifier.publish.assert_called_once_with(BalanceUpdated(account, 2.5))

    def test_negative_balance_allowed(self, make_engine):
        account = make_account(1, balance=1.0)
        make_engine().award(account, -3.0)
        assert account.balance == -2.0

    def test_awards_commute(self, make_engine):
        engine = make_engine()
        a = make_account(1, balance=10.0)
        b = make_account(2, balance=10.0)
        engine.award(a, 4)
        engine.award(a, -1.5)
        engine.award(b, -1.5)
        engine.award(b, 4)
        assert a.balance == b.balance == 12.5

    def test_unset_balance_treated_as_zero(self, make_engine):
        account = make_account(1)
        account.balance = None
        make_engine().award(account, 3)
        assert account.balance == 3

    def test_twice_applies_twice(self, make_engine):
        account = make_account(1)
        engine = make_engine()
        engine.award(account, 5)
        engine.award(account, 5)
        assert account.balance == 10


class TestAwardForPost:
    def test_opted_out_author_not_paid(self, make_engine, permissions, store):
        author = make_account(2)
        tag = Tag(id=5, name="Off-topic", slug="off-topic")
        discussion = make_discussion(make_account(1), tags=[tag])
        post = make_post(discussion, author, number=2)
        permissions.grant(author, disable_money_permission(5))

        assert make_engine().award_for_post(author, 10, post) is False
        assert author.balance == 0.0
        store.save.assert_not_called()

    def test_post_without_discussion_not_paid(self, make_engine):
        author = make_account(2)
        post = make_post(make_discussion(author), author, number=2)
        post.discussion = None
        assert make_engine().award_for_post(author, 10, post) is False


# ---------------------------------------------------------------------------
# Post rules
# ---------------------------------------------------------------------------
class TestPostCreated:
    def test_opening_post_not_paid(self, make_engine):
        author = make_account(1)
        post = make_post(make_discussion(author), author, number=1, content="x" * 500)
        make_engine(amount_per_post=10, minimum_post_length=20).dispatch(PostCreated(post, author))
        assert author.balance == 0.0

    def test_long_enough_reply_paid(self, make_engine):
        author = make_account(2)
        post = make_post(make_discussion(make_account(1)), author, number=2, content="y" * 25)
        make_engine(amount_per_post=10, minimum_post_length=20).dispatch(PostCreated(post, author))
        assert author.balance == 10

    def test_short_reply_not_paid(self, make_engine):
        author = make_account(2)
        post = make_post(make_discussion(make_account(1)), author, number=2, content="y" * 19)
        make_engine(amount_per_post=10, minimum_post_length=20).dispatch(PostCreated(post, author))
        assert author.balance == 0.0

    def test_mention_padding_does_not_count(self, make_engine):
        author = make_account(2)
        post = make_post(
            make_discussion(make_account(1)), author, number=2,
            content="@somebody_with_a_long_name #p42 ok",
        )
        engine = make_engine(
            amount_per_post=10, minimum_post_length=20, suppress_mention_notifications=True,
        )
        engine.dispatch(PostCreated(post, author))
        assert author.balance == 0.0

    def test_mention_padding_counts_when_suppression_off(self, make_engine):
        author = make_account(2)
        post = make_post(
            make_discussion(make_account(1)), author, number=2,
            content="@somebody_with_a_long_name #p42 ok",
        )
        make_engine(amount_per_post=10, minimum_post_length=20).dispatch(PostCreated(post, author))
        assert author.balance == 10

    def test_quote_line_does_not_swallow_reply_body(self, make_engine):
        author = make_account(2)
        post = make_post(
            make_discussion(make_account(1)), author, number=2,
            content=(
                "@alice#p12 wrote a good point\n"
                "I disagree, see discussion #5 for the longer argument"
            ),
        )
        engine = make_engine(
            amount_per_post=10, minimum_post_length=40, suppress_mention_notifications=True,
        )
        engine.dispatch(PostCreated(post, author))
        assert author.balance == 10

    def test_pays_the_actor(self, make_engine):
        actor = make_account(3)
        post = make_post(make_discussion(make_account(1)), make_account(2), number=2)
        make_engine(amount_per_post=4).dispatch(PostCreated(post, actor))
        assert actor.balance == 4


class TestPostVisibility:
    @pytest.fixture
    def author(self):
        return make_account(2, balance=50.0)

    @pytest.fixture
    def post(self, author):
        return make_post(make_discussion(make_account(1)), author, number=3, content="z" * 30)

    def test_hidden_deducts_on_hide_mode(self, make_engine, author, post):
        make_engine(amount_per_post=10).dispatch(PostHidden(post))
        assert author.balance == 40

    def test_restored_pays_on_hide_mode(self, make_engine, author, post):
        make_engine(amount_per_post=10).dispatch(PostRestored(post))
        assert author.balance == 60

    def test_hide_ignored_in_delete_mode(self, make_engine, author, post):
        engine = make_engine(amount_per_post=10, auto_remove_mode=AutoRemoveMode.ON_DELETE)
        engine.dispatch(PostHidden(post))
        engine.dispatch(PostRestored(post))
        assert author.balance == 50

    def test_deleted_deducts_in_delete_mode(self, make_engine, author, post):
        engine = make_engine(amount_per_post=10, auto_remove_mode=AutoRemoveMode.ON_DELETE)
        engine.dispatch(PostDeleted(post))
        assert author.balance == 40

    def test_deleted_ignored_in_hide_mode(self, make_engine, author, post):
        make_engine(amount_per_post=10).dispatch(PostDeleted(post))
        assert author.balance == 50

    def test_non_comment_posts_ignored(self, make_engine, author, post):
        post.type = PostType.DISCUSSION_RENAMED.value
        make_engine(amount_per_post=10).dispatch(PostHidden(post))
        assert author.balance == 50

    def test_short_post_not_deducted(self, make_engine, author, post):
        post.content = "short"
        make_engine(amount_per_post=10, minimum_post_length=20).dispatch(PostHidden(post))
        assert author.balance == 50

    def test_deleted_author_is_noop(self, make_engine, post, store):
        post.user = None
        make_engine(amount_per_post=10).dispatch(PostHidden(post))
        store.save.assert_not_called()


# ---------------------------------------------------------------------------
# Discussion rules
# ---------------------------------------------------------------------------
class TestDiscussionStarted:
    def test_starter_paid(self, make_engine):
        starter = make_account(1)
        make_engine(amount_per_discussion=20).dispatch(
            DiscussionStarted(make_discussion(starter), starter),
        )
        assert starter.balance == 20

    def test_opted_out_starter_not_paid(self, make_engine, permissions):
        starter = make_account(1)
        tag = Tag(id=9, name="Meta", slug="meta")
        permissions.grant(starter, disable_money_permission(9))
        make_engine(amount_per_discussion=20).dispatch(
            DiscussionStarted(make_discussion(starter, tags=[tag]), starter),
        )
        assert starter.balance == 0.0


class TestDiscussionCascade:
    @pytest.fixture
    def forum(self):
        """Discussion started by #1 with three paid replies (#2 – #4)."""
        starter = make_account(1, balance=100.0)
        discussion = make_discussion(starter)
        make_post(discussion, starter, number=1)
        repliers = [make_account(i, balance=10.0) for i in (2, 3, 4)]
        for number, replier in enumerate(repliers, start=2):
            make_post(discussion, replier, number=number)
        return starter, discussion, repliers

    def test_hidden_reverses_discussion_and_replies(self, make_engine, store, forum):
        starter, discussion, repliers = forum
        engine = make_engine(
            amount_per_post=10, amount_per_discussion=25, cascade_remove_enabled=True,
        )
        engine.dispatch(DiscussionHidden(discussion))

        assert starter.balance == 75
        assert [r.balance for r in repliers] == [0, 0, 0]
        assert store.save.call_count == 4

    def test_cascade_disabled_only_touches_starter(self, make_engine, store, forum):
        starter, discussion, repliers = forum
        make_engine(amount_per_post=10, amount_per_discussion=25).dispatch(
            DiscussionHidden(discussion),
        )
        assert starter.balance == 75
        assert [r.balance for r in repliers] == [10, 10, 10]
        assert store.save.call_count == 1

    def test_restored_reinstates(self, make_engine, forum):
        starter, discussion, repliers = forum
        engine = make_engine(
            amount_per_post=10, amount_per_discussion=25, cascade_remove_enabled=True,
        )
        engine.dispatch(DiscussionRestored(discussion))
        assert starter.balance == 125
        assert [r.balance for r in repliers] == [20, 20, 20]

    def test_cascade_skips_hidden_short_and_structural_posts(self, make_engine, forum):
        _, discussion, repliers = forum
        discussion.posts[1].hidden_at = datetime.now(UTC)
        discussion.posts[2].content = "tiny"
        discussion.posts[3].type = PostType.DISCUSSION_TAGGED.value
        engine = make_engine(
            amount_per_post=10, minimum_post_length=20, cascade_remove_enabled=True,
        )
        assert engine.cascade_posts(discussion, -1) == 0
        assert [r.balance for r in repliers] == [10, 10, 10]

    def test_cascade_respects_tag_opt_out(self, make_engine, permissions, forum):
        _, discussion, repliers = forum
        discussion.tags = [Tag(id=4, name="Games", slug="games")]
        permissions.grant(repliers[0], disable_money_permission(4))
        engine = make_engine(amount_per_post=10, cascade_remove_enabled=True)
        assert engine.cascade_posts(discussion, -1) == 2
        assert [r.balance for r in repliers] == [10, 0, 0]

    def test_hidden_deducts_opted_out_starter(self, make_engine, permissions, forum):
        starter, discussion, _ = forum
        discussion.tags = [Tag(id=4, name="Games", slug="games")]
        permissions.grant(starter, disable_money_permission(4))
        make_engine(amount_per_discussion=25).dispatch(DiscussionHidden(discussion))
        assert starter.balance == 75

    def test_restored_skips_opted_out_starter(self, make_engine, permissions, forum):
        starter, discussion, _ = forum
        discussion.tags = [Tag(id=4, name="Games", slug="games")]
        permissions.grant(starter, disable_money_permission(4))
        make_engine(amount_per_discussion=25).dispatch(DiscussionRestored(discussion))
        assert starter.balance == 100

    def test_deleted_only_in_delete_mode(self, make_engine, forum):
        starter, discussion, repliers = forum
        make_engine(amount_per_discussion=25, cascade_remove_enabled=True).dispatch(
            DiscussionDeleted(discussion),
        )
        assert starter.balance == 100

        make_engine(
            amount_per_post=10,
            amount_per_discussion=25,
            cascade_remove_enabled=True,
            auto_remove_mode=AutoRemoveMode.ON_DELETE,
        ).dispatch(DiscussionDeleted(discussion))
        assert starter.balance == 75
        assert [r.balance for r in repliers] == [0, 0, 0]

    def test_hidden_ignored_in_delete_mode(self, make_engine, store, forum):
        _, discussion, _ = forum
        make_engine(
            amount_per_discussion=25,
            cascade_remove_enabled=True,
            auto_remove_mode=AutoRemoveMode.ON_DELETE,
        ).dispatch(DiscussionHidden(discussion))
        store.save.assert_not_called()


# ---------------------------------------------------------------------------
# Like rules
# ---------------------------------------------------------------------------
class TestLikes:
    def test_like_and_unlike(self, make_engine):
        author = make_account(2)
        post = make_post(make_discussion(make_account(1)), author, number=1)
        engine = make_engine(amount_per_like=3)
        engine.dispatch(PostLiked(post, make_account(5)))
        assert author.balance == 3
        engine.dispatch(PostUnliked(post, make_account(5)))
        assert author.balance == 0

    def test_like_ignores_tag_opt_out(self, make_engine, permissions):
        author = make_account(2)
        discussion = make_discussion(make_account(1), tags=[Tag(id=4, name="G", slug="g")])
        permissions.grant(author, disable_money_permission(4))
        post = make_post(discussion, author, number=2)
        make_engine(amount_per_like=3).dispatch(PostLiked(post))
        assert author.balance == 3


# ---------------------------------------------------------------------------
# Direct balance edit
# ---------------------------------------------------------------------------
class TestAccountSaving:
    def test_authorized_edit_sets_balance(self, make_engine, permissions, notifier, store):
        actor = make_account(1)
        target = make_account(2, balance=40.0)
        permissions.grant(actor, ability_permission("edit_money"))
        make_engine().dispatch(AccountSaving(target, actor, {"attributes": {"money": "12.5"}}))

        assert target.balance == 12.5
        notifier.publish.assert_called_once_with(BalanceUpdated(target))
        store.save.assert_not_called()

    def test_unauthorized_edit_rejected_before_mutation(self, make_engine, notifier):
        target = make_account(2, balance=40.0)
        with pytest.raises(PermissionDeniedError):
            make_engine().dispatch(
                AccountSaving(target, make_account(1), {"attributes": {"money": 999}}),
            )
        assert target.balance == 40.0
        notifier.publish.assert_not_called()

    def test_anonymous_actor_rejected(self, make_engine):
        with pytest.raises(PermissionDeniedError):
            make_engine().dispatch(
                AccountSaving(make_account(2), None, {"attributes": {"money": 1}}),
            )

    def test_non_object_attributes_ignored(self, make_engine, notifier):
        target = make_account(2, balance=40.0)
        make_engine().dispatch(AccountSaving(target, make_account(1), {"attributes": "money"}))
        assert target.balance == 40.0
        notifier.publish.assert_not_called()

    def test_payload_without_money_ignored(self, make_engine, notifier):
        target = make_account(2, balance=40.0)
        make_engine().dispatch(
            AccountSaving(target, make_account(1), {"attributes": {"username": "new"}}),
        )
        assert target.balance == 40.0
        notifier.publish.assert_not_called()

    def test_invalid_money_value_raises(self, make_engine, permissions):
        actor = make_account(1)
        permissions.grant(actor, ability_permission("edit_money"))
        with pytest.raises(ValueError):
            make_engine().dispatch(
                AccountSaving(make_account(2), actor, {"attributes": {"money": "lots"}}),
            )


# ---------------------------------------------------------------------------
# Handler registry
# ---------------------------------------------------------------------------
class TestHandlerRegistry:
    def test_every_event_variant_has_a_handler(self):
        assert set(EVENT_HANDLERS) == set(get_args(MoneyEvent))

    def test_unknown_event_type_rejected(self, make_engine):
        with pytest.raises(TypeError):
            make_engine().dispatch(object())
