"""
forummoney.engine.events — Forum event envelope and typed money events
=======================================================================

Two layers:

* :class:`ForumEvent` — the serialisable envelope an event source delivers
  (ids only).  :mod:`forummoney.services.event_service` resolves it to ORM
  entities.
* The typed events (``PostCreated`` … ``AccountSaving``) — one frozen
  dataclass per variant, carrying the entities.  :data:`MoneyEvent` is
  their union and the sole input of :meth:`MoneyEngine.dispatch`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from forummoney.database.models import Account, Discussion, Post

__all__ = [
    "AccountSaving",
    "DiscussionDeleted",
    "DiscussionHidden",
    "DiscussionRestored",
    "DiscussionStarted",
    "EventKind",
    "ForumEvent",
    "MoneyEvent",
    "PostCreated",
    "PostDeleted",
    "PostHidden",
    "PostLiked",
    "PostRestored",
    "PostUnliked",
]


class EventKind(enum.StrEnum):
    """Every forum event the money rules react to."""
    POST_CREATED = "post.created"
    POST_RESTORED = "post.restored"
    POST_HIDDEN = "post.hidden"
    POST_DELETED = "post.deleted"
    DISCUSSION_STARTED = "discussion.started"
    DISCUSSION_RESTORED = "discussion.restored"
    DISCUSSION_HIDDEN = "discussion.hidden"
    DISCUSSION_DELETED = "discussion.deleted"
    POST_LIKED = "post.liked"
    POST_UNLIKED = "post.unliked"
    ACCOUNT_SAVING = "account.saving"


POST_EVENT_KINDS: frozenset[EventKind] = frozenset({
    EventKind.POST_CREATED,
    EventKind.POST_RESTORED,
    EventKind.POST_HIDDEN,
    EventKind.POST_DELETED,
    EventKind.POST_LIKED,
    EventKind.POST_UNLIKED,
})

DISCUSSION_EVENT_KINDS: frozenset[EventKind] = frozenset({
    EventKind.DISCUSSION_STARTED,
    EventKind.DISCUSSION_RESTORED,
    EventKind.DISCUSSION_HIDDEN,
    EventKind.DISCUSSION_DELETED,
})


# ---------------------------------------------------------------------------
# ForumEvent — the envelope delivered by an event source
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ForumEvent:
    """Normalized event from any source (forum hooks, queue, replay file).

    ``post_id`` is required for post events, ``discussion_id`` for
    discussion events and ``account_id`` for ``account.saving``.  ``data``
    carries the save payload (``{"attributes": {"money": ...}}``).
    """

    kind: EventKind
    actor_id: int | None = None
    post_id: int | None = None
    discussion_id: int | None = None
    account_id: int | None = None
    data: dict = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ForumEvent:
        """Build an envelope from decoded JSON.

        Raises
        ------
        ValueError
            If *raw* or its ``data`` is not a JSON object, ``kind`` is
            missing or unknown, or an id or timestamp cannot be parsed.
        """
        if not isinstance(raw, dict):
            raise ValueError(f"Event payload must be an object, got {type(raw).__name__}")
        kind = raw.get("kind")
        if not kind:
            raise ValueError("Event payload missing 'kind'")
        data = raw.get("data") or {}
        if not isinstance(data, dict):
            raise ValueError(f"Event 'data' must be an object, got {type(data).__name__}")
        ts = raw.get("timestamp")
        try:
            timestamp = datetime.fromisoformat(ts) if ts else datetime.now()
        except TypeError as exc:
            raise ValueError(f"Invalid timestamp {ts!r}") from exc
        return cls(
            kind=EventKind(kind),
            actor_id=_optional_int(raw.get("actor_id")),
            post_id=_optional_int(raw.get("post_id")),
            discussion_id=_optional_int(raw.get("discussion_id")),
            account_id=_optional_int(raw.get("account_id")),
            data=data,
            timestamp=timestamp,
        )


def _optional_int(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except TypeError as exc:
        raise ValueError(f"Invalid id {value!r}") from exc


# ---------------------------------------------------------------------------
# Typed money events — one per variant
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class PostCreated:
    post: Post
    actor: Account | None


@dataclass(frozen=True, slots=True)
class PostRestored:
    post: Post
    actor: Account | None = None


@dataclass(frozen=True, slots=True)
class PostHidden:
    post: Post
    actor: Account | None = None


@dataclass(frozen=True, slots=True)
class PostDeleted:
    post: Post
    actor: Account | None = None


@dataclass(frozen=True, slots=True)
class DiscussionStarted:
    discussion: Discussion
    actor: Account | None


@dataclass(frozen=True, slots=True)
class DiscussionRestored:
    discussion: Discussion
    actor: Account | None = None


@dataclass(frozen=True, slots=True)
class DiscussionHidden:
    discussion: Discussion
    actor: Account | None = None


@dataclass(frozen=True, slots=True)
class DiscussionDeleted:
    discussion: Discussion
    actor: Account | None = None


@dataclass(frozen=True, slots=True)
class PostLiked:
    post: Post
    actor: Account | None = None


@dataclass(frozen=True, slots=True)
class PostUnliked:
    post: Post
    actor: Account | None = None


@dataclass(frozen=True, slots=True)
class AccountSaving:
    """An account is being saved; ``data`` is the incoming edit payload."""

    account: Account
    actor: Account | None
    data: dict = field(default_factory=dict)


MoneyEvent = Union[
    PostCreated,
    PostRestored,
    PostHidden,
    PostDeleted,
    DiscussionStarted,
    DiscussionRestored,
    DiscussionHidden,
    DiscussionDeleted,
    PostLiked,
    PostUnliked,
    AccountSaving,
]
