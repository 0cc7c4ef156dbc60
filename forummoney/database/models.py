"""
forummoney.database.models — SQLAlchemy 2.0 Data Models
========================================================

Tables:
- accounts           — Forum members and their currency balance
- groups             — Permission groups (id 1 is the administrator group)
- group_permissions  — Permission keys granted to a group
- account_groups     — Account ↔ group membership
- tags               — Topical categories attached to discussions
- discussion_tags    — Discussion ↔ tag association
- discussions        — Threads started by an account
- posts              — Numbered entries inside a discussion
- settings           — Key-value gameplay tuning (JSON values)
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from forummoney.constants import disable_money_permission


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all forummoney ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class PostType(enum.StrEnum):
    """Post kinds.  Only COMMENT posts are ever rewarded."""
    COMMENT = "comment"
    DISCUSSION_RENAMED = "discussionRenamed"
    DISCUSSION_TAGGED = "discussionTagged"
    DISCUSSION_LOCKED = "discussionLocked"
    DISCUSSION_STICKIED = "discussionStickied"


# ---------------------------------------------------------------------------
# Association tables
# ---------------------------------------------------------------------------
account_groups = Table(
    "account_groups",
    Base.metadata,
    Column("account_id", Integer, ForeignKey("accounts.id", ondelete="CASCADE"), primary_key=True),
    Column("group_id", Integer, ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True),
)

discussion_tags = Table(
    "discussion_tags",
    Base.metadata,
    Column("discussion_id", Integer, ForeignKey("discussions.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


# ---------------------------------------------------------------------------
# Accounts — one row per forum member
# ---------------------------------------------------------------------------
class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    balance: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    groups: Mapped[list[Group]] = relationship(secondary=account_groups)

    __table_args__ = (
        Index("ix_accounts_balance_desc", "balance"),
    )

    def __repr__(self) -> str:
        return f"<Account id={self.id} name={self.username!r} balance={self.balance}>"


# ---------------------------------------------------------------------------
# Groups & permission grants
# ---------------------------------------------------------------------------
class Group(Base):
    __tablename__ = "groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    permissions: Mapped[list[GroupPermission]] = relationship(
        back_populates="group", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Group id={self.id} name={self.name!r}>"


class GroupPermission(Base):
    __tablename__ = "group_permissions"

    group_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True
    )
    permission: Mapped[str] = mapped_column(String(150), primary_key=True)

    group: Mapped[Group] = relationship(back_populates="permissions")

    __table_args__ = (
        Index("ix_group_permissions_permission", "permission"),
    )

    def __repr__(self) -> str:
        return f"<GroupPermission group={self.group_id} permission={self.permission!r}>"


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------
class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    @property
    def disable_money_permission(self) -> str:
        """Permission key that opts a member out of earning in this tag."""
        return disable_money_permission(self.id)

    def __repr__(self) -> str:
        return f"<Tag id={self.id} slug={self.slug!r}>"


# ---------------------------------------------------------------------------
# Discussions
# ---------------------------------------------------------------------------
class Discussion(Base):
    __tablename__ = "discussions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="SET NULL"), default=None
    )
    hidden_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    user: Mapped[Account | None] = relationship()
    tags: Mapped[list[Tag]] = relationship(secondary=discussion_tags)
    posts: Mapped[list[Post]] = relationship(
        back_populates="discussion",
        cascade="all, delete-orphan",
        order_by="Post.number",
    )

    def __repr__(self) -> str:
        return f"<Discussion id={self.id} title={self.title!r}>"


# ---------------------------------------------------------------------------
# Posts — numbered within their discussion (1 = opening post)
# ---------------------------------------------------------------------------
class Post(Base):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    discussion_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("discussions.id", ondelete="CASCADE"), nullable=False
    )
    number: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(100), nullable=False, default=PostType.COMMENT.value)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="SET NULL"), default=None
    )
    hidden_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    discussion: Mapped[Discussion] = relationship(back_populates="posts")
    user: Mapped[Account | None] = relationship()

    __table_args__ = (
        UniqueConstraint("discussion_id", "number", name="uq_posts_discussion_number"),
    )

    @property
    def is_comment(self) -> bool:
        return self.type == PostType.COMMENT

    @property
    def is_visible(self) -> bool:
        return self.hidden_at is None

    def __repr__(self) -> str:
        return f"<Post id={self.id} discussion={self.discussion_id} number={self.number}>"


# ---------------------------------------------------------------------------
# Settings — key-value gameplay tuning
# ---------------------------------------------------------------------------
class Setting(Base):
    """Key-value configuration store.

    Reward amounts and thresholds live here so forum admins can adjust them
    without redeploying.  Values are stored as JSON strings; typed accessors
    live in :class:`~forummoney.engine.cache.SettingsCache`.
    """
    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value_json: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="general")
    description: Mapped[str | None] = mapped_column(Text, default=None)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_settings_category", "category"),
    )

    def __repr__(self) -> str:
        return f"<Setting key={self.key!r} category={self.category!r}>"
