"""Initial money schema

Revision ID: 5c2e8a41d7b3
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5c2e8a41d7b3"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create accounts, groups, tags, discussions, posts and settings."""
    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(100), nullable=False, unique=True),
        sa.Column("balance", sa.Float, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_accounts_balance_desc", "accounts", ["balance"])

    op.create_table(
        "groups",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
    )
    op.create_table(
        "group_permissions",
        sa.Column(
            "group_id", sa.Integer,
            sa.ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("permission", sa.String(150), primary_key=True),
    )
    op.create_index("ix_group_permissions_permission", "group_permissions", ["permission"])
    op.create_table(
        "account_groups",
        sa.Column(
            "account_id", sa.Integer,
            sa.ForeignKey("accounts.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column(
            "group_id", sa.Integer,
            sa.ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True,
        ),
    )

    op.create_table(
        "tags",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False, unique=True),
    )
    op.create_table(
        "discussions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column(
            "user_id", sa.Integer,
            sa.ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("hidden_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "discussion_tags",
        sa.Column(
            "discussion_id", sa.Integer,
            sa.ForeignKey("discussions.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column(
            "tag_id", sa.Integer,
            sa.ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True,
        ),
    )
    op.create_table(
        "posts",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "discussion_id", sa.Integer,
            sa.ForeignKey("discussions.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("number", sa.Integer, nullable=False),
        sa.Column("type", sa.String(100), nullable=False, server_default="comment"),
        sa.Column("content", sa.Text, nullable=False, server_default=""),
        sa.Column(
            "user_id", sa.Integer,
            sa.ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("hidden_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("discussion_id", "number", name="uq_posts_discussion_number"),
    )

    op.create_table(
        "settings",
        sa.Column("key", sa.String(100), primary_key=True),
        sa.Column("value_json", sa.Text, nullable=False),
        sa.Column("category", sa.String(50), nullable=False, server_default="general"),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_settings_category", "settings", ["category"])


def downgrade() -> None:
    op.drop_index("ix_settings_category", table_name="settings")
    op.drop_table("settings")
    op.drop_table("posts")
    op.drop_table("discussion_tags")
    op.drop_table("discussions")
    op.drop_table("tags")
    op.drop_table("account_groups")
    op.drop_index("ix_group_permissions_permission", table_name="group_permissions")
    op.drop_table("group_permissions")
    op.drop_table("groups")
    op.drop_index("ix_accounts_balance_desc", table_name="accounts")
    op.drop_table("accounts")
