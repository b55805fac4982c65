"""Initial schema: accounts, profiles, addresses, friends, posts, likes, comments, notifications.

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "auth_accounts",
        sa.Column("uid", sa.String(64), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("uid"),
    )
    op.create_index("ix_auth_accounts_email", "auth_accounts", ["email"], unique=True)

    op.create_table(
        "users",
        sa.Column("uid", sa.String(64), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("address", sa.String(32), nullable=False),
        sa.Column("bio", sa.Text(), nullable=False, server_default=""),
        sa.Column("theme", sa.String(64), nullable=False, server_default="theme:linen"),
        sa.Column("post_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_likes_received", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("address_last_changed_at", sa.DateTime(), nullable=True),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["uid"], ["auth_accounts.uid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("uid"),
    )
    op.create_index("ix_users_address", "users", ["address"], unique=False)

    op.create_table(
        "addresses",
        sa.Column("handle", sa.String(32), nullable=False),
        sa.Column("uid", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["uid"], ["auth_accounts.uid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("handle"),
    )
    op.create_index("ix_addresses_uid", "addresses", ["uid"], unique=False)

    op.create_table(
        "friend_requests",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("from_uid", sa.String(64), nullable=False),
        sa.Column("to_uid", sa.String(64), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("responded_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["from_uid"], ["auth_accounts.uid"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["to_uid"], ["auth_accounts.uid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_friend_requests_from_uid", "friend_requests", ["from_uid"], unique=False)
    op.create_index("ix_friend_requests_to_uid", "friend_requests", ["to_uid"], unique=False)

    op.create_table(
        "friendships",
        sa.Column("id", sa.String(160), nullable=False),
        sa.Column("user_a_uid", sa.String(64), nullable=False),
        sa.Column("user_b_uid", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["user_a_uid"], ["auth_accounts.uid"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_b_uid"], ["auth_accounts.uid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_friendships_user_a_uid", "friendships", ["user_a_uid"], unique=False)
    op.create_index("ix_friendships_user_b_uid", "friendships", ["user_b_uid"], unique=False)

    op.create_table(
        "posts",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("author_uid", sa.String(64), nullable=False),
        sa.Column("author_address", sa.String(32), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("like_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["author_uid"], ["users.uid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_posts_author_uid", "posts", ["author_uid"], unique=False)
    op.create_index("ix_posts_deleted", "posts", ["deleted"], unique=False)
    op.create_index("ix_posts_created_at", "posts", ["created_at"], unique=False)

    op.create_table(
        "post_likes",
        sa.Column("id", sa.String(160), nullable=False),
        sa.Column("post_id", sa.String(64), nullable=False),
        sa.Column("user_uid", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["post_id"], ["posts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_uid"], ["users.uid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_post_likes_post_id", "post_likes", ["post_id"], unique=False)
    op.create_index("ix_post_likes_user_uid", "post_likes", ["user_uid"], unique=False)

    op.create_table(
        "comments",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("post_id", sa.String(64), nullable=False),
        sa.Column("author_uid", sa.String(64), nullable=False),
        sa.Column("author_address", sa.String(32), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("parent_comment_id", sa.String(64), nullable=False, server_default=""),
        sa.Column("root_comment_id", sa.String(64), nullable=False),
        sa.Column("reply_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("hidden_by_post_owner", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("deleted_by_author", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("deleted_by_post_owner", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["post_id"], ["posts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["author_uid"], ["users.uid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_comments_post_id", "comments", ["post_id"], unique=False)
    op.create_index("ix_comments_created_at", "comments", ["created_at"], unique=False)

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("recipient_uid", sa.String(64), nullable=False),
        sa.Column("actor_uid", sa.String(64), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("post_id", sa.String(64), nullable=False, server_default=""),
        sa.Column("comment_id", sa.String(64), nullable=False, server_default=""),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["recipient_uid"], ["auth_accounts.uid"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["actor_uid"], ["users.uid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_recipient_uid", "notifications", ["recipient_uid"], unique=False)
    op.create_index("ix_notifications_read", "notifications", ["read"], unique=False)
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("comments")
    op.drop_table("post_likes")
    op.drop_table("posts")
    op.drop_table("friendships")
    op.drop_table("friend_requests")
    op.drop_table("addresses")
    op.drop_table("users")
    op.drop_table("auth_accounts")
