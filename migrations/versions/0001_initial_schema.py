"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-02-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- ENUM types ---
    entry_category_enum = sa.Enum(
        "work", "learning", "exercise", "creative", "health", "social",
        name="entry_category_enum",
    )
    entry_category_enum.create(op.get_bind(), checkfirst=True)

    chat_role_enum = sa.Enum("user", "assistant", name="chat_role_enum")
    chat_role_enum.create(op.get_bind(), checkfirst=True)

    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(128), nullable=False),
        sa.Column("occupation", sa.String(128), nullable=False),
        sa.Column("goals", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # --- auth_sessions ---
    op.create_table(
        "auth_sessions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("token_jti", sa.String(64), nullable=False),
        sa.Column("is_revoked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_auth_sessions_id", "auth_sessions", ["id"])
    op.create_index("ix_auth_sessions_user_id", "auth_sessions", ["user_id"])
    op.create_index("ix_auth_sessions_token_jti", "auth_sessions", ["token_jti"], unique=True)

    # --- productivity_entries ---
    op.create_table(
        "productivity_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("category", sa.Enum(
            "work", "learning", "exercise", "creative", "health", "social",
            name="entry_category_enum", create_type=False,
        ), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False, comment="Minutes"),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_productivity_entries_id", "productivity_entries", ["id"])
    op.create_index("ix_productivity_entries_user_id", "productivity_entries", ["user_id"])
    op.create_index("ix_productivity_entries_date", "productivity_entries", ["date"])

    # --- daily_scores ---
    op.create_table(
        "daily_scores",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("score", sa.Float(), nullable=False),
        sa.Column("ai_insight", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "date", name="uq_daily_score_user_date"),
    )
    op.create_index("ix_daily_scores_id", "daily_scores", ["id"])
    op.create_index("ix_daily_scores_user_id", "daily_scores", ["user_id"])
    op.create_index("ix_daily_scores_date", "daily_scores", ["date"])

    # --- weekly_scores ---
    op.create_table(
        "weekly_scores",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("week_start", sa.Date(), nullable=False, comment="Monday"),
        sa.Column("week_end", sa.Date(), nullable=False, comment="Sunday"),
        sa.Column("avg_score", sa.Float(), nullable=False),
        sa.Column("total_entries", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "week_start", name="uq_weekly_score_user_week"),
    )
    op.create_index("ix_weekly_scores_id", "weekly_scores", ["id"])
    op.create_index("ix_weekly_scores_user_id", "weekly_scores", ["user_id"])
    op.create_index("ix_weekly_scores_week_start", "weekly_scores", ["week_start"])

    # --- chat_messages ---
    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.Enum("user", "assistant", name="chat_role_enum", create_type=False), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_chat_messages_id", "chat_messages", ["id"])
    op.create_index("ix_chat_messages_user_id", "chat_messages", ["user_id"])


def downgrade() -> None:
    op.drop_table("chat_messages")
    op.drop_table("weekly_scores")
    op.drop_table("daily_scores")
    op.drop_table("productivity_entries")
    op.drop_table("auth_sessions")
    op.drop_table("users")
    sa.Enum(name="chat_role_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="entry_category_enum").drop(op.get_bind(), checkfirst=True)
