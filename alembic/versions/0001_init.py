"""init

Revision ID: 0001_init
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=False), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=False), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=128), nullable=True),
        sa.Column("last_name", sa.String(length=128), nullable=True),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("icon_type", sa.String(length=64), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_categories_slug", "categories", ["slug"], unique=True)
    op.create_index("ix_categories_sort_order", "categories", ["sort_order"], unique=False)

    op.create_table(
        "chapters",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("preview", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("duration", sa.String(length=64), nullable=True),
        sa.Column("category_id", sa.Integer(), nullable=True),
        sa.Column("chapter_number", sa.Integer(), nullable=True),
        sa.Column("youtube_url", sa.String(length=512), nullable=True),
        sa.Column("spotify_url", sa.String(length=512), nullable=True),
        sa.Column("try_this_week", sa.Text(), nullable=True),
        sa.Column("content_type", sa.String(length=32), nullable=False, server_default="lesson"),
        sa.Column("author", sa.String(length=255), nullable=True),
        sa.Column("reading_time", sa.Integer(), nullable=True),
        sa.Column("key_takeaways", sa.JSON(), nullable=True),
        sa.Column("audio_url", sa.String(length=512), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"]),
    )
    op.create_index("ix_chapters_slug", "chapters", ["slug"], unique=True)
    op.create_index("ix_chapters_category_id", "chapters", ["category_id"], unique=False)

    op.create_table(
        "user_progress",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("chapter_id", sa.Integer(), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completed_at", sa.DateTime(timezone=False), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["chapter_id"], ["chapters.id"]),
        sa.UniqueConstraint("user_id", "chapter_id", name="uq_user_progress_user_chapter"),
    )
    op.create_index("ix_user_progress_user_id", "user_progress", ["user_id"], unique=False)
    op.create_index("ix_user_progress_chapter_id", "user_progress", ["chapter_id"], unique=False)

    op.create_table(
        "shared_chapters",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("share_id", sa.String(length=32), nullable=False),
        sa.Column("chapter_id", sa.Integer(), nullable=False),
        sa.Column("shared_by", sa.String(length=36), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=False), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["chapter_id"], ["chapters.id"]),
        sa.ForeignKeyConstraint(["shared_by"], ["users.id"]),
    )
    op.create_index("ix_shared_chapters_share_id", "shared_chapters", ["share_id"], unique=True)
    op.create_index("ix_shared_chapters_chapter_id", "shared_chapters", ["chapter_id"], unique=False)
    op.create_index("ix_shared_chapters_shared_by", "shared_chapters", ["shared_by"], unique=False)
    op.create_index("ix_shared_chapters_expires_at", "shared_chapters", ["expires_at"], unique=False)

    op.create_table(
        "chat_sessions",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("summary", sa.String(length=512), nullable=False, server_default=""),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
    )
    op.create_index("ix_chat_sessions_user_id", "chat_sessions", ["user_id"], unique=False)

    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("session_id", sa.String(length=64), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["session_id"], ["chat_sessions.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_chat_messages_session_id", "chat_messages", ["session_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_chat_messages_session_id", table_name="chat_messages")
    op.drop_table("chat_messages")

    op.drop_index("ix_chat_sessions_user_id", table_name="chat_sessions")
    op.drop_table("chat_sessions")

    op.drop_index("ix_shared_chapters_expires_at", table_name="shared_chapters")
    op.drop_index("ix_shared_chapters_shared_by", table_name="shared_chapters")
    op.drop_index("ix_shared_chapters_chapter_id", table_name="shared_chapters")
    op.drop_index("ix_shared_chapters_share_id", table_name="shared_chapters")
    op.drop_table("shared_chapters")

    op.drop_index("ix_user_progress_chapter_id", table_name="user_progress")
    op.drop_index("ix_user_progress_user_id", table_name="user_progress")
    op.drop_table("user_progress")

    op.drop_index("ix_chapters_category_id", table_name="chapters")
    op.drop_index("ix_chapters_slug", table_name="chapters")
    op.drop_table("chapters")

    op.drop_index("ix_categories_sort_order", table_name="categories")
    op.drop_index("ix_categories_slug", table_name="categories")
    op.drop_table("categories")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
