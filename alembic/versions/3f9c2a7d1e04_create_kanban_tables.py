"""create kanban tables

Revision ID: 3f9c2a7d1e04
Revises:
Create Date: 2026-10-19 09:12:31.114502

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f9c2a7d1e04"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        *_timestamps(),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "boards",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column(
            "user_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("icon", sa.String(length=8), nullable=True),
        sa.Column("is_favorite", sa.Boolean(), server_default=sa.false(), nullable=False),
        *_timestamps(),
    )
    op.create_index(op.f("ix_boards_user_id"), "boards", ["user_id"], unique=False)

    op.create_table(
        "columns",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "board_id",
            sa.String(length=36),
            sa.ForeignKey("boards.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=50), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index(op.f("ix_columns_board_id"), "columns", ["board_id"], unique=False)
    op.create_index("ix_columns_board_position", "columns", ["board_id", "position"])

    # Create enum type first (values match Python enum string values)
    priority_enum = sa.Enum("LOW", "MEDIUM", "HIGH", name="priority")

    op.create_table(
        "cards",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "column_id",
            sa.String(length=36),
            sa.ForeignKey("columns.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("priority", priority_enum, server_default="MEDIUM", nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("archived", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index(op.f("ix_cards_column_id"), "cards", ["column_id"], unique=False)
    op.create_index(op.f("ix_cards_archived"), "cards", ["archived"], unique=False)
    op.create_index(
        "ix_cards_column_active_position", "cards", ["column_id", "archived", "position"]
    )

    op.create_table(
        "attachments",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "card_id",
            sa.String(length=36),
            sa.ForeignKey("cards.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("original_name", sa.String(length=255), nullable=False),
        sa.Column("mime_type", sa.String(length=255), nullable=False),
        sa.Column("size", sa.BigInteger(), nullable=False),
        sa.Column("path", sa.String(length=500), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
    )
    op.create_index(op.f("ix_attachments_card_id"), "attachments", ["card_id"], unique=False)
    op.create_index(op.f("ix_attachments_user_id"), "attachments", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_table("attachments")
    op.drop_table("cards")
    sa.Enum(name="priority").drop(op.get_bind(), checkfirst=True)
    op.drop_table("columns")
    op.drop_table("boards")
    op.drop_table("users")
