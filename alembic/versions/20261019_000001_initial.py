"""Initial schema: users, seasons, cards, attempts.

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 00:00:01
"""

from alembic import op  # type: ignore[attr-defined]
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "20261019_000001"
down_revision = None
branch_labels = None
depends_on = None


def _user_role_enum() -> postgresql.ENUM:
    return postgresql.ENUM(
        "HOST", "PRODUCER", "ADMIN", name="user_role_enum", create_type=False
    )


def _difficulty_enum() -> postgresql.ENUM:
    return postgresql.ENUM(
        "EASY", "MEDIUM", "HARD", name="difficulty_enum", create_type=False
    )


def upgrade() -> None:
    user_role_enum = _user_role_enum()
    difficulty_enum = _difficulty_enum()
    user_role_enum.create(op.get_bind(), checkfirst=True)
    difficulty_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("role", user_role_enum, nullable=False, server_default="HOST"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"], unique=False)

    op.create_table(
        "seasons",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_seasons_created_by_id", "seasons", ["created_by_id"])
    op.create_index("ix_seasons_created_at", "seasons", ["created_at"])

    op.create_table(
        "cards",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "season_id",
            sa.Integer(),
            sa.ForeignKey("seasons.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("difficulty", difficulty_enum, nullable=False),
        sa.Column("card_number", sa.Integer(), nullable=False),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("correct_answer", sa.Text(), nullable=False),
        sa.Column("usage_count", sa.Integer(), nullable=False),
        sa.Column("last_used", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint(
            "season_id",
            "difficulty",
            "card_number",
            name="uq_cards_season_difficulty_number",
        ),
    )
    op.create_index("ix_cards_season_difficulty", "cards", ["season_id", "difficulty"])
    op.create_index("ix_cards_usage_count", "cards", ["usage_count"])

    op.create_table(
        "attempts",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "card_id",
            sa.Integer(),
            sa.ForeignKey("cards.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "season_id",
            sa.Integer(),
            sa.ForeignKey("seasons.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("contestant_name", sa.String(), nullable=False),
        sa.Column("given_answer", sa.Text(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("attempted_at", sa.DateTime(), nullable=False),
        sa.Column("recorded_by_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
    )
    op.create_index("ix_attempts_card_id", "attempts", ["card_id"])
    op.create_index("ix_attempts_season_id", "attempts", ["season_id"])
    op.create_index("ix_attempts_contestant_name", "attempts", ["contestant_name"])
    op.create_index("ix_attempts_attempted_at", "attempts", ["attempted_at"])
    op.create_index("ix_attempts_recorded_by_id", "attempts", ["recorded_by_id"])


def downgrade() -> None:
    op.drop_table("attempts")
    op.drop_table("cards")
    op.drop_table("seasons")
    op.drop_table("users")
    _difficulty_enum().drop(op.get_bind(), checkfirst=True)
    _user_role_enum().drop(op.get_bind(), checkfirst=True)
