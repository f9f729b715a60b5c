"""Initial riff schema: users, riffs, votes, settlements, medal awards

Revision ID: 5c1e7a9d2b40
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "5c1e7a9d2b40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("username", sa.String(20), nullable=False),
        sa.Column("gold_medals", sa.Integer(), server_default="0"),
        sa.Column("silver_medals", sa.Integer(), server_default="0"),
        sa.Column("bronze_medals", sa.Integer(), server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )

    op.create_table(
        "riffs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("author_id", sa.String(64), nullable=False),
        sa.Column("author_username", sa.String(64), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("submission_date", sa.Date(), nullable=False),
        sa.Column("like_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("edited", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("edited_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("first_voted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.UniqueConstraint("author_id", "submission_date", name="uq_riffs_author_day"),
    )
    op.create_index("ix_riffs_day_likes", "riffs", ["submission_date", "like_count"])
    op.create_index("ix_riffs_author_created", "riffs", ["author_id", "created_at"])

    op.create_table(
        "riff_votes",
        sa.Column(
            "riff_id",
            sa.String(36),
            sa.ForeignKey("riffs.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("voter_id", sa.String(64), primary_key=True),
        sa.Column("voted_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_riff_votes_voter", "riff_votes", ["voter_id"])

    op.create_table(
        "daily_settlements",
        sa.Column("day", sa.Date(), primary_key=True),
        sa.Column("riff_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("summary", postgresql.JSONB(), nullable=True),
        sa.Column(
            "settled_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    op.create_table(
        "medal_awards",
        sa.Column(
            "day",
            sa.Date(),
            sa.ForeignKey("daily_settlements.day", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("rank", sa.Integer(), primary_key=True),
        sa.Column("medal", sa.String(10), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("riff_id", sa.String(36), nullable=False),
        sa.Column("like_count", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_medal_awards_user_day", "medal_awards", ["user_id", "day"])


def downgrade() -> None:
    op.drop_index("ix_medal_awards_user_day", table_name="medal_awards")
    op.drop_table("medal_awards")
    op.drop_table("daily_settlements")
    op.drop_index("ix_riff_votes_voter", table_name="riff_votes")
    op.drop_table("riff_votes")
    op.drop_index("ix_riffs_author_created", table_name="riffs")
    op.drop_index("ix_riffs_day_likes", table_name="riffs")
    op.drop_table("riffs")
    op.drop_table("users")
