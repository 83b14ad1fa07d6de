"""Initial schema: users, courses, rounds, round_participants, round_non_members.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-16

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="user"),
        sa.Column("is_verified", sa.Boolean, nullable=False, server_default="false"),
    )

    op.create_table(
        "courses",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("club_id", UUID(as_uuid=True), nullable=True),
        sa.Column("scoring_system", sa.String(10), nullable=False),
        sa.Column("targets", sa.Integer, nullable=False),
        sa.Column("arrows_per_target", sa.Integer, nullable=False, server_default="3"),
        sa.Column("active", sa.Boolean, nullable=False, server_default="true"),
    )

    op.create_table(
        "rounds",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("scoring_system", sa.String(10), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("course_id", UUID(as_uuid=True), sa.ForeignKey("courses.id"), nullable=True),
        sa.Column("club_id", UUID(as_uuid=True), nullable=True),
        sa.Column("event_id", UUID(as_uuid=True), nullable=True),
        sa.Column("target_count", sa.Integer, nullable=True),
        sa.Column("arrows_per_target", sa.Integer, nullable=False, server_default="3"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("scorer_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("weather", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_rounds_date", "rounds", ["date"])
    op.create_index("ix_rounds_club_id", "rounds", ["club_id"])
    op.create_index("ix_rounds_status", "rounds", ["status"])

    op.create_table(
        "round_participants",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("round_id", UUID(as_uuid=True), sa.ForeignKey("rounds.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        sa.Column("scores", sa.JSON, nullable=False),
        sa.Column("total_score", sa.Integer, nullable=False, server_default="0"),
        sa.Column("personal_best", sa.Boolean, nullable=False, server_default="false"),
        sa.UniqueConstraint("round_id", "user_id", name="uq_round_participant_user"),
    )
    op.create_index("ix_round_participants_round_id", "round_participants", ["round_id"])
    op.create_index("ix_round_participants_user_id", "round_participants", ["user_id"])

    op.create_table(
        "round_non_members",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("round_id", UUID(as_uuid=True), sa.ForeignKey("rounds.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        sa.Column("scores", sa.JSON, nullable=False),
        sa.Column("total_score", sa.Integer, nullable=False, server_default="0"),
        sa.UniqueConstraint("round_id", "name", name="uq_round_non_member_name"),
    )
    op.create_index("ix_round_non_members_round_id", "round_non_members", ["round_id"])


def downgrade() -> None:
    op.drop_table("round_non_members")
    op.drop_table("round_participants")
    op.drop_table("rounds")
    op.drop_table("courses")
    op.drop_table("users")
