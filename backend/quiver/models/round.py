"""Round ORM: persists the round aggregate root.

Invariants:
    - Owns its participants and non-members (cascade delete-orphan)
    - scorer_id is set on insert and never updated
    - status is one of RoundStatus values; scoring_system one of ScoringSystem values
    - target_count / arrows_per_target snapshot the course at creation

Design Decisions:
    - club_id / event_id are plain UUID references: clubs and events live outside this service
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, DateTime, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from quiver.db.base import Base


class Round(Base):
    """Round aggregate root."""
    __tablename__ = "rounds"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    scoring_system: Mapped[str] = mapped_column(String(10), nullable=False)
    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    course_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("courses.id"), nullable=True,
    )
    club_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True, index=True,
    )
    event_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True,
    )
    target_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    arrows_per_target: Mapped[int] = mapped_column(
        Integer, nullable=False, default=3,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="active", index=True,
    )
    scorer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    weather: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    participants: Mapped[list["RoundParticipant"]] = relationship(
        "RoundParticipant", back_populates="round",
        cascade="all, delete-orphan", lazy="selectin",
        order_by="RoundParticipant.position",
    )
    non_members: Mapped[list["RoundNonMember"]] = relationship(
        "RoundNonMember", back_populates="round",
        cascade="all, delete-orphan", lazy="selectin",
        order_by="RoundNonMember.position",
    )
