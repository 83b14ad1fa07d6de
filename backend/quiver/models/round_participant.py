"""Round participant ORM: a registered user's scores within one round.

Invariants:
    - (round_id, user_id) is unique
    - scores holds the wire-format target list; decoded by core.round_serialization
    - total_score is written from the aggregate, never computed in SQL
"""

import uuid

from sqlalchemy import Integer, Boolean, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from quiver.db.base import Base


class RoundParticipant(Base):
    """Registered participant row."""
    __tablename__ = "round_participants"
    __table_args__ = (
        UniqueConstraint("round_id", "user_id", name="uq_round_participant_user"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    round_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("rounds.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    scores: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    total_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    personal_best: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )

    round: Mapped["Round"] = relationship("Round", back_populates="participants")
