"""Round non-member ORM: a guest's scores within one round.

Invariants:
    - (round_id, name) is unique
    - id is generated by the core aggregate and used as the participant reference
"""

import uuid

from sqlalchemy import String, Integer, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from quiver.db.base import Base


class RoundNonMember(Base):
    """Non-member participant row."""
    __tablename__ = "round_non_members"
    __table_args__ = (
        UniqueConstraint("round_id", "name", name="uq_round_non_member_name"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    round_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("rounds.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    scores: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    total_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    round: Mapped["Round"] = relationship("Round", back_populates="non_members")
