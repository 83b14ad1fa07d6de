"""Course ORM: read-only here; supplies target count, arrows per target, default system."""

import uuid

from sqlalchemy import String, Integer, Boolean
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from quiver.db.base import Base


class Course(Base):
    __tablename__ = "courses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    club_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True,
    )
    scoring_system: Mapped[str] = mapped_column(String(10), nullable=False)
    targets: Mapped[int] = mapped_column(Integer, nullable=False)
    arrows_per_target: Mapped[int] = mapped_column(
        Integer, nullable=False, default=3,
    )
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
