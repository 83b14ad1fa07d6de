"""SQL Round Repository: RoundRepository implemented over async SQLAlchemy.

Invariants:
    - Rows are translated to core.round_aggregate.Round on every read; callers never see ORM objects
    - save() upserts the round and reconciles participant/non-member rows by key
    - find_for_update() takes a row lock (SELECT ... FOR UPDATE; no-op on SQLite)
    - Datetimes are returned timezone-aware (SQLite drops tzinfo; UTC assumed)
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from quiver.core.domain_types import (
    ClubId, CourseId, EventId, NonMemberId, RoundId, RoundStatus,
    ScoringSystem, UserId,
)
from quiver.core.repository_protocols import RoundFilters
from quiver.core.round_aggregate import (
    NonMemberParticipant, Participant, Round,
)
from quiver.core.round_serialization import scores_from_json, scores_to_json
from quiver.models.round import Round as RoundModel
from quiver.models.round_participant import RoundParticipant
from quiver.models.round_non_member import RoundNonMember

logger = logging.getLogger(__name__)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _to_domain(row: RoundModel) -> Round:
    system = ScoringSystem(row.scoring_system)
    return Round(
        id=RoundId(row.id),
        name=row.name,
        scoring_system=system,
        scorer_id=UserId(row.scorer_id),
        date=_aware(row.date),
        course_id=CourseId(row.course_id) if row.course_id else None,
        club_id=ClubId(row.club_id) if row.club_id else None,
        event_id=EventId(row.event_id) if row.event_id else None,
        target_count=row.target_count,
        arrows_per_target=row.arrows_per_target,
        participants=[
            Participant(
                user_id=UserId(p.user_id),
                scores=scores_from_json(system, p.scores),
                total_score=p.total_score,
                personal_best=p.personal_best,
            )
            for p in row.participants
        ],
        non_member_participants=[
            NonMemberParticipant(
                id=NonMemberId(n.id),
                name=n.name,
                scores=scores_from_json(system, n.scores),
                total_score=n.total_score,
            )
            for n in row.non_members
        ],
        status=RoundStatus(row.status),
        notes=row.notes,
        weather=row.weather,
        created_at=_aware(row.created_at),
    )


class SqlRoundRepository:
    """Round persistence over an AsyncSession. Commits on every write."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, round_id: RoundId) -> Round | None:
        row = await self._load(round_id)
        return _to_domain(row) if row else None

    async def find_for_update(self, round_id: RoundId) -> Round | None:
        row = await self._load(round_id, for_update=True)
        return _to_domain(row) if row else None

    async def save(self, round_: Round) -> None:
        row = await self.db.get(RoundModel, round_.id)
        if row is None:
            row = RoundModel(
                id=round_.id,
                scorer_id=round_.scorer_id,
                created_at=round_.created_at,
                participants=[],
                non_members=[],
            )
            self.db.add(row)
        self._apply(row, round_)
        await self.db.commit()
        logger.debug(
            "Round saved", extra={"round_id": round_.id, "status": round_.status.value},
        )

    async def delete(self, round_id: RoundId) -> None:
        row = await self.db.get(RoundModel, round_id)
        if row is None:
            return
        await self.db.delete(row)
        await self.db.commit()

    async def find_by_participant_and_scoring_system(
        self,
        user_id: UserId,
        system: ScoringSystem,
        exclude_round_id: RoundId | None = None,
        status: RoundStatus | None = RoundStatus.COMPLETED,
    ) -> list[Round]:
        query = (
            select(RoundModel)
            .join(RoundParticipant, RoundParticipant.round_id == RoundModel.id)
            .where(RoundParticipant.user_id == user_id)
            .where(RoundModel.scoring_system == system.value)
        )
        if exclude_round_id is not None:
            query = query.where(RoundModel.id != exclude_round_id)
        if status is not None:
            query = query.where(RoundModel.status == status.value)
        result = await self.db.execute(query)
        return [_to_domain(r) for r in result.scalars().all()]

    async def find_completed_by_participant(self, user_id: UserId) -> list[Round]:
        query = (
            select(RoundModel)
            .join(RoundParticipant, RoundParticipant.round_id == RoundModel.id)
            .where(RoundParticipant.user_id == user_id)
            .where(RoundModel.status == RoundStatus.COMPLETED.value)
            .order_by(RoundModel.date.desc())
        )
        result = await self.db.execute(query)
        return [_to_domain(r) for r in result.scalars().all()]

    async def list_rounds(self, filters: RoundFilters) -> list[Round]:
        query = select(RoundModel)
        if filters.visible_to is not None:
            participating = select(RoundParticipant.round_id).where(
                RoundParticipant.user_id == filters.visible_to,
            )
            query = query.where(or_(
                RoundModel.scorer_id == filters.visible_to,
                RoundModel.id.in_(participating),
            ))
        if filters.club_id is not None:
            query = query.where(RoundModel.club_id == filters.club_id)
        if filters.course_id is not None:
            query = query.where(RoundModel.course_id == filters.course_id)
        if filters.scoring_system is not None:
            query = query.where(RoundModel.scoring_system == filters.scoring_system.value)
        if filters.status is not None:
            query = query.where(RoundModel.status == filters.status.value)
        if filters.date_from is not None:
            query = query.where(RoundModel.date >= filters.date_from)
        if filters.date_to is not None:
            query = query.where(RoundModel.date <= filters.date_to)
        query = query.order_by(RoundModel.date.desc())
        if filters.limit is not None:
            query = query.limit(filters.limit)
        result = await self.db.execute(query)
        return [_to_domain(r) for r in result.scalars().all()]

    # --- Internals -------------------------------------------------------------

    async def _load(self, round_id: RoundId, for_update: bool = False) -> RoundModel | None:
        query = select(RoundModel).where(RoundModel.id == round_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    def _apply(self, row: RoundModel, round_: Round) -> None:
        row.name = round_.name
        row.scoring_system = round_.scoring_system.value
        row.date = round_.date
        row.course_id = round_.course_id
        row.club_id = round_.club_id
        row.event_id = round_.event_id
        row.target_count = round_.target_count
        row.arrows_per_target = round_.arrows_per_target
        row.status = round_.status.value
        row.notes = round_.notes
        row.weather = round_.weather

        existing = {p.user_id: p for p in row.participants}
        participant_rows = []
        for position, participant in enumerate(round_.participants):
            p_row = existing.get(participant.user_id) or RoundParticipant(
                user_id=participant.user_id,
            )
            p_row.position = position
            p_row.scores = scores_to_json(participant.scores)
            p_row.total_score = participant.total_score
            p_row.personal_best = participant.personal_best
            participant_rows.append(p_row)
        row.participants = participant_rows

        existing_guests = {n.id: n for n in row.non_members}
        guest_rows = []
        for position, guest in enumerate(round_.non_member_participants):
            n_row = existing_guests.get(guest.id) or RoundNonMember(
                id=guest.id, name=guest.name,
            )
            n_row.position = position
            n_row.scores = scores_to_json(guest.scores)
            n_row.total_score = guest.total_score
            guest_rows.append(n_row)
        row.non_members = guest_rows
