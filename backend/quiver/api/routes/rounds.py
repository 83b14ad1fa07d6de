"""Round Routes: REST surface for round lifecycle, participants, scores and stats.

Invariants:
    - Every route resolves Capabilities first (401 before any round lookup)
    - Routes only translate HTTP <-> RoundLifecycle calls; no scoring rules here
    - Responses use the {"success": true, "data": ...} envelope
    - /stats/me is registered before /{round_id}
"""

import logging
from datetime import date as date_type, datetime, time, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from quiver.api.dependencies import get_capabilities, get_round_lifecycle
from quiver.core.capabilities import Capabilities
from quiver.core.domain_types import (
    ClubId, CourseId, EventId, NonMemberId, ParticipantKind, RoundId,
    RoundStatus, ScoringSystem, UserId,
)
from quiver.core.repository_protocols import RoundFilters
from quiver.core.round_draft import RoundDraft
from quiver.core.round_serialization import round_summary, round_to_dict
from quiver.schemas.round import (
    ParticipantAdd, RoundCreate, RoundUpdate, ScoreSubmit,
)
from quiver.services.round_lifecycle import RoundLifecycle

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/rounds", tags=["rounds"])


def _envelope(data) -> dict:
    return {"success": True, "data": data}


def _day_start(day: date_type) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def _day_end(day: date_type) -> datetime:
    return datetime.combine(day, time.max, tzinfo=timezone.utc)


@router.get("")
async def list_rounds(
    club: UUID | None = Query(None),
    course: UUID | None = Query(None),
    scoring_system: ScoringSystem | None = Query(None, alias="scoringSystem"),
    status_filter: RoundStatus | None = Query(None, alias="status"),
    on_date: date_type | None = Query(None, alias="date"),
    start_date: date_type | None = Query(None, alias="startDate"),
    end_date: date_type | None = Query(None, alias="endDate"),
    limit: int | None = Query(None, ge=1, le=500),
    caps: Capabilities = Depends(get_capabilities),
    lifecycle: RoundLifecycle = Depends(get_round_lifecycle),
):
    """List rounds, newest first."""
    date_from = date_to = None
    if on_date is not None:
        date_from, date_to = _day_start(on_date), _day_end(on_date)
    if start_date is not None and end_date is not None:
        date_from, date_to = _day_start(start_date), _day_end(end_date)

    rounds = await lifecycle.list_rounds(caps, RoundFilters(
        club_id=ClubId(club) if club else None,
        course_id=CourseId(course) if course else None,
        scoring_system=scoring_system,
        status=status_filter,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
    ))
    return {
        "success": True,
        "count": len(rounds),
        "data": [round_summary(r) for r in rounds],
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_round(
    body: RoundCreate,
    caps: Capabilities = Depends(get_capabilities),
    lifecycle: RoundLifecycle = Depends(get_round_lifecycle),
):
    """Create a round. The caller becomes scorer and participant."""
    draft = RoundDraft(
        name=body.name,
        scoring_system=body.scoring_system,
        course_id=CourseId(body.course) if body.course else None,
        club_id=ClubId(body.club) if body.club else None,
        event_id=EventId(body.event) if body.event else None,
        date=body.date,
        participant_ids=[UserId(p.user) for p in body.participants],
        non_member_names=body.non_member_participants,
        notes=body.notes,
        weather=body.weather.model_dump(by_alias=True) if body.weather else None,
    )
    round_ = await lifecycle.create(caps, draft)
    return _envelope(round_to_dict(round_))


@router.get("/stats/me")
async def get_my_stats(
    caps: Capabilities = Depends(get_capabilities),
    lifecycle: RoundLifecycle = Depends(get_round_lifecycle),
):
    """Aggregate stats over the caller's completed rounds."""
    return _envelope(await lifecycle.compute_user_stats(caps.user_id))


@router.get("/{round_id}")
async def get_round(
    round_id: UUID,
    caps: Capabilities = Depends(get_capabilities),
    lifecycle: RoundLifecycle = Depends(get_round_lifecycle),
):
    round_ = await lifecycle.get(caps, RoundId(round_id))
    return _envelope(round_to_dict(round_))


@router.put("/{round_id}")
async def update_round(
    round_id: UUID,
    body: RoundUpdate,
    caps: Capabilities = Depends(get_capabilities),
    lifecycle: RoundLifecycle = Depends(get_round_lifecycle),
):
    round_ = await lifecycle.update(caps, RoundId(round_id), body.to_changes())
    return _envelope(round_to_dict(round_))


@router.delete("/{round_id}")
async def delete_round(
    round_id: UUID,
    caps: Capabilities = Depends(get_capabilities),
    lifecycle: RoundLifecycle = Depends(get_round_lifecycle),
):
    await lifecycle.delete(caps, RoundId(round_id))
    return _envelope({})


@router.post("/{round_id}/participants")
async def add_participant(
    round_id: UUID,
    body: ParticipantAdd,
    caps: Capabilities = Depends(get_capabilities),
    lifecycle: RoundLifecycle = Depends(get_round_lifecycle),
):
    """Add a registered user (by email) or a non-member (by name)."""
    if body.email:
        await lifecycle.add_participant(caps, RoundId(round_id), body.email)
    else:
        await lifecycle.add_non_member(caps, RoundId(round_id), body.name)
    round_ = await lifecycle.get(caps, RoundId(round_id))
    return _envelope(round_to_dict(round_))


@router.delete("/{round_id}/participants/{participant_id}")
async def remove_participant(
    round_id: UUID,
    participant_id: UUID,
    kind: ParticipantKind = Query(ParticipantKind.MEMBER, alias="type"),
    caps: Capabilities = Depends(get_capabilities),
    lifecycle: RoundLifecycle = Depends(get_round_lifecycle),
):
    """Remove a participant. ?type=nonmember targets the non-member list."""
    if kind == ParticipantKind.NON_MEMBER:
        round_ = await lifecycle.remove_non_member(
            caps, RoundId(round_id), NonMemberId(participant_id),
        )
    else:
        round_ = await lifecycle.remove_participant(
            caps, RoundId(round_id), UserId(participant_id),
        )
    return _envelope(round_to_dict(round_))


@router.post("/{round_id}/scores")
async def add_score(
    round_id: UUID,
    body: ScoreSubmit,
    caps: Capabilities = Depends(get_capabilities),
    lifecycle: RoundLifecycle = Depends(get_round_lifecycle),
):
    """Record or replace one target's arrows for one participant."""
    result = await lifecycle.add_score(
        caps, RoundId(round_id), body.participant_id,
        body.target_number, body.arrows, body.is_non_member,
    )
    return _envelope(round_to_dict(result.round))


@router.put("/{round_id}/complete")
async def complete_round(
    round_id: UUID,
    caps: Capabilities = Depends(get_capabilities),
    lifecycle: RoundLifecycle = Depends(get_round_lifecycle),
):
    round_ = await lifecycle.complete(caps, RoundId(round_id))
    return _envelope(round_to_dict(round_))


@router.put("/{round_id}/cancel")
async def cancel_round(
    round_id: UUID,
    caps: Capabilities = Depends(get_capabilities),
    lifecycle: RoundLifecycle = Depends(get_round_lifecycle),
):
    round_ = await lifecycle.cancel(caps, RoundId(round_id))
    return _envelope(round_to_dict(round_))
