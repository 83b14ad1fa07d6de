"""Round Serialization: typed scores <-> JSON-safe dicts using the wire field names.

Invariants:
    - Stored scores are decoded exactly once, by the round's ScoringSystem, into
      ABAArrow | IFAAArrow; downstream code never inspects raw shapes
    - Stored points are trusted on decode (they were computed by scoring_rules on write)
    - Encoded keys: targetNumber, arrows, totalPoints, totalScore, personalBest,
      scoringSystem, participants, nonMemberParticipants, status, scorer
"""

from quiver.core.domain_types import ScoringSystem, ZoneHit
from quiver.core.round_aggregate import (
    NonMemberParticipant, Participant, Round, TargetScore,
)
from quiver.core.scoring_rules import ABAArrow, Arrow, IFAAArrow


# ─── Scores ──────────────────────────────────────────────────────

def arrow_to_dict(arrow: Arrow) -> dict:
    if isinstance(arrow, ABAArrow):
        data = {"zoneHit": arrow.zone_hit.value, "points": arrow.points}
        if arrow.arrow_position is not None:
            data["arrowPosition"] = arrow.arrow_position
        return data
    return {"scoreValue": arrow.score_value}


def arrow_from_dict(system: ScoringSystem, data: dict) -> Arrow:
    if system == ScoringSystem.ABA:
        return ABAArrow(
            zone_hit=ZoneHit(data["zoneHit"]),
            points=int(data["points"]),
            arrow_position=data.get("arrowPosition"),
        )
    return IFAAArrow(score_value=int(data["scoreValue"]))


def scores_to_json(scores: list[TargetScore]) -> list[dict]:
    return [
        {
            "targetNumber": s.target_number,
            "arrows": [arrow_to_dict(a) for a in s.arrows],
            "totalPoints": s.total_points,
        }
        for s in scores
    ]


def scores_from_json(system: ScoringSystem, raw: list[dict] | None) -> list[TargetScore]:
    """Decode stored scores into the variant selected by system."""
    return [
        TargetScore(
            target_number=int(item["targetNumber"]),
            arrows=[arrow_from_dict(system, a) for a in item.get("arrows", [])],
            total_points=int(item["totalPoints"]),
        )
        for item in raw or []
    ]


# ─── Round ───────────────────────────────────────────────────────

def _participant_to_dict(participant: Participant) -> dict:
    return {
        "user": str(participant.user_id),
        "scores": scores_to_json(participant.scores),
        "totalScore": participant.total_score,
        "personalBest": participant.personal_best,
    }


def _non_member_to_dict(non_member: NonMemberParticipant) -> dict:
    return {
        "id": str(non_member.id),
        "name": non_member.name,
        "scores": scores_to_json(non_member.scores),
        "totalScore": non_member.total_score,
    }


def _optional_id(value) -> str | None:
    return str(value) if value is not None else None


def round_to_dict(round_: Round) -> dict:
    """Public representation of a round."""
    return {
        "id": str(round_.id),
        "name": round_.name,
        "date": round_.date.isoformat(),
        "scoringSystem": round_.scoring_system.value,
        "course": _optional_id(round_.course_id),
        "club": _optional_id(round_.club_id),
        "event": _optional_id(round_.event_id),
        "targetCount": round_.target_count,
        "arrowsPerTarget": round_.arrows_per_target,
        "maxScore": round_.max_score,
        "participants": [_participant_to_dict(p) for p in round_.participants],
        "nonMemberParticipants": [
            _non_member_to_dict(n) for n in round_.non_member_participants
        ],
        "status": round_.status.value,
        "scorer": str(round_.scorer_id),
        "notes": round_.notes,
        "weather": round_.weather,
        "createdAt": round_.created_at.isoformat(),
    }


def round_summary(round_: Round) -> dict:
    """Listing representation: no per-arrow detail."""
    data = round_to_dict(round_)
    for p in data["participants"]:
        p.pop("scores")
    for n in data["nonMemberParticipants"]:
        n.pop("scores")
    return data
