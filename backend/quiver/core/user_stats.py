"""User Stats: read-side aggregation over a user's completed rounds.

Invariants:
    - Only completed rounds where the user is a registered participant count
    - recentScores holds at most RECENT_SCORES_LIMIT entries, newest round date first
    - Keys use the wire (camelCase) names expected by existing clients
    - Never raises: no rounds -> zeroed stats
"""

from collections.abc import Iterable

from quiver.core.domain_types import RECENT_SCORES_LIMIT, RoundStatus, UserId
from quiver.core.round_aggregate import Round


def compute_user_stats(user_id: UserId, rounds: Iterable[Round]) -> dict:
    """Totals, averages, high scores and recent scores per scoring system."""
    total_rounds = 0
    personal_bests = 0
    systems: dict[str, dict] = {}

    for round_ in rounds:
        if round_.status != RoundStatus.COMPLETED:
            continue
        participant = round_.find_participant(user_id)
        if participant is None:
            continue

        total_rounds += 1
        if participant.personal_best:
            personal_bests += 1

        stats = systems.setdefault(round_.scoring_system.value, {
            "totalScore": 0,
            "count": 0,
            "average": 0,
            "highScore": 0,
            "recentScores": [],
        })
        stats["totalScore"] += participant.total_score
        stats["count"] += 1
        stats["highScore"] = max(stats["highScore"], participant.total_score)
        stats["recentScores"].append({
            "date": round_.date,
            "score": participant.total_score,
            "roundId": str(round_.id),
        })

    for stats in systems.values():
        stats["average"] = stats["totalScore"] / stats["count"]
        stats["recentScores"].sort(key=lambda s: s["date"], reverse=True)
        del stats["recentScores"][RECENT_SCORES_LIMIT:]
        for entry in stats["recentScores"]:
            entry["date"] = entry["date"].isoformat()

    score_sum = sum(s["totalScore"] for s in systems.values())
    return {
        "totalRounds": total_rounds,
        "averageScore": score_sum / total_rounds if total_rounds else 0,
        "personalBests": personal_bests,
        "scoringSystems": systems,
    }
