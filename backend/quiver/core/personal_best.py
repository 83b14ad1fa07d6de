"""Personal Best: decides whether a completing round beats a participant's history.

Invariants:
    - Strictly greater than every prior score; a tie is NOT a personal best
    - No prior completed rounds under the same scoring system -> personal best
    - History excludes the round being completed and rounds under other systems
    - Non-member participants are never evaluated

Design Decisions:
    - Pure: the service fetches history through RoundRepository and passes it in
"""

from collections.abc import Iterable

from quiver.core.domain_types import RoundStatus, UserId
from quiver.core.round_aggregate import Round


def is_personal_best(score: int, prior_scores: Iterable[int]) -> bool:
    """True iff score beats every prior score."""
    return all(score > prior for prior in prior_scores)


def prior_scores_for(user_id: UserId, completing: Round, history: Iterable[Round]) -> list[int]:
    """The user's totals in other completed rounds under the same scoring system."""
    scores = []
    for other in history:
        if (
            other.id == completing.id
            or other.status != RoundStatus.COMPLETED
            or other.scoring_system != completing.scoring_system
        ):
            continue
        participant = other.find_participant(user_id)
        if participant is not None:
            scores.append(participant.total_score)
    return scores


def evaluate_personal_bests(
    completing: Round, history_by_user: dict[UserId, list[Round]],
) -> dict[UserId, bool]:
    """Set personal_best on every registered participant. Returns the flags."""
    flags: dict[UserId, bool] = {}
    for participant in completing.participants:
        prior = prior_scores_for(
            participant.user_id, completing,
            history_by_user.get(participant.user_id, []),
        )
        participant.personal_best = is_personal_best(participant.total_score, prior)
        flags[participant.user_id] = participant.personal_best
    return flags
