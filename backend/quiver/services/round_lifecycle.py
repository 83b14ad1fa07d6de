"""Round Lifecycle: orchestrates round creation, mutation, completion and stats.

Invariants:
    - Every mutation runs load -> mutate aggregate -> save under the round's lock
    - Domain rules are enforced by core.round_aggregate; this layer adds authorization
      (via Capabilities) and fetches collaborators (courses, users, history)
    - complete() persists personal-best flags in the same save as the status change
    - Reads are allowed for participants, the scorer, and privileged callers

Design Decisions:
    - Async shell around a sync core: repositories are awaited here, never in core/
    - Personal-best history is read without locks; a concurrently completing sibling
      round may be missed
"""

import logging
from dataclasses import dataclass, replace
from uuid import UUID

from quiver.core.capabilities import Capabilities
from quiver.core.domain_types import (
    ABAScoringStrategy, CourseId, NonMemberId, RoundId,
    ScoringSystem, UserId, DEFAULT_ARROWS_PER_TARGET,
)
from quiver.core.errors import (
    CourseNotFoundError, ErrorContext, NotAuthorizedError,
    ResourceNotFoundError, RoundValidationError,
)
from quiver.core.personal_best import evaluate_personal_bests
from quiver.core.repository_protocols import (
    CourseRepository, RoundFilters, RoundRepository, UserRepository,
)
from quiver.core.round_aggregate import (
    NonMemberParticipant, Participant, Round, TargetScore,
)
from quiver.core.round_draft import RoundDraft
from quiver.core.user_stats import compute_user_stats
from quiver.services.round_locks import round_lock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreResult:
    """Outcome of add_score: the stored target and the holder's new total."""
    round: Round
    score: TargetScore
    total_score: int


class RoundLifecycle:
    """Round use cases over injected repositories."""

    def __init__(
        self,
        rounds: RoundRepository,
        courses: CourseRepository,
        users: UserRepository,
        aba_strategy: ABAScoringStrategy = ABAScoringStrategy.FLAT,
    ):
        self.rounds = rounds
        self.courses = courses
        self.users = users
        self.aba_strategy = aba_strategy

    # --- Create ------------------------------------------------------------------

    async def create(self, caps: Capabilities, draft: RoundDraft) -> Round:
        """Create a round; the caller becomes scorer and first participant."""
        name = (draft.name or "").strip()
        if not name:
            raise RoundValidationError("Please provide a round name", "name")

        scoring_system = draft.scoring_system
        club_id = draft.club_id
        target_count = None
        arrows_per_target = DEFAULT_ARROWS_PER_TARGET

        if draft.course_id is not None:
            course = await self.courses.get(CourseId(draft.course_id))
            if course is None:
                raise CourseNotFoundError(str(draft.course_id))
            scoring_system = scoring_system or course.scoring_system
            club_id = club_id or course.club_id
            target_count = course.target_count
            arrows_per_target = course.arrows_per_target

        if scoring_system is None:
            raise RoundValidationError(
                "Please specify the scoring system", "scoringSystem",
            )

        round_ = Round(
            name=name,
            scoring_system=ScoringSystem(scoring_system),
            scorer_id=caps.user_id,
            course_id=draft.course_id,
            club_id=club_id,
            event_id=draft.event_id,
            target_count=target_count,
            arrows_per_target=arrows_per_target,
            notes=draft.notes,
            weather=draft.weather,
        )
        if draft.date is not None:
            round_.date = draft.date

        round_.ensure_scorer_participates()
        for user_id in draft.participant_ids:
            if user_id == caps.user_id:
                continue
            user = await self._get_user(user_id)
            round_.add_participant(
                user.id, user.verified, caps.can_bypass_verification,
            )
        for guest_name in draft.non_member_names:
            round_.add_non_member(guest_name)

        await self.rounds.save(round_)
        logger.info(
            f"Round created: {round_.name} ({round_.scoring_system.value})",
            extra={"round_id": round_.id, "user_id": caps.user_id},
        )
        return round_

    # --- Read --------------------------------------------------------------------

    async def get(self, caps: Capabilities, round_id: RoundId) -> Round:
        round_ = await self._get_round(round_id)
        if not caps.can_view(round_.scorer_id, round_.participant_ids):
            raise NotAuthorizedError("access this round", ErrorContext(round_id=str(round_id)))
        return round_

    async def list_rounds(self, caps: Capabilities, filters: RoundFilters) -> list[Round]:
        """Newest first. Non-privileged callers only see their own rounds."""
        if not caps.is_privileged:
            filters = replace(filters, visible_to=caps.user_id)
        return await self.rounds.list_rounds(filters)

    # --- Update / delete -----------------------------------------------------------

    async def update(self, caps: Capabilities, round_id: RoundId, changes: dict) -> Round:
        """Partial update of name, date, notes, weather and scoring system."""
        async with round_lock(round_id):
            round_ = await self._get_round_for_update(round_id)
            self._require_manage(caps, round_, "update this round")
            if "name" in changes and not (changes["name"] or "").strip():
                raise RoundValidationError("Round name cannot be empty", "name")
            round_.apply_update(changes)
            await self.rounds.save(round_)
        logger.info("Round updated", extra={"round_id": round_id, "user_id": caps.user_id})
        return round_

    async def delete(self, caps: Capabilities, round_id: RoundId) -> None:
        async with round_lock(round_id):
            round_ = await self._get_round_for_update(round_id)
            self._require_manage(caps, round_, "delete this round")
            round_.ensure_deletable()
            await self.rounds.delete(round_id)
        logger.info("Round deleted", extra={"round_id": round_id, "user_id": caps.user_id})

    # --- Participants --------------------------------------------------------------

    async def add_participant(
        self, caps: Capabilities, round_id: RoundId, email: str,
    ) -> Participant:
        user = await self.users.find_by_email(email)
        if user is None:
            raise ResourceNotFoundError("User", email)
        async with round_lock(round_id):
            round_ = await self._get_round_for_update(round_id)
            self._require_manage(caps, round_, "add participants to this round")
            participant = round_.add_participant(
                user.id, user.verified, caps.can_bypass_verification,
            )
            await self.rounds.save(round_)
        logger.info(
            "Participant added",
            extra={"round_id": round_id, "participant_id": user.id},
        )
        return participant

    async def add_non_member(
        self, caps: Capabilities, round_id: RoundId, name: str,
    ) -> NonMemberParticipant:
        async with round_lock(round_id):
            round_ = await self._get_round_for_update(round_id)
            self._require_manage(caps, round_, "add participants to this round")
            guest = round_.add_non_member(name)
            await self.rounds.save(round_)
        logger.info(
            "Non-member added",
            extra={"round_id": round_id, "participant_id": guest.id},
        )
        return guest

    async def remove_participant(
        self, caps: Capabilities, round_id: RoundId, user_id: UserId,
    ) -> Round:
        async with round_lock(round_id):
            round_ = await self._get_round_for_update(round_id)
            self._require_manage(caps, round_, "remove participants from this round")
            round_.remove_participant(user_id)
            await self.rounds.save(round_)
        return round_

    async def remove_non_member(
        self, caps: Capabilities, round_id: RoundId, non_member_id: NonMemberId,
    ) -> Round:
        async with round_lock(round_id):
            round_ = await self._get_round_for_update(round_id)
            self._require_manage(caps, round_, "remove participants from this round")
            round_.remove_non_member(non_member_id)
            await self.rounds.save(round_)
        return round_

    # --- Scores --------------------------------------------------------------------

    async def add_score(
        self,
        caps: Capabilities,
        round_id: RoundId,
        participant_id: UUID,
        target_number: int,
        arrows: list[dict],
        is_non_member: bool = False,
    ) -> ScoreResult:
        """Record (or replace) one target's arrows for one participant."""
        async with round_lock(round_id):
            round_ = await self._get_round_for_update(round_id)
            self._require_manage(caps, round_, "add scores to this round")
            score = round_.add_or_replace_score(
                participant_id, target_number, arrows,
                is_non_member=is_non_member, strategy=self.aba_strategy,
            )
            await self.rounds.save(round_)
        holder = round_.get_score_holder(participant_id, is_non_member)
        logger.debug(
            f"Target {target_number} scored {score.total_points}",
            extra={"round_id": round_id, "participant_id": participant_id},
        )
        return ScoreResult(round=round_, score=score, total_score=holder.total_score)

    # --- Transitions ---------------------------------------------------------------

    async def complete(self, caps: Capabilities, round_id: RoundId) -> Round:
        """active -> completed, then evaluate personal bests for registered participants."""
        async with round_lock(round_id):
            round_ = await self._get_round_for_update(round_id)
            self._require_manage(caps, round_, "complete this round")
            round_.complete()

            history = {
                p.user_id: await self.rounds.find_by_participant_and_scoring_system(
                    p.user_id, round_.scoring_system, exclude_round_id=round_.id,
                )
                for p in round_.participants
            }
            flags = evaluate_personal_bests(round_, history)
            await self.rounds.save(round_)

        logger.info(
            f"Round completed with {sum(flags.values())} personal best(s)",
            extra={"round_id": round_id, "user_id": caps.user_id},
        )
        return round_

    async def cancel(self, caps: Capabilities, round_id: RoundId) -> Round:
        async with round_lock(round_id):
            round_ = await self._get_round_for_update(round_id)
            self._require_manage(caps, round_, "cancel this round")
            round_.cancel()
            await self.rounds.save(round_)
        logger.info("Round cancelled", extra={"round_id": round_id, "user_id": caps.user_id})
        return round_

    # --- Stats ---------------------------------------------------------------------

    async def compute_user_stats(self, user_id: UserId) -> dict:
        rounds = await self.rounds.find_completed_by_participant(user_id)
        return compute_user_stats(user_id, rounds)

    # --- Internals -----------------------------------------------------------------

    async def _get_round(self, round_id: RoundId) -> Round:
        round_ = await self.rounds.find_by_id(round_id)
        if round_ is None:
            raise ResourceNotFoundError("Round", str(round_id))
        return round_

    async def _get_round_for_update(self, round_id: RoundId) -> Round:
        round_ = await self.rounds.find_for_update(round_id)
        if round_ is None:
            raise ResourceNotFoundError("Round", str(round_id))
        return round_

    async def _get_user(self, user_id: UserId):
        user = await self.users.get(user_id)
        if user is None:
            raise ResourceNotFoundError("User", str(user_id))
        return user

    @staticmethod
    def _require_manage(caps: Capabilities, round_: Round, action: str) -> None:
        if not caps.can_manage(round_.scorer_id):
            raise NotAuthorizedError(action, ErrorContext(round_id=str(round_.id)))
