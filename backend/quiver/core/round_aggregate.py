"""Round Aggregate: participants, per-target scores and totals for one round.

Invariants:
    - At most one TargetScore per target_number per participant (replace, never append)
    - total_score is derived: recomputed eagerly after every score mutation
    - participants unique by user_id; non-members unique by name
    - The scorer is always a participant and cannot be removed
    - scoring_system is locked once any participant or non-member has a score
    - Status moves forward only: active -> completed | cancelled
    - Scores can only be recorded while the round is active

Design Decisions:
    - Dataclasses with mutating methods, no IO: the service loads, mutates, saves
    - Arrows are typed (ABAArrow | IFAAArrow); no untyped score blobs past decoding
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from quiver.core.domain_types import (
    ABAScoringStrategy, ClubId, CourseId, EventId, NonMemberId, RoundId,
    RoundStatus, ScoringSystem, UserId, DEFAULT_ARROWS_PER_TARGET,
)
from quiver.core.errors import (
    AlreadyCompletedError, DuplicateParticipantError, ErrorContext,
    EventLinkedError, ImmutableFieldError, InvalidStateTransitionError,
    ResourceNotFoundError, RoundNotActiveError, RoundValidationError,
    ScorerProtectedError, ScoringLockedError, UnverifiedUserError,
)
from quiver.core.scoring_rules import Arrow, round_max_score, score_target


# Fields apply_update() may change directly
UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {"name", "date", "notes", "weather", "scoring_system"},
)


@dataclass
class TargetScore:
    """Arrows recorded at one target for one participant."""
    target_number: int
    arrows: list[Arrow]
    total_points: int


@dataclass
class Participant:
    """Registered club member taking part in the round."""
    user_id: UserId
    scores: list[TargetScore] = field(default_factory=list)
    total_score: int = 0
    personal_best: bool = False


@dataclass
class NonMemberParticipant:
    """Guest without an account. Never eligible for personal bests."""
    name: str
    id: NonMemberId = field(default_factory=lambda: NonMemberId(uuid.uuid4()))
    scores: list[TargetScore] = field(default_factory=list)
    total_score: int = 0


ScoreHolder = Participant | NonMemberParticipant


@dataclass
class Round:
    """Aggregate root for a scored round."""
    name: str
    scoring_system: ScoringSystem
    scorer_id: UserId
    id: RoundId = field(default_factory=lambda: RoundId(uuid.uuid4()))
    date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    course_id: CourseId | None = None
    club_id: ClubId | None = None
    event_id: EventId | None = None
    target_count: int | None = None
    arrows_per_target: int = DEFAULT_ARROWS_PER_TARGET
    participants: list[Participant] = field(default_factory=list)
    non_member_participants: list[NonMemberParticipant] = field(default_factory=list)
    status: RoundStatus = RoundStatus.ACTIVE
    notes: str | None = None
    weather: dict | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # --- Computed properties ---------------------------------------------------

    @property
    def has_scores(self) -> bool:
        """Whether any participant or non-member has at least one target scored."""
        return any(p.scores for p in self.participants) or any(
            n.scores for n in self.non_member_participants
        )

    @property
    def participant_ids(self) -> set[UserId]:
        return {p.user_id for p in self.participants}

    @property
    def max_score(self) -> int | None:
        """Round maximum, or None when the target count is unknown."""
        if self.target_count is None:
            return None
        return round_max_score(
            self.scoring_system, self.target_count, self.arrows_per_target,
        )

    @property
    def is_active(self) -> bool:
        return self.status == RoundStatus.ACTIVE

    # --- Lookup ------------------------------------------------------------------

    def find_participant(self, user_id: UserId) -> Participant | None:
        return next((p for p in self.participants if p.user_id == user_id), None)

    def find_non_member(self, non_member_id: NonMemberId) -> NonMemberParticipant | None:
        return next(
            (n for n in self.non_member_participants if n.id == non_member_id),
            None,
        )

    def get_score_holder(self, participant_id: uuid.UUID, is_non_member: bool) -> ScoreHolder:
        """Resolve a participant reference or raise ResourceNotFoundError."""
        holder: ScoreHolder | None
        if is_non_member:
            holder = self.find_non_member(NonMemberId(participant_id))
            kind = "Non-member participant"
        else:
            holder = self.find_participant(UserId(participant_id))
            kind = "Participant"
        if holder is None:
            raise ResourceNotFoundError(
                kind, str(participant_id), self._context(participant_id),
            )
        return holder

    # --- Participants ----------------------------------------------------------

    def add_participant(
        self,
        user_id: UserId,
        verified: bool = True,
        bypass_verification: bool = False,
    ) -> Participant:
        """Add a registered user. Unverified accounts need bypass_verification."""
        if self.find_participant(user_id) is not None:
            raise DuplicateParticipantError(str(user_id), self._context(user_id))
        if not verified and not bypass_verification:
            raise UnverifiedUserError(str(user_id), self._context(user_id))
        participant = Participant(user_id=user_id)
        self.participants.append(participant)
        return participant

    def ensure_scorer_participates(self) -> None:
        """Force-add the scorer; the scorer's own verification is never gated."""
        if self.find_participant(self.scorer_id) is None:
            self.participants.append(Participant(user_id=self.scorer_id))

    def add_non_member(self, name: str) -> NonMemberParticipant:
        name = (name or "").strip()
        if not name:
            raise RoundValidationError("Non-member name cannot be empty", "name")
        if any(n.name == name for n in self.non_member_participants):
            raise DuplicateParticipantError(name, self._context())
        non_member = NonMemberParticipant(name=name)
        self.non_member_participants.append(non_member)
        return non_member

    def remove_participant(self, user_id: UserId) -> None:
        if user_id == self.scorer_id:
            raise ScorerProtectedError(self._context(user_id))
        participant = self.find_participant(user_id)
        if participant is None:
            raise ResourceNotFoundError(
                "Participant", str(user_id), self._context(user_id),
            )
        self.participants.remove(participant)

    def remove_non_member(self, non_member_id: NonMemberId) -> None:
        non_member = self.find_non_member(non_member_id)
        if non_member is None:
            raise ResourceNotFoundError(
                "Non-member participant", str(non_member_id),
                self._context(non_member_id),
            )
        self.non_member_participants.remove(non_member)

    # --- Scores ----------------------------------------------------------------

    def add_or_replace_score(
        self,
        participant_id: uuid.UUID,
        target_number: int,
        arrows: list[dict],
        is_non_member: bool = False,
        strategy: ABAScoringStrategy = ABAScoringStrategy.FLAT,
    ) -> TargetScore:
        """Score one target for one participant, replacing any earlier entry."""
        if not self.is_active:
            raise RoundNotActiveError(self.status.value, self._context(participant_id))
        holder = self.get_score_holder(participant_id, is_non_member)
        self._check_target_number(target_number)

        typed_arrows, total = score_target(
            self.scoring_system, arrows, self.arrows_per_target, strategy,
        )
        score = TargetScore(
            target_number=target_number, arrows=typed_arrows, total_points=total,
        )
        for index, existing in enumerate(holder.scores):
            if existing.target_number == target_number:
                holder.scores[index] = score
                break
        else:
            holder.scores.append(score)

        recompute_total_score(holder)
        return score

    def recompute_all_totals(self) -> None:
        for holder in [*self.participants, *self.non_member_participants]:
            recompute_total_score(holder)

    # --- Updates & lifecycle ---------------------------------------------------

    def apply_update(self, changes: dict) -> None:
        """Apply a partial update. Keys are snake_case field names."""
        scorer = changes.get("scorer_id")
        if scorer is not None and scorer != self.scorer_id:
            raise ImmutableFieldError("scorer", self._context())

        system = changes.get("scoring_system")
        if system is not None and system != self.scoring_system and self.has_scores:
            raise ScoringLockedError(self._context())

        for key, value in changes.items():
            if key not in UPDATABLE_FIELDS:
                continue
            if key in ("name", "date", "scoring_system") and value is None:
                continue
            setattr(self, key, value)

    def complete(self) -> None:
        """active -> completed. Personal bests are evaluated by the caller."""
        if self.status == RoundStatus.COMPLETED:
            raise AlreadyCompletedError(self._context())
        if self.status != RoundStatus.ACTIVE:
            raise InvalidStateTransitionError(
                self.status.value, RoundStatus.COMPLETED.value, self._context(),
            )
        self.recompute_all_totals()
        self.status = RoundStatus.COMPLETED

    def cancel(self) -> None:
        """active -> cancelled."""
        if self.status != RoundStatus.ACTIVE:
            raise InvalidStateTransitionError(
                self.status.value, RoundStatus.CANCELLED.value, self._context(),
            )
        self.status = RoundStatus.CANCELLED

    def ensure_deletable(self) -> None:
        if self.event_id is not None:
            raise EventLinkedError(self._context())

    # --- Internals -------------------------------------------------------------

    def _check_target_number(self, target_number: int) -> None:
        if not isinstance(target_number, int) or isinstance(target_number, bool) or target_number < 1:
            raise RoundValidationError(
                f"targetNumber must be a positive integer, got {target_number!r}",
                "targetNumber",
            )
        if self.target_count is not None and target_number > self.target_count:
            raise RoundValidationError(
                f"targetNumber {target_number} exceeds the course's "
                f"{self.target_count} target(s)",
                "targetNumber",
            )

    def _context(self, participant_id: object = None) -> ErrorContext:
        return ErrorContext(
            round_id=str(self.id),
            participant_id=str(participant_id) if participant_id is not None else None,
        )


def recompute_total_score(holder: ScoreHolder) -> int:
    """Sum of total_points over the holder's targets. Idempotent."""
    holder.total_score = sum(s.total_points for s in holder.scores)
    return holder.total_score
