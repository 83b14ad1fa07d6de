"""Round Aggregate: verifies participant, score and lifecycle rules on the pure aggregate.

Tests:
    - Scorer always participates and cannot be removed
    - Duplicate members / non-members rejected; unverified users need bypass
    - Scores replace by target number; totals always equal the sum of targets
    - Scoring system locked once scores exist; scorer immutable
    - Status transitions: complete once, cancel only when active
    - Event-linked rounds cannot be deleted
"""

import uuid
from datetime import datetime, timezone

import pytest

from quiver.core.domain_types import (
    ABAScoringStrategy, RoundStatus, ScoringSystem, UserId,
)
from quiver.core.errors import (
    AlreadyCompletedError, DuplicateParticipantError, EventLinkedError,
    ImmutableFieldError, InvalidStateTransitionError, ResourceNotFoundError,
    RoundNotActiveError, RoundValidationError, ScorerProtectedError,
    ScoringLockedError, UnverifiedUserError,
)
from quiver.core.round_aggregate import Round, recompute_total_score


def _user() -> UserId:
    return UserId(uuid.uuid4())


def _round(system=ScoringSystem.ABA, **kwargs) -> Round:
    round_ = Round(name="Sunday shoot", scoring_system=system, scorer_id=_user(), **kwargs)
    round_.ensure_scorer_participates()
    return round_


ABA_A_B_C = [{"zoneHit": "A"}, {"zoneHit": "B"}, {"zoneHit": "C"}]


# ─── Participants ────────────────────────────────────────────────

def test_scorer_is_participant_once():
    round_ = _round()
    round_.ensure_scorer_participates()
    assert round_.participant_ids == {round_.scorer_id}


def test_duplicate_participant_rejected():
    round_ = _round()
    with pytest.raises(DuplicateParticipantError):
        round_.add_participant(round_.scorer_id)


def test_unverified_user_requires_bypass():
    round_ = _round()
    with pytest.raises(UnverifiedUserError):
        round_.add_participant(_user(), verified=False)
    added = round_.add_participant(_user(), verified=False, bypass_verification=True)
    assert added.user_id in round_.participant_ids


def test_remove_scorer_rejected_before_lookup():
    round_ = _round()
    with pytest.raises(ScorerProtectedError):
        round_.remove_participant(round_.scorer_id)


def test_remove_unknown_participant_is_not_found():
    round_ = _round()
    with pytest.raises(ResourceNotFoundError):
        round_.remove_participant(_user())


def test_remove_participant():
    round_ = _round()
    member = _user()
    round_.add_participant(member)
    round_.remove_participant(member)
    assert member not in round_.participant_ids


def test_non_member_names_are_stripped_and_unique():
    round_ = _round()
    guest = round_.add_non_member("  Will Scarlet ")
    assert guest.name == "Will Scarlet"
    with pytest.raises(DuplicateParticipantError):
        round_.add_non_member("Will Scarlet")


def test_blank_non_member_name_rejected():
    round_ = _round()
    with pytest.raises(RoundValidationError):
        round_.add_non_member("   ")


def test_remove_non_member():
    round_ = _round()
    guest = round_.add_non_member("Alan")
    round_.remove_non_member(guest.id)
    assert round_.non_member_participants == []
    with pytest.raises(ResourceNotFoundError):
        round_.remove_non_member(guest.id)


# ─── Scores ──────────────────────────────────────────────────────

def test_flat_aba_score_for_scorer():
    round_ = _round()
    score = round_.add_or_replace_score(round_.scorer_id, 1, ABA_A_B_C)
    assert score.total_points == 46
    assert round_.find_participant(round_.scorer_id).total_score == 46


def test_resubmitting_a_target_replaces_it():
    round_ = _round()
    round_.add_or_replace_score(round_.scorer_id, 1, ABA_A_B_C)
    round_.add_or_replace_score(round_.scorer_id, 2, [{"zoneHit": "C"}])
    round_.add_or_replace_score(round_.scorer_id, 1, [{"zoneHit": "miss"}])

    participant = round_.find_participant(round_.scorer_id)
    assert [s.target_number for s in participant.scores] == [1, 2]
    assert participant.total_score == 10
    assert participant.total_score == sum(s.total_points for s in participant.scores)


def test_recompute_total_score_is_idempotent():
    round_ = _round()
    round_.add_or_replace_score(round_.scorer_id, 1, ABA_A_B_C)
    round_.add_or_replace_score(round_.scorer_id, 2, [{"zoneHit": "B"}])
    participant = round_.find_participant(round_.scorer_id)

    first = recompute_total_score(participant)
    second = recompute_total_score(participant)
    round_.recompute_all_totals()

    assert first == second == 62
    assert participant.total_score == 62


def test_non_member_scores():
    round_ = _round(system=ScoringSystem.IFAA)
    guest = round_.add_non_member("Much")
    round_.add_or_replace_score(
        guest.id, 1, [{"scoreValue": 5}, {"scoreValue": 3}], is_non_member=True,
    )
    assert guest.total_score == 8


def test_non_member_id_used_as_member_is_not_found():
    round_ = _round()
    guest = round_.add_non_member("Much")
    with pytest.raises(ResourceNotFoundError):
        round_.add_or_replace_score(guest.id, 1, ABA_A_B_C)


def test_target_number_beyond_course_rejected():
    round_ = _round(target_count=2)
    with pytest.raises(RoundValidationError) as exc:
        round_.add_or_replace_score(round_.scorer_id, 3, ABA_A_B_C)
    assert exc.value.field == "targetNumber"


def test_target_number_must_be_positive():
    round_ = _round()
    with pytest.raises(RoundValidationError):
        round_.add_or_replace_score(round_.scorer_id, 0, ABA_A_B_C)


def test_position_weighted_strategy_is_applied():
    round_ = _round()
    score = round_.add_or_replace_score(
        round_.scorer_id, 1, [{"zoneHit": "miss"}, {"zoneHit": "A"}],
        strategy=ABAScoringStrategy.POSITION_WEIGHTED,
    )
    assert score.total_points == 14


def test_scores_rejected_once_round_is_not_active():
    round_ = _round()
    round_.cancel()
    with pytest.raises(RoundNotActiveError):
        round_.add_or_replace_score(round_.scorer_id, 1, ABA_A_B_C)


def test_max_score_needs_target_count():
    assert _round().max_score is None
    assert _round(target_count=20).max_score == 400
    assert _round(system=ScoringSystem.IFAA, target_count=28).max_score == 420


# ─── Updates ─────────────────────────────────────────────────────

def test_update_changes_plain_fields():
    round_ = _round()
    new_date = datetime(2026, 5, 1, tzinfo=timezone.utc)
    round_.apply_update({"name": "Renamed", "date": new_date, "notes": "windy"})
    assert (round_.name, round_.date, round_.notes) == ("Renamed", new_date, "windy")


def test_scoring_system_change_allowed_without_scores():
    round_ = _round()
    round_.apply_update({"scoring_system": ScoringSystem.IFAA})
    assert round_.scoring_system == ScoringSystem.IFAA


def test_scoring_system_locked_after_scores():
    round_ = _round()
    round_.add_or_replace_score(round_.scorer_id, 1, ABA_A_B_C)
    with pytest.raises(ScoringLockedError):
        round_.apply_update({"scoring_system": ScoringSystem.IFAA})


def test_scoring_system_locked_by_non_member_scores():
    round_ = _round(system=ScoringSystem.IFAA)
    guest = round_.add_non_member("Much")
    round_.add_or_replace_score(guest.id, 1, [{"scoreValue": 2}], is_non_member=True)

    assert not round_.find_participant(round_.scorer_id).scores
    with pytest.raises(ScoringLockedError):
        round_.apply_update({"scoring_system": ScoringSystem.ABA})


def test_same_scoring_system_is_not_a_change():
    round_ = _round()
    round_.add_or_replace_score(round_.scorer_id, 1, ABA_A_B_C)
    round_.apply_update({"scoring_system": ScoringSystem.ABA})


def test_scorer_is_immutable():
    round_ = _round()
    with pytest.raises(ImmutableFieldError):
        round_.apply_update({"scorer_id": _user()})


# ─── Lifecycle ───────────────────────────────────────────────────

def test_complete_twice_is_already_completed():
    round_ = _round()
    round_.complete()
    assert round_.status == RoundStatus.COMPLETED
    with pytest.raises(AlreadyCompletedError):
        round_.complete()


def test_complete_cancelled_round_is_invalid_transition():
    round_ = _round()
    round_.cancel()
    with pytest.raises(InvalidStateTransitionError) as exc:
        round_.complete()
    assert not isinstance(exc.value, AlreadyCompletedError)


def test_cancel_completed_round_rejected():
    round_ = _round()
    round_.complete()
    with pytest.raises(InvalidStateTransitionError):
        round_.cancel()


def test_event_linked_round_not_deletable():
    round_ = _round(event_id=uuid.uuid4())
    with pytest.raises(EventLinkedError):
        round_.ensure_deletable()
    _round().ensure_deletable()
