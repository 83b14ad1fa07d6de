"""Boundary Protocols: contracts between the scoring core and the shell.

Invariants:
    - Core NEVER imports from shell; dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, in-memory fakes in tests need no base class
    - Async in Protocol: implementations do IO, core functions that consume the
      results stay synchronous
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from quiver.core.domain_types import (
    ClubId, CourseId, RoundId, RoundStatus, ScoringSystem, UserId,
)
from quiver.core.round_aggregate import Round


@dataclass(frozen=True)
class CourseDescriptor:
    """Read-only view of a course, as needed to create a round."""
    id: CourseId
    target_count: int
    arrows_per_target: int
    scoring_system: ScoringSystem
    club_id: ClubId | None = None


@dataclass(frozen=True)
class UserDescriptor:
    """Read-only view of a user account."""
    id: UserId
    verified: bool
    role: str = "user"
    email: str | None = None
    name: str | None = None


@dataclass(frozen=True)
class RoundFilters:
    """Query filters for listing rounds. None means unfiltered."""
    visible_to: UserId | None = None
    club_id: ClubId | None = None
    course_id: CourseId | None = None
    scoring_system: ScoringSystem | None = None
    status: RoundStatus | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    limit: int | None = None


class RoundRepository(Protocol):
    """Contract for round persistence. Implemented by shell."""
    async def save(self, round_: Round) -> None: ...
    async def find_by_id(self, round_id: RoundId) -> Round | None: ...
    async def find_for_update(self, round_id: RoundId) -> Round | None: ...
    async def delete(self, round_id: RoundId) -> None: ...
    async def find_by_participant_and_scoring_system(
        self,
        user_id: UserId,
        system: ScoringSystem,
        exclude_round_id: RoundId | None = None,
        status: RoundStatus | None = RoundStatus.COMPLETED,
    ) -> list[Round]: ...
    async def find_completed_by_participant(self, user_id: UserId) -> list[Round]: ...
    async def list_rounds(self, filters: RoundFilters) -> list[Round]: ...


class CourseRepository(Protocol):
    """Contract for course lookups. Implemented by shell."""
    async def get(self, course_id: CourseId) -> CourseDescriptor | None: ...


class UserRepository(Protocol):
    """Contract for user lookups. Implemented by shell."""
    async def get(self, user_id: UserId) -> UserDescriptor | None: ...
    async def find_by_email(self, email: str) -> UserDescriptor | None: ...
