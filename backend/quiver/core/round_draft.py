"""Round Draft: an unsaved round described explicitly by the caller.

Invariants:
    - A draft is plain data; it never touches storage or global state
    - scoring_system may be None only when course_id is set (course supplies it)
"""

from dataclasses import dataclass, field
from datetime import datetime

from quiver.core.domain_types import (
    ClubId, CourseId, EventId, ScoringSystem, UserId,
)


@dataclass
class RoundDraft:
    """Input to RoundLifecycle.create()."""
    name: str
    scoring_system: ScoringSystem | None = None
    course_id: CourseId | None = None
    club_id: ClubId | None = None
    event_id: EventId | None = None
    date: datetime | None = None
    participant_ids: list[UserId] = field(default_factory=list)
    non_member_names: list[str] = field(default_factory=list)
    notes: str | None = None
    weather: dict | None = None
