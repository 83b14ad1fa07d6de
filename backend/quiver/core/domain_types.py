"""Domain Types: rich types that replace bare primitives across the codebase.

Invariants:
    - RoundId, UserId, CourseId, ClubId, EventId, NonMemberId wrap UUIDs
    - All valid states encoded as str Enums (serialize to JSON unchanged)
    - Enum values match the wire format used by existing clients
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

RoundId = NewType("RoundId", UUID)
UserId = NewType("UserId", UUID)
CourseId = NewType("CourseId", UUID)
ClubId = NewType("ClubId", UUID)
EventId = NewType("EventId", UUID)
NonMemberId = NewType("NonMemberId", UUID)


# ─── Constants ───────────────────────────────────────────────────

DEFAULT_ARROWS_PER_TARGET: int = 3
MAX_ARROWS_PER_TARGET: int = 3
RECENT_SCORES_LIMIT: int = 5


# ─── Enums ───────────────────────────────────────────────────────

class ScoringSystem(str, Enum):
    """Scoring systems. Decides arrow points and maximum score formulas."""
    ABA = "ABA"
    IFAA = "IFAA"


class RoundStatus(str, Enum):
    """Round lifecycle states. completed and cancelled are terminal."""
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ZoneHit(str, Enum):
    """ABA target zones."""
    A = "A"
    B = "B"
    C = "C"
    MISS = "miss"


class ABAScoringStrategy(str, Enum):
    """ABA point tables.

    flat: points by zone only.
    position_weighted: points by zone and arrow position, first hit ends the target.
    """
    FLAT = "flat"
    POSITION_WEIGHTED = "position_weighted"


class ParticipantKind(str, Enum):
    """Discriminates registered participants from non-member guests."""
    MEMBER = "member"
    NON_MEMBER = "nonmember"
