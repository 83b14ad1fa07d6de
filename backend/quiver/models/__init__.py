"""ORM Models: SQLAlchemy declarative models for rounds and their collaborators.

Invariants:
    - All models inherit from Base (db/base.py)
    - Round is the aggregate root; participants and non-members scoped by round_id

Design Decisions:
    - One file per entity
    - All models imported here so string-based relationship() references resolve
      before any query runs
"""

from quiver.models.user import User  # noqa: F401
from quiver.models.course import Course  # noqa: F401
from quiver.models.round import Round  # noqa: F401
from quiver.models.round_participant import RoundParticipant  # noqa: F401
from quiver.models.round_non_member import RoundNonMember  # noqa: F401
