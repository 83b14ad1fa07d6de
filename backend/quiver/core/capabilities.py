"""Capabilities: explicit claims about the caller, passed into every lifecycle operation.

Invariants:
    - Built once per request at the API edge; core never sees role names
    - A scorer or privileged caller may manage a round; anyone else may only read it
      when they participate in it
"""

from dataclasses import dataclass

from quiver.core.domain_types import UserId


@dataclass(frozen=True)
class Capabilities:
    """What the current caller is allowed to do."""
    user_id: UserId
    is_privileged: bool = False
    can_bypass_verification: bool = False

    def can_manage(self, scorer_id: UserId) -> bool:
        """Scorer of the round, or a privileged caller."""
        return self.is_privileged or self.user_id == scorer_id

    def can_view(self, scorer_id: UserId, participant_ids: set[UserId]) -> bool:
        return self.can_manage(scorer_id) or self.user_id in participant_ids
