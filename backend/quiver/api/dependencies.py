"""Request Dependencies: caller identity, capabilities and service wiring.

Invariants:
    - The caller is identified by the X-User-Id header and must exist in users
    - Role names are translated to Capabilities here and nowhere else
    - All repositories in one request share the request's AsyncSession
"""

from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from quiver.config import get_settings
from quiver.core.capabilities import Capabilities
from quiver.core.domain_types import UserId
from quiver.core.errors import AuthenticationRequiredError
from quiver.infrastructure.course_repository import SqlCourseRepository
from quiver.infrastructure.database import get_db
from quiver.infrastructure.round_repository import SqlRoundRepository
from quiver.infrastructure.user_repository import SqlUserRepository
from quiver.services.round_lifecycle import RoundLifecycle


async def get_capabilities(
    x_user_id: str | None = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Capabilities:
    """Resolve the caller. Missing, malformed or unknown ids are rejected with 401."""
    if not x_user_id:
        raise AuthenticationRequiredError()
    try:
        user_id = UserId(UUID(x_user_id))
    except ValueError:
        raise AuthenticationRequiredError()

    user = await SqlUserRepository(db).get(user_id)
    if user is None:
        raise AuthenticationRequiredError()

    privileged = user.role in get_settings().privileged_roles
    return Capabilities(
        user_id=user.id,
        is_privileged=privileged,
        can_bypass_verification=privileged,
    )


def get_round_lifecycle(db: AsyncSession = Depends(get_db)) -> RoundLifecycle:
    return RoundLifecycle(
        rounds=SqlRoundRepository(db),
        courses=SqlCourseRepository(db),
        users=SqlUserRepository(db),
        aba_strategy=get_settings().aba_scoring_strategy,
    )
