"""SQL User Repository: UserRepository over async SQLAlchemy (read-only).

Invariants:
    - Email lookups are case-insensitive (emails stored lower-cased by the account service)
"""

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from quiver.core.domain_types import UserId
from quiver.core.repository_protocols import UserDescriptor
from quiver.models.user import User


def _to_descriptor(row: User) -> UserDescriptor:
    return UserDescriptor(
        id=UserId(row.id),
        verified=row.is_verified,
        role=row.role,
        email=row.email,
        name=row.name,
    )


class SqlUserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: UserId) -> UserDescriptor | None:
        row = await self.db.get(User, user_id)
        return _to_descriptor(row) if row else None

    async def find_by_email(self, email: str) -> UserDescriptor | None:
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.strip().lower()),
        )
        row = result.scalar_one_or_none()
        return _to_descriptor(row) if row else None
