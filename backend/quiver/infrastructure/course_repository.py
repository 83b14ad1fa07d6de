"""SQL Course Repository: CourseRepository over async SQLAlchemy (read-only)."""

from sqlalchemy.ext.asyncio import AsyncSession

from quiver.core.domain_types import ClubId, CourseId, ScoringSystem
from quiver.core.repository_protocols import CourseDescriptor
from quiver.models.course import Course


class SqlCourseRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, course_id: CourseId) -> CourseDescriptor | None:
        row = await self.db.get(Course, course_id)
        if row is None:
            return None
        return CourseDescriptor(
            id=CourseId(row.id),
            target_count=row.targets,
            arrows_per_target=row.arrows_per_target,
            scoring_system=ScoringSystem(row.scoring_system),
            club_id=ClubId(row.club_id) if row.club_id else None,
        )
