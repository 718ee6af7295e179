"""
Course repository for database operations.
Handles course rows, chain pointers, and the order metadata singleton.
"""
from typing import Optional, List, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.course import Course, CourseOrderMetadata
from app.repositories.base import BaseRepository


class CourseRepository(BaseRepository[Course]):
    """Repository for course database operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(Course, db)

    async def list_all(self) -> List[Course]:
        """Fetch every course, in no particular order."""
        return await self.get_all()

    async def list_by_order_index(self) -> List[Course]:
        """
        Fetch every course sorted by the legacy ``order_index``.

        Courses without a legacy index sort last; ties are broken by id so
        the result is deterministic.

        Returns:
            Courses in legacy order
        """
        return await self.get_all(
            order_by=(
                Course.order_index.is_(None),
                Course.order_index.asc(),
                Course.id.asc(),
            )
        )

    async def find_predecessor(self, course_id: str) -> Optional[Course]:
        """
        Find the course whose ``next_course_id`` points at ``course_id``.

        No reverse pointer is stored, so this is a lookup over the table.
        A course pointing at itself is not its own predecessor. If a
        corrupted chain has several predecessors, the one with the
        lowest id is returned.

        Args:
            course_id: Course ID whose predecessor is wanted

        Returns:
            Predecessor course or None if the course is head or orphaned
        """
        result = await self.db.execute(
            select(Course)
            .where(Course.next_course_id == course_id, Course.id != course_id)
            .order_by(Course.id.asc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def set_next(self, course_id: str, next_course_id: Optional[str]) -> Optional[Course]:
        """
        Rewrite a single chain pointer.

        Args:
            course_id: Course to update
            next_course_id: New successor ID (None marks the tail)

        Returns:
            Updated course or None if not found
        """
        return await self.update(course_id, next_course_id=next_course_id)

    async def set_order_index(self, course_id: str, order_index: Optional[int]) -> Optional[Course]:
        """Rewrite a course's legacy order index."""
        return await self.update(course_id, order_index=order_index)


class CourseOrderMetadataRepository(BaseRepository[CourseOrderMetadata]):
    """Repository for the chain head singleton."""

    def __init__(self, db: AsyncSession, key: str):
        """
        Initialize repository.

        Args:
            db: Database session
            key: Primary key of the singleton row for this collection
        """
        super().__init__(CourseOrderMetadata, db)
        self.key = key

    async def get_head(self) -> Tuple[bool, Optional[str]]:
        """
        Read the chain head.

        Returns:
            Tuple of (metadata_exists, first_course_id)
        """
        metadata = await self.get(self.key)
        if metadata is None:
            return False, None
        return True, metadata.first_course_id

    async def set_head(self, first_course_id: Optional[str]) -> CourseOrderMetadata:
        """
        Write the chain head, creating the singleton row on first use.

        Args:
            first_course_id: New head ID (None for an empty chain)

        Returns:
            Metadata row
        """
        if await self.exists(self.key):
            return await self.update(self.key, first_course_id=first_course_id)
        return await self.create(id=self.key, first_course_id=first_course_id)
