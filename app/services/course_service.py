"""
Course service for payload CRUD.
Handles reading and editing course fields that the ordering engine does not own.
"""
from typing import Any, Dict, List
import logging

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.course import Course
from app.repositories.course_repo import CourseRepository

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "instructor", "order_index")


class CourseService:
    """Service for course payload operations."""

    def __init__(self, db: AsyncSession):
        """Initialize course service."""
        self.db = db
        self.course_repo = CourseRepository(db)

    async def get_course(self, course_id: str) -> Course:
        """
        Get a single course.

        Raises:
            HTTPException: 404 if not found
        """
        course = await self.course_repo.get(course_id)
        if course is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Course {course_id} not found"
            )
        return course

    async def list_courses_by_legacy_index(self) -> List[Course]:
        """Get all courses sorted by the legacy order_index."""
        return await self.course_repo.list_by_order_index()

    async def update_course(self, course_id: str, updates: Dict[str, Any]) -> Course:
        """
        Update course payload fields.

        Args:
            course_id: Course to update
            updates: Any of title, instructor, order_index

        Returns:
            Updated course

        Raises:
            HTTPException: 400 for fields outside the payload, 404 if not found
        """
        rejected = sorted(set(updates) - set(EDITABLE_FIELDS))
        if rejected:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Fields cannot be updated here: {', '.join(rejected)}"
            )

        if not updates:
            return await self.get_course(course_id)

        course = await self.course_repo.update(course_id, **updates)
        if course is None:
            logger.error("Course with ID '%s' not found for update", course_id)
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Course {course_id} not found"
            )
        return course

    async def set_legacy_order(self, course_ids: List[str]) -> int:
        """
        Write ``order_index`` 1..N following the given id order.

        All ids are checked before anything is written.

        Args:
            course_ids: Course IDs in the desired legacy order

        Returns:
            Number of courses updated

        Raises:
            HTTPException: 400 on duplicate ids, 404 if any id is unknown
        """
        if len(course_ids) != len(set(course_ids)):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Duplicate course IDs are not allowed"
            )

        found = {course.id for course in await self.course_repo.get_many(course_ids)}
        missing = [course_id for course_id in course_ids if course_id not in found]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Courses not found: {', '.join(missing)}"
            )

        for position, course_id in enumerate(course_ids, start=1):
            await self.course_repo.set_order_index(course_id, position)

        logger.info("Legacy order_index rewritten for %d courses", len(course_ids))
        return len(course_ids)
