"""
Linked-list course ordering service.

Courses are ordered by per-row ``next_course_id`` pointers plus a single
metadata row holding the head. Inserting or moving a course rewrites a
constant number of pointers instead of renumbering every row.

Every operation re-reads the rows it needs; nothing is cached between calls.
Writes are issued one row at a time, so a failure part way through can
leave the chain inconsistent. ``get_ordered_courses`` reports such damage,
and ``repair_chain`` rebuilds from whatever fragments remain.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional
import logging

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.course import Course
from app.repositories.course_repo import CourseRepository, CourseOrderMetadataRepository
from app.utils.chain import (
    ChainDiagnosis,
    ChainTraversal,
    collect_fragments,
    diagnose,
    plan_move,
    resolve_order,
)

logger = logging.getLogger(__name__)

PAYLOAD_FIELDS = ("id", "title", "instructor", "order_index")


@dataclass
class RebuildSummary:
    """Outcome of rebuilding the chain from the legacy index."""

    linked: int
    pointers_written: int
    first_course_id: Optional[str]
    renumbered: int = 0


class LinkedListCourseService:
    """Service maintaining the persisted course chain."""

    def __init__(
        self,
        db: AsyncSession,
        metadata_key: Optional[str] = None,
        traversal_slack: Optional[int] = None
    ):
        """
        Initialize linked-list course service.

        Args:
            db: Database session
            metadata_key: Order metadata row to use (defaults to settings)
            traversal_slack: Runaway guard for traversal (defaults to settings)
        """
        self.db = db
        self.course_repo = CourseRepository(db)
        self.metadata_repo = CourseOrderMetadataRepository(
            db, metadata_key or settings.order_metadata_key
        )
        self.traversal_slack = (
            settings.chain_traversal_slack if traversal_slack is None else traversal_slack
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_ordered_courses(self) -> ChainTraversal:
        """
        Get all courses in display order with 1-based positions.

        Falls back to the legacy ``order_index`` when the chain has never
        been initialized. A broken chain yields the reachable prefix with
        the corruption flags set on the result.

        Returns:
            ChainTraversal with entries and chain status
        """
        courses = await self.course_repo.list_all()
        metadata_exists, head_id = await self.metadata_repo.get_head()
        return resolve_order(courses, metadata_exists, head_id, slack=self.traversal_slack)

    async def diagnose_chain(self) -> ChainDiagnosis:
        """Report unreachable courses, cycles, dangling and shared pointers."""
        courses = await self.course_repo.list_all()
        metadata_exists, head_id = await self.metadata_repo.get_head()
        report = diagnose(courses, metadata_exists, head_id, slack=self.traversal_slack)
        if not report.healthy:
            logger.warning(
                "Course chain unhealthy: reachable=%d/%d cycle=%s dangling=%s shared=%s",
                report.reachable,
                report.total,
                report.cycle_detected,
                report.dangling_id,
                report.shared_successor_ids,
            )
        return report

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def insert_course_below(
        self,
        anchor_id: Optional[str],
        payload: Dict[str, Any]
    ) -> Course:
        """
        Insert a new course directly after ``anchor_id``.

        The new row inherits the anchor's old successor, then the anchor is
        pointed at the new row. When that second write fails the new row is
        deleted again (best effort) and the original error is re-raised.
        ``anchor_id=None`` inserts at the head of the chain.

        Args:
            anchor_id: Course to insert below, or None for the first position
            payload: Course fields (title, instructor, optional order_index/id)

        Returns:
            Created course

        Raises:
            HTTPException: 400 on invalid payload, 404 if the anchor does not
                exist, 409 if the chain was never initialized
        """
        fields = self._course_fields(payload)
        if "id" in fields and await self.course_repo.exists(fields["id"]):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Course {fields['id']} already exists"
            )

        metadata_exists, head_id = await self.metadata_repo.get_head()
        await self._require_chain(metadata_exists)

        if anchor_id is None:
            created = await self.course_repo.create(**fields, next_course_id=head_id)
            try:
                await self.metadata_repo.set_head(created.id)
            except Exception:
                await self._discard_course(created.id)
                raise
            logger.info("Inserted course %s at head", created.id)
            return created

        anchor = await self.course_repo.get(anchor_id)
        if anchor is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Course {anchor_id} not found"
            )

        created = await self.course_repo.create(**fields, next_course_id=anchor.next_course_id)
        try:
            await self.course_repo.set_next(anchor_id, created.id)
        except Exception:
            await self._discard_course(created.id)
            raise

        logger.info("Inserted course %s below %s", created.id, anchor_id)
        return created

    async def move_course_below(self, course_id: str, target_id: Optional[str]) -> bool:
        """
        Move a course so it is displayed right after ``target_id``.

        ``target_id=None`` moves the course to the first position. Moving a
        course after itself or into the position it already holds is a
        successful no-op.

        Args:
            course_id: Course to move
            target_id: Anchor course, or None for the first position

        Returns:
            True if pointers were rewritten, False for a no-op

        Raises:
            HTTPException: 404 if either course is missing, 409 if the chain
                was never initialized
        """
        if course_id == target_id:
            logger.debug("Move of %s below itself ignored", course_id)
            return False

        moving = await self.course_repo.get(course_id)
        if moving is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Course {course_id} not found"
            )

        target = None
        if target_id is not None:
            target = await self.course_repo.get(target_id)
            if target is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"Target course {target_id} not found"
                )

        metadata_exists, head_id = await self.metadata_repo.get_head()
        await self._require_chain(metadata_exists)

        predecessor = await self.course_repo.find_predecessor(course_id)

        plan = plan_move(
            course_id=course_id,
            course_next=moving.next_course_id,
            target_id=target_id,
            target_next=target.next_course_id if target is not None else None,
            predecessor_id=predecessor.id if predecessor is not None else None,
            head_id=head_id,
        )
        if plan.is_noop:
            logger.debug("Move of %s below %s leaves order unchanged", course_id, target_id)
            return False

        logger.debug(
            "Moving %s below %s: updates=%s head %s -> %s",
            course_id,
            target_id or "FIRST_POSITION",
            plan.updates,
            plan.old_head,
            plan.new_head,
        )

        for update_id, next_id in plan.updates:
            updated = await self.course_repo.set_next(update_id, next_id)
            if updated is None:
                logger.error(
                    "Course %s vanished while moving %s; chain needs repair",
                    update_id,
                    course_id,
                )
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"Course {update_id} not found"
                )

        if plan.head_changed:
            await self.metadata_repo.set_head(plan.new_head)

        logger.info("Moved course %s below %s", course_id, target_id or "FIRST_POSITION")
        return True

    async def move_to_first_position(self, course_id: str) -> bool:
        """Move a course to the head of the chain."""
        return await self.move_course_below(course_id, None)

    async def delete_course(self, course_id: str) -> bool:
        """
        Delete a course and stitch its neighbours together.

        Deleting a course that does not exist is a no-op.

        Args:
            course_id: Course to delete

        Returns:
            True if a course was deleted, False if it did not exist
        """
        course = await self.course_repo.get(course_id)
        if course is None:
            return False

        successor_id = course.next_course_id if course.next_course_id != course_id else None
        metadata_exists, head_id = await self.metadata_repo.get_head()
        predecessor = await self.course_repo.find_predecessor(course_id)

        if predecessor is not None and predecessor.id != course_id:
            await self.course_repo.set_next(predecessor.id, successor_id)
        if metadata_exists and head_id == course_id:
            await self.metadata_repo.set_head(successor_id)

        await self.course_repo.delete(course_id)
        logger.info("Deleted course %s", course_id)
        return True

    # ------------------------------------------------------------------
    # Migration and repair
    # ------------------------------------------------------------------

    async def initialize_from_order_index(self) -> RebuildSummary:
        """
        Rebuild the chain from the legacy ``order_index`` field.

        Links courses in ascending legacy order and points the head at the
        first one. Only pointers that differ are written, so running this
        twice in a row produces the same chain and no writes the second time.

        Returns:
            RebuildSummary
        """
        courses = await self.course_repo.list_by_order_index()
        written = 0

        for position, course in enumerate(courses):
            next_id = courses[position + 1].id if position + 1 < len(courses) else None
            if course.next_course_id != next_id:
                await self.course_repo.set_next(course.id, next_id)
                written += 1

        first_course_id = courses[0].id if courses else None
        metadata_exists, head_id = await self.metadata_repo.get_head()
        if not metadata_exists or head_id != first_course_id:
            await self.metadata_repo.set_head(first_course_id)

        logger.info(
            "Linked list initialized with %d courses (%d pointers written)",
            len(courses),
            written,
        )
        return RebuildSummary(
            linked=len(courses),
            pointers_written=written,
            first_course_id=first_course_id,
        )

    async def repair_chain(self) -> RebuildSummary:
        """
        Rebuild the chain from its surviving fragments.

        Derives a fresh legacy index from the current pointers (reachable
        part first, then detached fragments, then cycle remnants), writes
        it to ``order_index`` and rebuilds from it. Use after a failed
        multi-step mutation.

        Returns:
            RebuildSummary including how many legacy indexes were rewritten
        """
        courses = await self.course_repo.list_all()
        metadata_exists, head_id = await self.metadata_repo.get_head()
        ordered = collect_fragments(courses, head_id if metadata_exists else None)

        renumbered = 0
        for position, course in enumerate(ordered, start=1):
            if course.order_index != position:
                await self.course_repo.set_order_index(course.id, position)
                renumbered += 1

        summary = await self.initialize_from_order_index()
        summary.renumbered = renumbered
        logger.info("Course chain repaired: %d legacy indexes rewritten", renumbered)
        return summary

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _course_fields(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Keep payload fields, rejecting attempts to set the chain pointer."""
        if "next_course_id" in payload:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="next_course_id is managed by the ordering engine"
            )
        if not payload.get("title"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Course title is required"
            )
        return {
            key: value
            for key, value in payload.items()
            if key in PAYLOAD_FIELDS and not (key == "id" and value is None)
        }

    async def _require_chain(self, metadata_exists: bool) -> None:
        """Refuse chain mutations on a collection that was never linked."""
        if metadata_exists:
            return
        if await self.course_repo.count() > 0:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Course order not initialized; rebuild from order_index first"
            )

    async def _discard_course(self, course_id: str) -> None:
        """Compensating delete for a half-finished insert. Failures are only logged."""
        try:
            await self.course_repo.delete(course_id)
            logger.warning("Rolled back course %s after failed link update", course_id)
        except Exception:
            logger.error("Failed to roll back course %s; orphan left behind", course_id, exc_info=True)
