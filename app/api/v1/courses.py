"""
Course API routes.
Provides endpoints for reading, inserting, moving, and deleting ordered courses.
"""
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.course import Course
from app.schemas.course import (
    CourseCreate,
    CourseUpdate,
    CourseMoveRequest,
    LegacyOrderRequest,
    CourseResponse,
    ChainStatusResponse,
    OrderedCourseListResponse,
    CourseMoveResponse,
    CourseDeleteResponse,
    ChainRebuildResponse,
    ChainDiagnosisResponse,
    LegacyOrderResponse
)
from app.services.course_service import CourseService
from app.services.linked_list_course_service import LinkedListCourseService, RebuildSummary

router = APIRouter()


def _course_response(course: Course, display_order: Optional[int] = None) -> CourseResponse:
    response = CourseResponse.model_validate(course)
    response.display_order = display_order
    return response


def _rebuild_response(summary: RebuildSummary) -> ChainRebuildResponse:
    return ChainRebuildResponse(
        linked=summary.linked,
        pointers_written=summary.pointers_written,
        renumbered=summary.renumbered,
        first_course_id=summary.first_course_id,
    )


# ============================================================================
# Order maintenance
# ============================================================================

@router.get(
    "/order/diagnose",
    response_model=ChainDiagnosisResponse,
    summary="Diagnose the course chain",
    description="Report unreachable courses, cycles, dangling and shared pointers without changing anything."
)
async def diagnose_chain(db: AsyncSession = Depends(get_db)):
    """Inspect the stored chain."""
    report = await LinkedListCourseService(db).diagnose_chain()
    return ChainDiagnosisResponse(
        healthy=report.healthy,
        total=report.total,
        reachable=report.reachable,
        metadata_exists=report.metadata_exists,
        head_id=report.head_id,
        head_valid=report.head_valid,
        cycle_detected=report.cycle_detected,
        dangling_id=report.dangling_id,
        unreachable_ids=report.unreachable_ids,
        shared_successor_ids=report.shared_successor_ids,
        tail_count=report.tail_count,
    )


@router.post(
    "/order/rebuild",
    response_model=ChainRebuildResponse,
    summary="Rebuild chain from order_index",
    description="Link all courses in ascending legacy order_index and reset the head."
)
async def rebuild_chain(db: AsyncSession = Depends(get_db)):
    """Rebuild the chain from the legacy index."""
    summary = await LinkedListCourseService(db).initialize_from_order_index()
    return _rebuild_response(summary)


@router.post(
    "/order/repair",
    response_model=ChainRebuildResponse,
    summary="Repair the course chain",
    description="Re-derive order_index from the surviving chain fragments, then rebuild the chain."
)
async def repair_chain(db: AsyncSession = Depends(get_db)):
    """Repair a damaged chain."""
    summary = await LinkedListCourseService(db).repair_chain()
    return _rebuild_response(summary)


@router.put(
    "/order/legacy",
    response_model=LegacyOrderResponse,
    summary="Rewrite legacy order_index",
    description="Assign order_index 1..N following the given course ID order."
)
async def set_legacy_order(
    order_data: LegacyOrderRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Rewrite the legacy order.

    - **course_ids**: Course IDs in the desired order
    """
    updated = await CourseService(db).set_legacy_order(order_data.course_ids)
    return LegacyOrderResponse(updated=updated)


# ============================================================================
# Courses
# ============================================================================

@router.get(
    "/",
    response_model=OrderedCourseListResponse,
    summary="Get ordered courses",
    description="Get all courses in display order with 1-based positions and chain status."
)
async def get_ordered_courses(db: AsyncSession = Depends(get_db)):
    """Get the ordered course list."""
    traversal = await LinkedListCourseService(db).get_ordered_courses()
    return OrderedCourseListResponse(
        data=[_course_response(entry.course, entry.display_order) for entry in traversal.entries],
        chain=ChainStatusResponse(
            total=traversal.total,
            returned=len(traversal.entries),
            complete=traversal.is_complete,
            fallback=traversal.fallback,
            cycle_detected=traversal.cycle_detected,
            runaway=traversal.runaway,
            dangling_id=traversal.dangling_id,
            missing_count=traversal.missing_count,
        ),
    )


@router.post(
    "/",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Insert a course",
    description="Create a course directly below an anchor course, or at the first position."
)
async def insert_course(
    course_data: CourseCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Insert a new course.

    - **anchor_id**: Course to insert below (omit or null for the first position)
    - **title**: Course title
    - **instructor**: Instructor name
    """
    payload = course_data.model_dump(exclude={"anchor_id"}, exclude_none=True)
    course = await LinkedListCourseService(db).insert_course_below(course_data.anchor_id, payload)
    return _course_response(course)


@router.get(
    "/{course_id}",
    response_model=CourseResponse,
    summary="Get course by ID"
)
async def get_course(course_id: str, db: AsyncSession = Depends(get_db)):
    """Get a single course."""
    course = await CourseService(db).get_course(course_id)
    return _course_response(course)


@router.patch(
    "/{course_id}",
    response_model=CourseResponse,
    summary="Update course fields",
    description="Update title, instructor or legacy order_index. The chain pointer cannot be set here."
)
async def update_course(
    course_id: str,
    course_data: CourseUpdate,
    db: AsyncSession = Depends(get_db)
):
    """Update course payload fields."""
    updates = {
        key: value
        for key, value in course_data.model_dump(exclude_unset=True).items()
        if value is not None or key == "order_index"
    }
    course = await CourseService(db).update_course(course_id, updates)
    return _course_response(course)


@router.post(
    "/{course_id}/move",
    response_model=CourseMoveResponse,
    summary="Move a course",
    description="Move a course below a target course, or to the first position when target_id is null."
)
async def move_course(
    course_id: str,
    move_data: CourseMoveRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Move a course.

    - **target_id**: Course to move below (null for the first position)
    """
    moved = await LinkedListCourseService(db).move_course_below(course_id, move_data.target_id)
    return CourseMoveResponse(moved=moved, course_id=course_id, target_id=move_data.target_id)


@router.delete(
    "/{course_id}",
    response_model=CourseDeleteResponse,
    summary="Delete a course",
    description="Delete a course and close the gap in the order. Unknown IDs are a no-op."
)
async def delete_course(course_id: str, db: AsyncSession = Depends(get_db)):
    """Delete a course."""
    deleted = await LinkedListCourseService(db).delete_course(course_id)
    return CourseDeleteResponse(deleted=deleted, course_id=course_id)
