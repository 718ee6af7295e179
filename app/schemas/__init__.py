"""
Pydantic schema exports.
Provides request/response models for API endpoints.
"""
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

__all__ = [
    "CourseCreate",
    "CourseUpdate",
    "CourseMoveRequest",
    "LegacyOrderRequest",
    "CourseResponse",
    "ChainStatusResponse",
    "OrderedCourseListResponse",
    "CourseMoveResponse",
    "CourseDeleteResponse",
    "ChainRebuildResponse",
    "ChainDiagnosisResponse",
    "LegacyOrderResponse",
]
