"""
Pydantic schemas for course requests and responses.
Handles validation for course and course-order API endpoints.
"""
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field, field_validator, ConfigDict


# ============================================================================
# Request Schemas
# ============================================================================

class CourseCreate(BaseModel):
    """Schema for inserting a new course into the order."""

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "anchor_id": "3f2c1a9e-5b7d-4e0a-9c1f-2d6b8e4a7c10",
                "title": "Linear Algebra",
                "instructor": "E. Noether"
            }
        }
    )

    anchor_id: Optional[str] = Field(
        None,
        description="Course to insert below (null inserts at the first position)"
    )
    id: Optional[str] = Field(None, min_length=1, max_length=255, description="Optional explicit course ID")
    title: str = Field(..., min_length=1, max_length=255, description="Course title")
    instructor: str = Field(default="", max_length=255, description="Instructor name")
    order_index: Optional[int] = Field(None, description="Legacy numeric order")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Ensure title is not whitespace only."""
        if len(v.strip()) == 0:
            raise ValueError("Title cannot be empty or whitespace only")
        return v.strip()


class CourseUpdate(BaseModel):
    """Schema for updating course payload fields."""

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=1, max_length=255, description="Updated title")
    instructor: Optional[str] = Field(None, max_length=255, description="Updated instructor")
    order_index: Optional[int] = Field(None, description="Updated legacy numeric order")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        """Ensure title is not empty if provided."""
        if v is not None and len(v.strip()) == 0:
            raise ValueError("Title cannot be empty or whitespace only")
        return v.strip() if v else v


class CourseMoveRequest(BaseModel):
    """Schema for moving a course below another one."""

    target_id: Optional[str] = Field(
        None,
        description="Course to move below (null moves to the first position)"
    )


class LegacyOrderRequest(BaseModel):
    """Schema for rewriting the legacy order_index."""

    course_ids: List[str] = Field(..., min_length=1, description="Course IDs in the desired order")

    @field_validator("course_ids")
    @classmethod
    def validate_course_ids(cls, v: List[str]) -> List[str]:
        """Check for duplicate IDs."""
        if len(v) != len(set(v)):
            raise ValueError("Duplicate course IDs are not allowed")
        return v


# ============================================================================
# Response Schemas
# ============================================================================

class CourseResponse(BaseModel):
    """Schema for a course in API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    instructor: str
    order_index: Optional[int] = None
    next_course_id: Optional[str] = None
    display_order: Optional[int] = Field(None, description="1-based display position")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ChainStatusResponse(BaseModel):
    """How the returned order was produced and whether it is complete."""

    total: int
    returned: int
    complete: bool
    fallback: bool = Field(description="Order came from the legacy order_index")
    cycle_detected: bool
    runaway: bool
    dangling_id: Optional[str] = None
    missing_count: int


class OrderedCourseListResponse(BaseModel):
    """Schema for the ordered course list."""

    data: List[CourseResponse]
    chain: ChainStatusResponse


class CourseMoveResponse(BaseModel):
    """Schema for move responses."""

    success: bool = True
    moved: bool
    course_id: str
    target_id: Optional[str] = None


class CourseDeleteResponse(BaseModel):
    """Schema for delete responses."""

    success: bool = True
    deleted: bool
    course_id: str


class ChainRebuildResponse(BaseModel):
    """Schema for rebuild and repair responses."""

    success: bool = True
    linked: int
    pointers_written: int
    renumbered: int = 0
    first_course_id: Optional[str] = None


class ChainDiagnosisResponse(BaseModel):
    """Schema for chain diagnosis."""

    healthy: bool
    total: int
    reachable: int
    metadata_exists: bool
    head_id: Optional[str] = None
    head_valid: bool
    cycle_detected: bool
    dangling_id: Optional[str] = None
    unreachable_ids: List[str]
    shared_successor_ids: List[str]
    tail_count: int


class LegacyOrderResponse(BaseModel):
    """Schema for legacy order rewrite responses."""

    success: bool = True
    updated: int
