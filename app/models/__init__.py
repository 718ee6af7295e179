"""
SQLAlchemy models for the course ordering service.

All models must be imported here for Alembic auto-generation to work.
"""

# Import Base first
from app.models.base import Base, TimestampMixin, UUIDMixin

from app.models.course import Course, CourseOrderMetadata

# Export all models
__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # Courses
    "Course",
    "CourseOrderMetadata",
]
