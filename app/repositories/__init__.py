"""
Repository layer exports.
Provides database access layer for the application.
"""
from app.repositories.base import BaseRepository
from app.repositories.course_repo import (
    CourseRepository,
    CourseOrderMetadataRepository
)

__all__ = [
    "BaseRepository",
    "CourseRepository",
    "CourseOrderMetadataRepository",
]
