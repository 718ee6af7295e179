"""
Service layer exports.
Provides business logic for the application.
"""
from app.services.course_service import CourseService
from app.services.linked_list_course_service import LinkedListCourseService

__all__ = [
    "CourseService",
    "LinkedListCourseService",
]
