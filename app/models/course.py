"""
Course and CourseOrderMetadata models.

Courses are ordered by a singly-linked chain: every course stores the id of
the course displayed after it, and a single metadata row stores the head.
"""
from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, UUIDMixin, TimestampMixin


class Course(Base, UUIDMixin, TimestampMixin):
    """
    Course row.

    ``next_course_id`` is owned by the ordering engine; callers only write
    the payload fields (title, instructor) and the legacy ``order_index``.
    """

    __tablename__ = "courses"

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Course title"
    )

    instructor: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
        doc="Instructor display name"
    )

    # Deprecated numeric ordering, only used to bootstrap or repair the chain
    order_index: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        doc="Legacy numeric order"
    )

    # No FK: a dangling pointer must be representable so traversal can report it
    next_course_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        doc="ID of the course displayed immediately after this one (null if last)"
    )

    __table_args__ = (
        Index("idx_courses_next_course_id", "next_course_id"),
        Index("idx_courses_order_index", "order_index"),
    )

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, title={self.title!r}, next={self.next_course_id})>"


class CourseOrderMetadata(Base, TimestampMixin):
    """Singleton row holding the head of the course chain."""

    __tablename__ = "course_order_metadata"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        doc="Collection key (one row per ordered collection)"
    )

    first_course_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        doc="ID of the first course in display order (null if empty)"
    )

    def __repr__(self) -> str:
        return f"<CourseOrderMetadata(id={self.id}, first_course_id={self.first_course_id})>"
