"""
Base model classes and mixins for SQLAlchemy ORM.
Provides common functionality for all database models.
"""
import uuid
from datetime import datetime

from sqlalchemy import func, String
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(AsyncAttrs, DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Includes AsyncAttrs mixin for async relationship access.
    All models should inherit from this class.
    """
    pass


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        nullable=False,
        doc="Timestamp when the record was created"
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        onupdate=func.now(),
        nullable=True,
        doc="Timestamp when the record was last updated"
    )


def generate_id() -> str:
    """Generate a new UUID v4 string."""
    return str(uuid.uuid4())


class UUIDMixin:
    """
    Mixin for string ID primary key.

    IDs are plain strings so externally assigned identities (slugs, CUIDs)
    can be stored next to generated UUIDs.
    """

    id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        default=generate_id,
        doc="String ID primary key"
    )
