"""
Base repository with common CRUD operations.
All repositories should extend this class for database access.
"""
from typing import Generic, TypeVar, Type, Optional, List, Any

from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with common CRUD operations.

    Every write is a single-row statement followed by a flush; callers that
    need several rows changed issue several calls.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    async def create(self, **kwargs) -> ModelType:
        """
        Create a new record.

        Args:
            **kwargs: Model field values

        Returns:
            Created model instance

        Example:
            ```python
            course = await course_repo.create(title="Algebra", instructor="Noether")
            ```
        """
        instance = self.model(**kwargs)
        self.db.add(instance)
        await self.db.flush()
        await self.db.refresh(instance)
        return instance

    async def get(self, id: str) -> Optional[ModelType]:
        """
        Get a record by ID, reloading its columns from the database.

        Args:
            id: Record ID

        Returns:
            Model instance or None if not found
        """
        result = await self.db.execute(
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_many(
        self,
        ids: List[str],
        order_by: Optional[Any] = None
    ) -> List[ModelType]:
        """
        Get multiple records by IDs.

        Args:
            ids: List of record IDs
            order_by: Optional SQLAlchemy order_by clause

        Returns:
            List of model instances
        """
        query = select(self.model).where(self.model.id.in_(ids))

        if order_by is not None:
            query = query.order_by(order_by)

        result = await self.db.execute(query.execution_options(populate_existing=True))
        return list(result.scalars().all())

    async def get_all(self, order_by: Optional[Any] = None) -> List[ModelType]:
        """
        Get every record of the table.

        Args:
            order_by: Optional SQLAlchemy order_by clause, or a tuple of clauses

        Returns:
            List of model instances (unordered unless ``order_by`` is given)
        """
        query = select(self.model)

        if isinstance(order_by, tuple):
            query = query.order_by(*order_by)
        elif order_by is not None:
            query = query.order_by(order_by)

        result = await self.db.execute(query.execution_options(populate_existing=True))
        return list(result.scalars().all())

    async def update(self, id: str, **kwargs) -> Optional[ModelType]:
        """
        Update a record by ID.

        Args:
            id: Record ID
            **kwargs: Fields to update

        Returns:
            Updated model instance or None if not found

        Example:
            ```python
            updated = await course_repo.update(course_id, title="Linear Algebra")
            ```
        """
        await self.db.execute(
            update(self.model)
            .where(self.model.id == id)
            .values(**kwargs)
        )
        await self.db.flush()
        return await self.get(id)

    async def delete(self, id: str) -> bool:
        """
        Delete a record by ID (hard delete).

        Args:
            id: Record ID

        Returns:
            True if deleted, False if not found
        """
        result = await self.db.execute(
            delete(self.model).where(self.model.id == id)
        )
        await self.db.flush()
        return result.rowcount > 0

    async def exists(self, id: str) -> bool:
        """
        Check if a record exists.

        Args:
            id: Record ID

        Returns:
            True if exists, False otherwise
        """
        result = await self.db.execute(
            select(func.count()).select_from(self.model).where(self.model.id == id)
        )
        count = result.scalar()
        return count > 0

    async def count(self, **filters) -> int:
        """
        Count records matching filters.

        Args:
            **filters: Filter conditions

        Returns:
            Number of matching records

        Example:
            ```python
            count = await course_repo.count(next_course_id=None)
            ```
        """
        query = select(func.count()).select_from(self.model)

        for key, value in filters.items():
            if hasattr(self.model, key):
                query = query.where(getattr(self.model, key) == value)

        result = await self.db.execute(query)
        return result.scalar()
