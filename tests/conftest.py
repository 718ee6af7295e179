"""
Pytest configuration and fixtures for tests.
Provides reusable test fixtures for database, HTTP client, and course data setup.
"""
import pytest
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.core.database import get_db
from app.models.base import Base


# Test database URL (use separate test database)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"  # In-memory SQLite for tests


@pytest.fixture(scope="function")
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    TestSessionLocal = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with the database dependency overridden."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    # Clear overrides after test
    app.dependency_overrides.clear()


@pytest.fixture
async def legacy_courses(db_session: AsyncSession):
    """Create courses A, B, C with legacy order 1, 2, 3 and no chain yet."""
    from app.models.course import Course

    courses = [
        Course(id="A", title="Algebra", instructor="Noether", order_index=1),
        Course(id="B", title="Biology", instructor="Mendel", order_index=2),
        Course(id="C", title="Chemistry", instructor="Curie", order_index=3),
    ]
    db_session.add_all(courses)
    await db_session.commit()

    return courses


@pytest.fixture
async def linked_courses(db_session: AsyncSession, legacy_courses):
    """Create the chain A -> B -> C with head A."""
    from app.models.course import CourseOrderMetadata

    legacy_courses[0].next_course_id = "B"
    legacy_courses[1].next_course_id = "C"
    db_session.add(CourseOrderMetadata(id="main", first_course_id="A"))
    await db_session.commit()

    return legacy_courses


@pytest.fixture
def course_order_service(db_session: AsyncSession):
    """Linked-list service bound to the test session."""
    from app.services.linked_list_course_service import LinkedListCourseService

    return LinkedListCourseService(db_session, metadata_key="main", traversal_slack=5)


@pytest.fixture
def ordered_ids(course_order_service):
    """Return the current display order as a list of (id, position) pairs."""

    async def _ordered_ids():
        traversal = await course_order_service.get_ordered_courses()
        return [(entry.course.id, entry.display_order) for entry in traversal.entries]

    return _ordered_ids
