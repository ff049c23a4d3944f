"""Shared fixtures: an in-memory database, seeded course trees and API clients."""

import os


# Configure the app before anything imports its settings
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DB_AUTO_CREATE"] = "false"

from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from enrollment_service.courses.models import Course, CourseModule, CourseSection, CourseStatus
from enrollment_service.database.base import Base
from enrollment_service.database.session import get_db_session
from enrollment_service.enrollments.models import Enrollment, EnrollmentStatus
from enrollment_service.main import app
from enrollment_service.progress.models import Progress
from enrollment_service.users.models import User


@dataclass
class CourseTree:
    """IDs of a seeded course and its modules/sections."""

    course_id: int
    modules: dict[int, list[int]] = field(default_factory=dict)

    @property
    def sections(self) -> list[tuple[int, int]]:
        """(module_id, section_id) pairs in display order."""
        return [(module_id, section_id) for module_id, ids in self.modules.items() for section_id in ids]


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_maker: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client_factory(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[Callable[..., Awaitable[AsyncClient]], None]:
    """Build API clients whose requests use the test database."""

    async def _get_test_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _get_test_session
    clients: list[AsyncClient] = []

    async def _factory(*, raise_app_exceptions: bool = True) -> AsyncClient:
        transport = ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
        client = AsyncClient(transport=transport, base_url="http://test")
        clients.append(client)
        return client

    yield _factory

    for client in clients:
        await client.aclose()
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(client_factory) -> AsyncClient:
    return await client_factory()


@pytest_asyncio.fixture
async def seed_user(db_session: AsyncSession) -> Callable[..., Awaitable[int]]:
    async def _seed(name: str = "Test User") -> int:
        user = User(name=name)
        db_session.add(user)
        await db_session.commit()
        return user.id

    return _seed


@pytest_asyncio.fixture
async def seed_course(db_session: AsyncSession) -> Callable[..., Awaitable[CourseTree]]:
    """Create a course with ``sections_per_module[i]`` sections in module ``i``."""

    async def _seed(
        sections_per_module: tuple[int, ...] = (2,),
        status: CourseStatus = CourseStatus.PUBLISHED,
        title: str = "Test Course",
    ) -> CourseTree:
        course = Course(title=title, description="Test Description", status=status.value, teacher_id=1)
        db_session.add(course)
        await db_session.flush()

        tree = CourseTree(course_id=course.id)
        for module_order, section_count in enumerate(sections_per_module, start=1):
            module = CourseModule(course_id=course.id, title=f"Module {module_order}", order=module_order)
            db_session.add(module)
            await db_session.flush()

            sections = [
                CourseSection(module_id=module.id, title=f"Section {n}", order=n)
                for n in range(1, section_count + 1)
            ]
            db_session.add_all(sections)
            await db_session.flush()
            tree.modules[module.id] = [section.id for section in sections]

        await db_session.commit()
        return tree

    return _seed


@pytest_asyncio.fixture
async def seed_enrollment(db_session: AsyncSession) -> Callable[..., Awaitable[int]]:
    """Insert an enrollment row directly, bypassing the API."""

    async def _seed(user_id: int, course_id: int, status: EnrollmentStatus = EnrollmentStatus.ACTIVE) -> int:
        enrollment = Enrollment(
            user_id=user_id,
            course_id=course_id,
            status=status.value,
            enrolled_at=datetime.now(UTC),
        )
        db_session.add(enrollment)
        await db_session.commit()
        return enrollment.id

    return _seed


@pytest_asyncio.fixture
async def fetch_enrollment(session_maker: async_sessionmaker[AsyncSession]) -> Callable[[int], Awaitable]:
    """Read an enrollment row through a fresh session."""

    async def _fetch(enrollment_id: int):
        async with session_maker() as session:
            result = await session.execute(
                select(Enrollment.__table__).where(Enrollment.__table__.c.id == enrollment_id)
            )
            return result.first()

    return _fetch


@pytest_asyncio.fixture
async def fetch_progress(session_maker: async_sessionmaker[AsyncSession]) -> Callable[[int], Awaitable[list]]:
    """Read all progress rows of an enrollment through a fresh session."""

    async def _fetch(enrollment_id: int) -> list:
        async with session_maker() as session:
            table = Progress.__table__
            result = await session.execute(
                select(table).where(table.c.enrollment_id == enrollment_id).order_by(table.c.section_id)
            )
            return list(result)

    return _fetch
