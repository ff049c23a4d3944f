from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from enrollment_service.config.settings import Settings, get_settings


def create_app_engine(settings: Settings | None = None) -> AsyncEngine:
    """Create the async engine backing the shared connection pool.

    - PostgreSQL (psycopg3): bounded queue pool with pre-ping and recycling.
    - SQLite (aiosqlite): driver defaults, used for local runs and tests.
    """
    settings = settings or get_settings()
    database_url = settings.DATABASE_URL

    if settings.is_sqlite:
        return create_async_engine(database_url, echo=settings.DEBUG)

    return create_async_engine(
        database_url,
        echo=settings.DEBUG,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
        pool_use_lifo=True,  # Reuse hot connections
        connect_args={"connect_timeout": 10},
    )


engine: AsyncEngine = create_app_engine()
