import logging

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from src.duty_admin.config import settings

# Configure logging for better error tracing
logger = logging.getLogger(__name__)
logging.basicConfig(level=settings.LOG_LEVEL.upper())

DATABASE_URL = settings.DATABASE_URL


def _engine_kwargs(url: str) -> dict:
    """
    Pool options only make sense for server databases.
    SQLite (tests, local runs) shares one connection so an in-memory
    database survives across sessions.
    """
    if url.startswith("sqlite"):
        return {
            "echo": settings.DB_ECHO,
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    return {
        "echo": settings.DB_ECHO,  # Logs all SQL queries if True
        "pool_size": settings.DB_POOL_SIZE,  # Pool size for database connections
        "max_overflow": settings.DB_MAX_OVERFLOW,  # Max connections that can exceed pool_size
        "connect_args": {"timeout": settings.DB_TIMEOUT},  # Connection timeout
        "pool_pre_ping": True,  # Ensures the connections are valid before using them
    }


# Create the asynchronous engine with connection pooling and timeout handling
try:
    engine = create_async_engine(DATABASE_URL, **_engine_kwargs(DATABASE_URL))
    logger.info("Database engine created for %s", engine.url.render_as_string(hide_password=True))
except SQLAlchemyError as e:
    logger.error(f"Error creating database engine: {e}")
    raise Exception(f"Database connection failed: {e}")

# Use async_sessionmaker to create sessionmaker for async SQLAlchemy session
AsyncSessionLocal = async_sessionmaker(
    engine,  # The async engine created above
    class_=AsyncSession,  # The session class
    autoflush=False,  # To avoid flushing automatically
    autocommit=False,  # To manually commit transactions
    expire_on_commit=False,  # Don't expire objects after commit
)

# Base class for SQLAlchemy ORM models (for declarative base models)
Base = declarative_base()

# Dependency to retrieve a database session in FastAPI
# Ensures the session is properly closed after use
async def get_db():
    try:
        async with AsyncSessionLocal() as session:
            yield session
    except SQLAlchemyError as e:
        logger.error(f"Error: while interacting with the database: {e}")
        raise HTTPException(status_code=500, detail=f"Database operation failed: {e}")


async def create_all() -> None:
    """Create every table registered on Base (local runs and tests)."""
    import src.duty_admin.models  # noqa: F401  (registers all mappers)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_all() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
