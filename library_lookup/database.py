from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from library_lookup.config import DATABASE_URL, SQL_ECHO
from typing import AsyncGenerator

engine = create_async_engine(
    DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://"),
    echo=SQL_ECHO,
    future=True
)

AsyncSessionLocal = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
Base = declarative_base()

# Dependency for FastAPI routes
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


def upsert(session: AsyncSession, model):
    """
    INSERT statement for `model` that supports ON CONFLICT clauses on the
    session's backend. PostgreSQL and SQLite expose the same
    on_conflict_do_update / on_conflict_do_nothing API.
    """
    if session.bind.dialect.name == "postgresql":
        return postgresql.insert(model)
    return sqlite.insert(model)
