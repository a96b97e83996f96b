from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from carebase.config import get_settings
from carebase.db.client import SqlTableClient

settings = get_settings()


def _engine_options(database_url: str) -> dict:
    # SQLite pools do not take sizing arguments
    if database_url.startswith("sqlite"):
        return {}
    return {"pool_size": settings.DB_POOL_SIZE, "max_overflow": settings.DB_MAX_OVERFLOW}


engine = create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG, **_engine_options(settings.DATABASE_URL))

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db_client() -> SqlTableClient:
    """FastAPI dependency returning a table client bound to the shared session factory."""
    return SqlTableClient(async_session, Base.metadata)
