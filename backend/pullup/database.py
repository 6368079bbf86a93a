import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from .config import get_settings
from .infrastructure.repositories import SqlAlchemyEventRepository, SqlAlchemyRsvpRepository

settings = get_settings()

logging.basicConfig(level=settings.log_level)

engine = create_async_engine(
    settings.database_url,
    echo=settings.echo_sql,
    pool_pre_ping=True,
    pool_recycle=3600,
)

async_session = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@asynccontextmanager
async def repositories() -> AsyncIterator[tuple[SqlAlchemyEventRepository, SqlAlchemyRsvpRepository]]:
    """One session and transaction shared by an event and an RSVP repository; commits on exit."""
    async with async_session() as session:
        async with session.begin():
            yield SqlAlchemyEventRepository(session), SqlAlchemyRsvpRepository(session)
