import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from board.cache import cache
from board.config import settings
from board.middleware import install_query_counter

logger = logging.getLogger(__name__)

# Tests build their own engine and override ``get_db``; everything else
# goes through this one.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)
install_query_counter(engine)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db():
    """
    Yield one session per request.

    The request is a single unit of work: services only flush, and the
    commit (or rollback) happens here once the endpoint has returned.
    Hashtag cleanup relies on this to share the transaction of the
    article mutation that orphaned the hashtag.  Cache entries the
    request made stale are purged only after the commit.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception as exc:
            logger.debug("Rolling back request transaction: %r", exc)
            cache.discard_pending_invalidations(session)
            await session.rollback()
            raise
        await cache.apply_pending_invalidations(session)
