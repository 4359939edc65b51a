"""
Directory tasks: refresh members and their reporting lines outside the request cycle
"""
import asyncio
import logging
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from reward_points.core.celery_app import celery_app
from reward_points.core.config import settings

logger = logging.getLogger("celery")

# Workers get their own engine; the API engine belongs to the web process loop
async_engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    future=True,
    pool_pre_ping=True,
)

async_session_maker = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

def run_async_task(coro):
    """Run a coroutine to completion inside a Celery worker"""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    except Exception as e:
        logger.error(f"Error in async task: {e}")
        raise
    finally:
        loop.close()

async def _sync_hierarchy(positions: Optional[List[str]] = None) -> dict:
    from reward_points.services.directory.directory_client import get_directory_client
    from reward_points.services.directory.directory_sync_service import DirectorySyncService, HIERARCHY_POSITIONS

    async with async_session_maker() as session:
        service = DirectorySyncService(session, get_directory_client())
        report = await service.map_hierarchy(positions or HIERARCHY_POSITIONS)
        return report.model_dump()

@celery_app.task
def sync_directory_hierarchy(positions: Optional[List[str]] = None):
    """Nightly (and on-demand) refresh of the member table from the directory"""
    report = run_async_task(_sync_hierarchy(positions))
    logger.info(
        f"Directory sync finished: {report['processed']} processed, {report['created']} created, "
        f"{report['updated']} updated, {len(report['errors'])} errors"
    )
    return report
