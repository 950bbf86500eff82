"""Background job tasks"""

import asyncio
from typing import Any, Dict, List

import structlog
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from kwikqueue.config import settings
from kwikqueue.jobs.celery_app import celery_app

logger = structlog.get_logger()


def run_async(coro):
    """Helper to run async functions in sync context"""
    return asyncio.run(coro)


@celery_app.task(name="dispatch_notifications")
def dispatch_notifications(side_effects: List[Dict[str, Any]]):
    """Deliver transition side effects outside the request that produced them"""
    logger.info("Dispatching notifications", count=len(side_effects))

    async def _dispatch():
        from kwikqueue.domain.state_machine import SideEffect
        from kwikqueue.notifications.dispatcher import NotificationDispatcher
        from kwikqueue.store.sql import SqlStore

        # Each task runs its own event loop, so it needs its own connections
        engine = create_async_engine(settings.database_url, pool_pre_ping=True)
        try:
            store = SqlStore(async_sessionmaker(engine, expire_on_commit=False))
            report = await NotificationDispatcher(store).dispatch(
                SideEffect.model_validate(effect) for effect in side_effects
            )
        finally:
            await engine.dispose()

        logger.info(
            "Notifications dispatched",
            sent=report.sent,
            failed=report.failed,
            skipped=report.skipped,
        )
        return {"sent": report.sent, "failed": report.failed, "skipped": report.skipped}

    return run_async(_dispatch())
