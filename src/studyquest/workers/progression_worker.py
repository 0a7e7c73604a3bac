"""arq worker for deferred progression work.

Runs as a separate process. ``apply_activity`` lets callers enqueue a
trigger instead of running progression inline; ``expire_streaks`` is the
once-a-day streak sweep.
"""

from __future__ import annotations

import logging

from arq import cron
from arq.connections import RedisSettings

from studyquest.config import get_settings
from studyquest.database import close_db, get_session, init_db
from studyquest.progression import service
from studyquest.progression.counters import ActivityTrigger

logger = logging.getLogger(__name__)


async def startup(ctx: dict) -> None:  # type: ignore[type-arg]
    """Open the database pool. arq provides ``ctx["redis"]`` itself."""
    settings = get_settings()
    await init_db(settings.database_url)
    logger.info("Progression worker started")


async def shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    await close_db()
    logger.info("Progression worker shut down")


async def apply_activity(ctx: dict, user_id: int, trigger: str, count: int = 1) -> dict[str, object]:  # type: ignore[type-arg]
    """Apply one trigger for a user. Failures propagate so arq can retry the job."""
    async for db in get_session():
        result = await service.record_trigger(db, ctx.get("redis"), user_id, ActivityTrigger(trigger), count)
        break
    return {
        "user_id": user_id,
        "unlocked": [r.achievement_id for r in result.unlocked],
        "xp_gained": result.xp_gained,
        "level": result.level_after.current_level,
    }


async def expire_streaks(ctx: dict) -> int:  # type: ignore[type-arg]
    """Daily task: zero streaks whose last study date is past the expiry window."""
    async for db in get_session():
        reset = await service.expire_stale_streaks(db)
        break
    if reset > 0:
        logger.info("Reset %d expired streaks", reset)
    return reset


_settings = get_settings()


class WorkerSettings:
    """arq worker settings for progression jobs."""

    functions = [apply_activity, expire_streaks]
    cron_jobs = [
        cron(
            expire_streaks,
            hour={_settings.streak_sweep_hour},
            minute={_settings.streak_sweep_minute},
            run_at_startup=False,
            unique=True,
        ),
    ]
    redis_settings = RedisSettings.from_dsn(_settings.redis_url)
    on_startup = startup
    on_shutdown = shutdown
    max_jobs = 10
