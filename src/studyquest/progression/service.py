"""Progression service: loads a user snapshot, runs the engine, persists the result.

Everything written for one activity (counters, new and updated achievement
records, activity entries) is committed in a single transaction. Events are
published to Redis only after the commit succeeds.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from studyquest.config import get_settings
from studyquest.progression import store
from studyquest.progression.catalog import AchievementDefinition, get_definition
from studyquest.progression.counters import ActivityTrigger, CounterDelta, UserCounters
from studyquest.progression.engine import ProgressionEngine, ProgressionResult, tier_states
from studyquest.progression.errors import CatalogLookupMiss
from studyquest.progression.ledger import AchievementRecord, sort_records
from studyquest.progression.streak import streak_expiry_cutoff, today_in
from studyquest.redis_client import ACHIEVEMENT_UNLOCKED_CHANNEL, LEVEL_UP_CHANNEL, publish_event

logger = structlog.get_logger()

_engine = ProgressionEngine()


@dataclass(frozen=True)
class AchievementView:
    record: AchievementRecord
    definition: AchievementDefinition


async def record_activity(
    db: AsyncSession,
    redis: object,
    user_id: int,
    delta: CounterDelta | None = None,
    *,
    now: datetime | None = None,
    today: date | None = None,
) -> ProgressionResult:
    """Apply one activity to a user and persist the outcome atomically.

    Raises UserNotFound / InvalidCounterState without writing anything.
    Store errors are re-raised after rollback; the whole call is safe to retry.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    if today is None:
        today = today_in(get_settings().streak_timezone, now)

    try:
        counters = await store.get_user(db, user_id, for_update=True)
        records = await store.find_achievement_records(db, user_id)

        result = _engine.on_activity(counters, records, delta, today=today, now=now)

        if result.counters != counters:
            await store.save_user(db, result.counters)
        await store.insert_achievement_records(db, result.created)
        for record in result.updated:
            await store.save_achievement_record(db, record)
        for entry in result.activities:
            await store.append_activity(db, entry)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    if result.unlocked or result.leveled_up:
        logger.info(
            "progression_updated",
            user_id=user_id,
            unlocked=[r.achievement_id for r in result.unlocked],
            xp_gained=result.xp_gained,
            level=result.level_after.current_level,
        )
    if result.skipped:
        logger.warning("catalog_lookup_miss", user_id=user_id, achievement_ids=result.skipped)

    await _publish_events(redis, user_id, result)
    return result


async def record_trigger(
    db: AsyncSession,
    redis: object,
    user_id: int,
    trigger: ActivityTrigger,
    count: int = 1,
    *,
    now: datetime | None = None,
) -> ProgressionResult:
    """Convenience wrapper for the external trigger points."""
    return await record_activity(db, redis, user_id, trigger.delta(count), now=now)


async def record_trigger_safely(
    db: AsyncSession,
    redis: object,
    user_id: int,
    trigger: ActivityTrigger,
    count: int = 1,
    *,
    now: datetime | None = None,
) -> tuple[ProgressionResult | None, str | None]:
    """Run a trigger without failing the action that caused it.

    Returns (result, None) on success or (None, warning) if progression failed.
    """
    try:
        result = await record_trigger(db, redis, user_id, trigger, count, now=now)
    except Exception as exc:
        logger.warning(
            "progression_update_failed",
            user_id=user_id,
            trigger=trigger.value,
            error=str(exc),
            exc_info=exc,
        )
        return None, "Progress could not be updated; it will be recalculated on the next activity."
    return result, None


async def check_achievements(db: AsyncSession, redis: object, user_id: int) -> ProgressionResult:
    """Explicit re-evaluation with no counter change."""
    return await record_activity(db, redis, user_id, CounterDelta())


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


def _views(records: list[AchievementRecord]) -> list[AchievementView]:
    views = []
    for record in sort_records(records):
        try:
            views.append(AchievementView(record, get_definition(record.achievement_id)))
        except CatalogLookupMiss:
            logger.warning("catalog_lookup_miss", user_id=record.user_id, achievement_id=record.achievement_id)
    return views


async def get_achievements(db: AsyncSession, redis: object, user_id: int) -> list[AchievementView]:
    """All achievement records with progress, materializing tier 1 on first access.

    The user row is only rewritten when the check pass changed it.
    """
    result = await check_achievements(db, redis, user_id)
    return _views(result.records)


async def get_unlocked_achievements(db: AsyncSession, user_id: int) -> list[AchievementView]:
    await store.get_user(db, user_id)
    records = [r for r in await store.find_achievement_records(db, user_id) if r.unlocked]
    views = _views(records)
    views.sort(
        key=lambda v: v.record.unlocked_at.timestamp() if v.record.unlocked_at else 0.0,
        reverse=True,
    )
    return views


async def get_tier_status(db: AsyncSession, user_id: int) -> list[dict]:
    await store.get_user(db, user_id)
    records = await store.find_achievement_records(db, user_id)
    states = tier_states(records)
    return [
        {
            "tier": tier,
            "state": state,
            "unlocked": sum(1 for r in records if r.level == tier and r.unlocked),
            "total": sum(1 for r in records if r.level == tier),
        }
        for tier, state in states.items()
    ]


async def get_counters(db: AsyncSession, user_id: int) -> UserCounters:
    return await store.get_user(db, user_id)


# ---------------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------------


async def expire_stale_streaks(db: AsyncSession, today: date | None = None) -> int:
    """Reset streaks of users who stopped studying. Run once per calendar day."""
    settings = get_settings()
    if today is None:
        today = today_in(settings.streak_timezone)
    cutoff = streak_expiry_cutoff(today, settings.streak_expiry_days)

    try:
        reset = await store.reset_expired_streaks(db, cutoff)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("streak_sweep_complete", reset=reset, cutoff=cutoff.isoformat())
    return reset


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


async def _publish_events(redis: object, user_id: int, result: ProgressionResult) -> None:
    if redis is None:
        return
    try:
        for record in result.unlocked:
            definition = get_definition(record.achievement_id)
            await publish_event(redis, ACHIEVEMENT_UNLOCKED_CHANNEL, {
                "user_id": user_id,
                "achievement_id": definition.id,
                "title": definition.title,
                "tier": definition.level,
                "xp_reward": definition.xp_reward,
            })
        if result.leveled_up:
            await publish_event(redis, LEVEL_UP_CHANNEL, {
                "user_id": user_id,
                "old_level": result.level_before.current_level,
                "new_level": result.level_after.current_level,
                "total_xp": result.level_after.total_xp,
            })
    except Exception:
        logger.warning("progression_publish_failed", user_id=user_id, exc_info=True)
