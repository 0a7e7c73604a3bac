"""Progression API endpoints: catalog, achievements, tiers, level, activity."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from studyquest.config import get_settings
from studyquest.database import get_session
from studyquest.dependencies import get_redis_dep
from studyquest.progression import service, store
from studyquest.progression.catalog import ACHIEVEMENTS, get_definition
from studyquest.progression.counters import UserCounters
from studyquest.progression.engine import ProgressionResult, TierState
from studyquest.progression.leveling import xp_progress_percent
from studyquest.progression.schemas import (
    AchievementDefinitionResponse,
    ActivityEntryResponse,
    ActivityFeedResponse,
    ActivityTriggerRequest,
    CatalogResponse,
    LevelResponse,
    ProgressionResponse,
    TierStatusEntry,
    TierStatusResponse,
    UnlockedAchievementSummary,
    UserAchievementResponse,
    UserAchievementsResponse,
)
from studyquest.progression.service import AchievementView

router = APIRouter(prefix="/api/v1", tags=["Progression"])


def _level_response(counters: UserCounters) -> LevelResponse:
    level = counters.level
    return LevelResponse(
        current_level=level.current_level,
        total_xp=level.total_xp,
        current_xp=level.current_xp,
        next_level_xp=level.next_level_xp,
        progress_percent=xp_progress_percent(level),
        study_streak=counters.study_streak,
        last_study_date=counters.last_study_date,
    )


def _achievement_response(view: AchievementView) -> UserAchievementResponse:
    record, definition = view.record, view.definition
    return UserAchievementResponse(
        achievement_id=record.achievement_id,
        title=definition.title,
        description=definition.description,
        icon=definition.icon,
        category=definition.category.value,
        tier=record.level,
        status=record.status.value,
        progress=record.reported_progress,
        target=record.target,
        xp_reward=definition.xp_reward,
        unlocked=record.unlocked,
        unlocked_at=record.unlocked_at,
    )


def _progression_response(result: ProgressionResult) -> ProgressionResponse:
    unlocked = []
    for record in result.unlocked:
        definition = get_definition(record.achievement_id)
        unlocked.append(UnlockedAchievementSummary(
            achievement_id=definition.id,
            title=definition.title,
            tier=definition.level,
            xp_reward=definition.xp_reward,
        ))
    return ProgressionResponse(
        unlocked=unlocked,
        level=_level_response(result.counters),
        leveled_up=result.leveled_up,
        xp_gained=result.xp_gained,
        streak_transition=result.streak.transition.value if result.streak else None,
    )


# ── Public endpoints ──


@router.get("/achievements/catalog", response_model=CatalogResponse)
async def get_catalog():
    """All achievement definitions, in tier order."""
    return CatalogResponse(
        achievements=[
            AchievementDefinitionResponse(
                id=a.id,
                title=a.title,
                description=a.description,
                icon=a.icon,
                category=a.category.value,
                tier=a.level,
                target=a.target,
                xp_reward=a.xp_reward,
            )
            for a in ACHIEVEMENTS
        ],
        total=len(ACHIEVEMENTS),
    )


# ── Per-user endpoints ──


@router.get("/users/{user_id}/achievements", response_model=UserAchievementsResponse)
async def list_achievements(
    user_id: int,
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
):
    """Current achievements with progress. Tier 1 is created on first access."""
    views = await service.get_achievements(db, redis, user_id)
    items = [_achievement_response(v) for v in views]
    return UserAchievementsResponse(
        achievements=items,
        total=len(items),
        unlocked=sum(1 for i in items if i.unlocked),
    )


@router.get("/users/{user_id}/achievements/unlocked", response_model=UserAchievementsResponse)
async def list_unlocked_achievements(
    user_id: int,
    db: AsyncSession = Depends(get_session),
):
    """Unlocked achievements, most recent first."""
    views = await service.get_unlocked_achievements(db, user_id)
    items = [_achievement_response(v) for v in views]
    return UserAchievementsResponse(achievements=items, total=len(items), unlocked=len(items))


@router.get("/users/{user_id}/achievements/tiers", response_model=TierStatusResponse)
async def get_tiers(
    user_id: int,
    db: AsyncSession = Depends(get_session),
):
    """Completion state of each achievement tier."""
    tiers = await service.get_tier_status(db, user_id)
    in_progress = [t["tier"] for t in tiers if t["state"] is TierState.IN_PROGRESS]
    complete = [t["tier"] for t in tiers if t["state"] is TierState.COMPLETE]
    if in_progress:
        current_tier = in_progress[0]
    elif complete:
        current_tier = max(complete)
    else:
        current_tier = 1
    return TierStatusResponse(
        tiers=[
            TierStatusEntry(tier=t["tier"], state=t["state"].value, unlocked=t["unlocked"], total=t["total"])
            for t in tiers
        ],
        current_tier=current_tier,
    )


@router.post("/users/{user_id}/achievements/check", response_model=ProgressionResponse)
async def check_achievements(
    user_id: int,
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
):
    """Re-evaluate achievements against the user's current counters."""
    result = await service.check_achievements(db, redis, user_id)
    return _progression_response(result)


@router.get("/users/{user_id}/level", response_model=LevelResponse)
async def get_level(
    user_id: int,
    db: AsyncSession = Depends(get_session),
):
    """Current level, XP and streak."""
    counters = await service.get_counters(db, user_id)
    return _level_response(counters)


@router.get("/users/{user_id}/activity", response_model=ActivityFeedResponse)
async def get_activity(
    user_id: int,
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_session),
):
    """Activity timeline (paginated, newest first)."""
    settings = get_settings()
    per_page = min(per_page or settings.activity_feed_page_size, settings.activity_feed_max_page_size)
    await store.get_user(db, user_id)
    rows = await store.list_activities(db, user_id, limit=per_page, offset=(page - 1) * per_page)
    return ActivityFeedResponse(
        entries=[
            ActivityEntryResponse(
                type=row.type,
                title=row.title,
                description=row.description,
                metadata=row.activity_metadata or {},
                timestamp=row.timestamp,
            )
            for row in rows
        ],
        page=page,
        per_page=per_page,
    )


@router.post(
    "/users/{user_id}/activity",
    response_model=ProgressionResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def post_activity(
    user_id: int,
    body: ActivityTriggerRequest,
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
):
    """Trigger point for document, flashcard and quiz events.

    A progression failure never rejects the triggering action: the response
    is still 202 and carries a warning instead.
    """
    result, warning = await service.record_trigger_safely(db, redis, user_id, body.trigger, body.count)
    if result is None:
        return ProgressionResponse(warning=warning)
    return _progression_response(result)
