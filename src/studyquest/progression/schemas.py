"""Pydantic request/response models for progression endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

from studyquest.progression.counters import ActivityTrigger


# --- Catalog ---


class AchievementDefinitionResponse(BaseModel):
    id: str
    title: str
    description: str
    icon: str
    category: str
    tier: int
    target: int
    xp_reward: int


class CatalogResponse(BaseModel):
    achievements: list[AchievementDefinitionResponse]
    total: int


# --- User achievements ---


class UserAchievementResponse(BaseModel):
    achievement_id: str
    title: str
    description: str
    icon: str
    category: str
    tier: int
    status: str
    progress: int
    target: int
    xp_reward: int
    unlocked: bool
    unlocked_at: datetime | None = None


class UserAchievementsResponse(BaseModel):
    achievements: list[UserAchievementResponse]
    total: int
    unlocked: int


class TierStatusEntry(BaseModel):
    tier: int
    state: str
    unlocked: int
    total: int


class TierStatusResponse(BaseModel):
    tiers: list[TierStatusEntry]
    current_tier: int


# --- Level ---


class LevelResponse(BaseModel):
    current_level: int
    total_xp: int
    current_xp: int
    next_level_xp: int
    progress_percent: int
    study_streak: int
    last_study_date: date | None = None


# --- Activity / triggers ---


class ActivityTriggerRequest(BaseModel):
    trigger: ActivityTrigger
    count: int = Field(default=1, ge=1, le=10_000)


class UnlockedAchievementSummary(BaseModel):
    achievement_id: str
    title: str
    tier: int
    xp_reward: int


class ProgressionResponse(BaseModel):
    unlocked: list[UnlockedAchievementSummary] = []
    level: LevelResponse | None = None
    leveled_up: bool = False
    xp_gained: int = 0
    streak_transition: str | None = None
    warning: str | None = None


class ActivityEntryResponse(BaseModel):
    type: str
    title: str
    description: str | None = None
    metadata: dict = {}
    timestamp: datetime


class ActivityFeedResponse(BaseModel):
    entries: list[ActivityEntryResponse]
    page: int
    per_page: int
