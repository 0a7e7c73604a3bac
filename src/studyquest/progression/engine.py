"""Progression engine: counters in, unlocks, XP and streak changes out.

The engine performs no I/O. It takes a user's counters and achievement
records by value and returns a ProgressionResult describing every mutation
the caller has to persist. Inputs are never modified, so replaying a call
against the same snapshot yields the same result.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any

from studyquest.progression.catalog import TIER_COUNT, get_definition
from studyquest.progression.counters import CounterDelta, UserCounters
from studyquest.progression.leveling import LevelState, apply_xp
from studyquest.progression.ledger import (
    AchievementRecord,
    is_tier_complete,
    is_tier_materialized,
    materialize_tier,
    recompute,
)
from studyquest.progression.streak import StreakUpdate, update_streak

logger = logging.getLogger(__name__)


class TierState(str, enum.Enum):
    NOT_MATERIALIZED = "not_materialized"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


@dataclass(frozen=True)
class ActivityEntry:
    user_id: int
    type: str
    title: str
    description: str
    metadata: dict[str, Any]
    timestamp: datetime


@dataclass
class ProgressionResult:
    counters: UserCounters
    level_before: LevelState
    created: list[AchievementRecord] = field(default_factory=list)
    updated: list[AchievementRecord] = field(default_factory=list)
    unlocked: list[AchievementRecord] = field(default_factory=list)
    activities: list[ActivityEntry] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    streak: StreakUpdate | None = None
    tiers: dict[int, TierState] = field(default_factory=dict)
    # every record after the update, persisted and newly created
    records: list[AchievementRecord] = field(default_factory=list, repr=False)

    @property
    def level_after(self) -> LevelState:
        return self.counters.level

    @property
    def leveled_up(self) -> bool:
        return self.level_after.current_level > self.level_before.current_level

    @property
    def xp_gained(self) -> int:
        return self.level_after.total_xp - self.level_before.total_xp


def tier_states(records: list[AchievementRecord], tier_count: int = TIER_COUNT) -> dict[int, TierState]:
    states = {}
    for tier in range(1, tier_count + 1):
        if not is_tier_materialized(records, tier):
            states[tier] = TierState.NOT_MATERIALIZED
        elif is_tier_complete(records, tier):
            states[tier] = TierState.COMPLETE
        else:
            states[tier] = TierState.IN_PROGRESS
    return states


class ProgressionEngine:
    """Applies activity to a user snapshot and gates tiers on completion."""

    def __init__(self, tier_count: int = TIER_COUNT) -> None:
        self.tier_count = tier_count

    def on_activity(
        self,
        counters: UserCounters,
        records: list[AchievementRecord],
        delta: CounterDelta | None = None,
        *,
        today: date,
        now: datetime,
    ) -> ProgressionResult:
        """Run one progression update.

        1. apply the counter delta
        2. update the streak if the activity qualifies
        3. for each tier in order: materialize it if allowed, then unlock
           until nothing changes, awarding XP per unlock
        4. stop at the first tier that is not complete
        """
        counters.validate()
        delta = delta or CounterDelta()

        working = [replace(r) for r in records]
        result = ProgressionResult(counters=counters, level_before=counters.level)

        current = delta.apply(counters)
        if delta.qualifies_for_streak:
            result.streak = update_streak(current.last_study_date, today, current.study_streak)
            current = replace(
                current,
                study_streak=result.streak.new_streak,
                last_study_date=result.streak.last_study_date,
            )

        changed: dict[int, AchievementRecord] = {}
        created_ids: set[int] = set()

        for tier in range(1, self.tier_count + 1):
            if not is_tier_materialized(working, tier):
                if tier > 1 and not is_tier_complete(working, tier - 1):
                    break
                fresh = materialize_tier(current.user_id, tier, current, now)
                working.extend(fresh)
                result.created.extend(fresh)
                created_ids.update(id(r) for r in fresh)
                logger.info("Materialized tier %d for user %s", tier, current.user_id)
                for record in fresh:
                    if record.unlocked:
                        current = self._reward(current, record, now, result)

            tier_records = [r for r in working if r.level == tier]
            while True:
                outcome = recompute(tier_records, current, now)
                for record in outcome.changed:
                    changed[id(record)] = record
                for achievement_id in outcome.skipped:
                    if achievement_id not in result.skipped:
                        result.skipped.append(achievement_id)
                for record in outcome.unlocked:
                    current = self._reward(current, record, now, result)
                if not outcome.unlocked:
                    break

            if not is_tier_complete(working, tier):
                break

        result.counters = current
        result.updated = [r for key, r in changed.items() if key not in created_ids]
        result.tiers = tier_states(working, self.tier_count)
        result.records = working
        return result

    def _reward(
        self,
        counters: UserCounters,
        record: AchievementRecord,
        now: datetime,
        result: ProgressionResult,
    ) -> UserCounters:
        """Award an unlocked record's XP and emit its activity entries."""
        definition = get_definition(record.achievement_id)
        before = counters.level
        after = apply_xp(before, definition.xp_reward)

        result.unlocked.append(record)
        result.activities.append(ActivityEntry(
            user_id=counters.user_id,
            type="achievement",
            title="Achievement unlocked!",
            description=definition.title,
            metadata={
                "achievement_id": definition.id,
                "xp_reward": definition.xp_reward,
                "tier": definition.level,
            },
            timestamp=now,
        ))

        if after.current_level > before.current_level:
            result.activities.append(ActivityEntry(
                user_id=counters.user_id,
                type="level",
                title="Level up!",
                description=f"Reached level {after.current_level}",
                metadata={
                    "old_level": before.current_level,
                    "new_level": after.current_level,
                    "total_xp": after.total_xp,
                },
                timestamp=now,
            ))

        return replace(counters, level=after)
