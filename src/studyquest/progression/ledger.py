"""Per-user achievement records projected from the catalog."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime

from studyquest.progression.catalog import (
    ACHIEVEMENTS_PER_TIER,
    AchievementDefinition,
    get_definition,
    tier_definitions,
)
from studyquest.progression.counters import UserCounters
from studyquest.progression.errors import CatalogLookupMiss

logger = logging.getLogger(__name__)


class AchievementStatus(str, enum.Enum):
    LOCKED = "locked"
    IN_PROGRESS = "in-progress"
    UNLOCKED = "unlocked"


@dataclass
class AchievementRecord:
    user_id: int
    achievement_id: str
    level: int
    target: int
    level_locked: bool = False
    status: AchievementStatus = AchievementStatus.LOCKED
    progress: int = 0
    unlocked: bool = False
    unlocked_at: datetime | None = None

    @property
    def reported_progress(self) -> int:
        return 100 if self.unlocked else self.progress

    def unlock(self, now: datetime) -> None:
        # Unlock fields are written once and never reverted.
        if self.unlocked:
            return
        self.unlocked = True
        self.unlocked_at = now
        self.status = AchievementStatus.UNLOCKED
        self.progress = 100


@dataclass
class RecomputeOutcome:
    unlocked: list[AchievementRecord] = field(default_factory=list)
    changed: list[AchievementRecord] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def new_record(
    user_id: int,
    definition: AchievementDefinition,
    counters: UserCounters,
    now: datetime,
) -> AchievementRecord:
    """Build a record initialized from the current counter snapshot."""
    record = AchievementRecord(
        user_id=user_id,
        achievement_id=definition.id,
        level=definition.level,
        target=definition.target,
    )
    if definition.is_satisfied(counters):
        record.unlock(now)
    else:
        record.progress = definition.progress(counters)
        if record.progress > 0:
            record.status = AchievementStatus.IN_PROGRESS
    return record


def materialize_tier(
    user_id: int,
    tier: int,
    counters: UserCounters,
    now: datetime,
) -> list[AchievementRecord]:
    """Create one record per catalog definition of ``tier``, in catalog order."""
    return [new_record(user_id, d, counters, now) for d in tier_definitions(tier)]


def is_tier_materialized(records: list[AchievementRecord], tier: int) -> bool:
    return any(r.level == tier for r in records)


def ensure_tier_materialized(
    records: list[AchievementRecord],
    user_id: int,
    tier: int,
    counters: UserCounters,
    now: datetime,
) -> list[AchievementRecord]:
    """Return newly created records for ``tier``, or [] if it already has records."""
    if is_tier_materialized(records, tier):
        return []
    return materialize_tier(user_id, tier, counters, now)


def is_tier_complete(records: list[AchievementRecord], tier: int) -> bool:
    """True iff every catalog achievement of ``tier`` has an unlocked record."""
    expected = {d.id for d in tier_definitions(tier)}
    if len(expected) != ACHIEVEMENTS_PER_TIER:
        return False
    unlocked = {r.achievement_id for r in records if r.level == tier and r.unlocked}
    return expected <= unlocked


def _catalog_position(record: AchievementRecord) -> tuple[int, int]:
    try:
        return (0, get_definition(record.achievement_id).order)
    except CatalogLookupMiss:
        return (1, 0)


def sort_records(records: list[AchievementRecord]) -> list[AchievementRecord]:
    """Records in catalog order. Unknown ids sort last, keeping their input order."""
    return sorted(records, key=_catalog_position)


def recompute(
    records: list[AchievementRecord],
    counters: UserCounters,
    now: datetime,
) -> RecomputeOutcome:
    """Re-evaluate open records against ``counters``.

    Records are mutated in place and visited in catalog order. Unlocked and
    level-locked records are left alone, which makes repeated calls with the
    same counters a no-op.
    """
    outcome = RecomputeOutcome()

    for record in sort_records(records):
        if record.unlocked or record.level_locked:
            continue

        try:
            definition = get_definition(record.achievement_id)
        except CatalogLookupMiss:
            logger.warning(
                "Skipping achievement record %r for user %s: not in catalog",
                record.achievement_id, record.user_id,
            )
            outcome.skipped.append(record.achievement_id)
            continue

        progress = definition.progress(counters)

        if definition.is_satisfied(counters):
            record.unlock(now)
            outcome.unlocked.append(record)
            outcome.changed.append(record)
            continue

        changed = progress != record.progress
        record.progress = progress
        if progress > 0 and record.status is AchievementStatus.LOCKED:
            record.status = AchievementStatus.IN_PROGRESS
            changed = True
        if changed:
            outcome.changed.append(record)

    return outcome
