"""XP ledger and geometric leveling curve.

Level 1 needs 500 XP to clear. Each following level needs 1.5x the
previous requirement, rounded down: 500, 750, 1125, 1687, 2530, ...
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from studyquest.progression.errors import InvalidCounterState

BASE_NEXT_LEVEL_XP = 500
LEVEL_GROWTH_FACTOR = 1.5


@dataclass(frozen=True)
class LevelState:
    current_level: int = 1
    total_xp: int = 0
    current_xp: int = 0
    next_level_xp: int = BASE_NEXT_LEVEL_XP

    def validate(self) -> None:
        """Raise InvalidCounterState if the ledger is malformed."""
        if self.current_level < 1:
            raise InvalidCounterState(f"current_level must be >= 1, got {self.current_level}")
        if self.total_xp < 0 or self.current_xp < 0:
            raise InvalidCounterState("XP values must not be negative")
        if self.next_level_xp < 1:
            raise InvalidCounterState(f"next_level_xp must be >= 1, got {self.next_level_xp}")
        if self.current_xp >= self.next_level_xp:
            raise InvalidCounterState(
                f"current_xp {self.current_xp} must be below next_level_xp {self.next_level_xp}"
            )


def next_requirement(next_level_xp: int) -> int:
    return math.floor(next_level_xp * LEVEL_GROWTH_FACTOR)


def apply_xp(level: LevelState, delta: int) -> LevelState:
    """Add ``delta`` XP and normalize, applying as many level-ups as it pays for."""
    if delta < 0:
        raise InvalidCounterState(f"XP delta must not be negative, got {delta}")

    current_level = level.current_level
    current_xp = level.current_xp + delta
    next_level_xp = level.next_level_xp

    while current_xp >= next_level_xp:
        current_xp -= next_level_xp
        current_level += 1
        next_level_xp = next_requirement(next_level_xp)

    return replace(
        level,
        current_level=current_level,
        total_xp=level.total_xp + delta,
        current_xp=current_xp,
        next_level_xp=next_level_xp,
    )


def cumulative_xp_for_level(target_level: int) -> int:
    """Total XP a fresh ledger needs to reach ``target_level``."""
    total = 0
    requirement = BASE_NEXT_LEVEL_XP
    for _ in range(1, target_level):
        total += requirement
        requirement = next_requirement(requirement)
    return total


def xp_progress_percent(level: LevelState) -> int:
    """Progress through the current level, 0..99."""
    return min(99, (level.current_xp * 100) // level.next_level_xp)
