"""Achievement catalog: 75 definitions across 5 tiers of 15.

The catalog is built once at import and never mutated. Every definition
unlocks when the counter selected by its category reaches its target.
The last two achievements of each tier are level goals. The XP from the
other thirteen achievements in the tier is enough to reach them, so every
tier can be completed.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from studyquest.progression.counters import UserCounters
from studyquest.progression.errors import CatalogLookupMiss

TIER_COUNT = 5
ACHIEVEMENTS_PER_TIER = 15


class AchievementCategory(str, enum.Enum):
    DOCUMENT = "document"
    QUIZ = "quiz"
    FLASHCARD = "flashcard"
    STREAK = "streak"
    LEVEL = "level"
    MASTERY = "mastery"
    CONSISTENCY = "consistency"
    SPEED = "speed"
    ACCURACY = "accuracy"


# Composite categories measure overall activity volume.
COUNTER_EXTRACTORS: Mapping[AchievementCategory, Callable[[UserCounters], int]] = MappingProxyType({
    AchievementCategory.DOCUMENT: lambda c: c.total_documents,
    AchievementCategory.QUIZ: lambda c: c.total_quizzes,
    AchievementCategory.FLASHCARD: lambda c: c.total_flashcards,
    AchievementCategory.STREAK: lambda c: c.study_streak,
    AchievementCategory.CONSISTENCY: lambda c: c.study_streak,
    AchievementCategory.LEVEL: lambda c: c.level.current_level,
    AchievementCategory.MASTERY: lambda c: c.total_activity,
    AchievementCategory.SPEED: lambda c: c.total_activity,
    AchievementCategory.ACCURACY: lambda c: c.total_activity,
})


def counter_value(category: AchievementCategory, counters: UserCounters) -> int:
    return COUNTER_EXTRACTORS[category](counters)


@dataclass(frozen=True)
class AchievementDefinition:
    id: str
    title: str
    description: str
    icon: str
    category: AchievementCategory
    level: int
    target: int
    xp_reward: int
    order: int = 0

    def is_satisfied(self, counters: UserCounters) -> bool:
        return counter_value(self.category, counters) >= self.target

    def progress(self, counters: UserCounters) -> int:
        return progress_percent(self, counters)


def progress_percent(definition: AchievementDefinition, counters: UserCounters) -> int:
    """round(min(100, 100 * value / target)) for the definition's counter."""
    value = counter_value(definition.category, counters)
    if definition.target <= 0:
        return 100
    return round(min(100.0, 100.0 * value / definition.target))


_D = AchievementCategory.DOCUMENT
_Q = AchievementCategory.QUIZ
_F = AchievementCategory.FLASHCARD
_S = AchievementCategory.STREAK
_L = AchievementCategory.LEVEL
_M = AchievementCategory.MASTERY
_C = AchievementCategory.CONSISTENCY
_SP = AchievementCategory.SPEED
_A = AchievementCategory.ACCURACY

# (id, title, description, icon, category, target, xp_reward)
_TIERS: dict[int, list[tuple[str, str, str, str, AchievementCategory, int, int]]] = {
    # Tier 1: first steps (non-level XP 1100)
    1: [
        ("first_document", "First Steps", "Upload your first document", "📄", _D, 1, 50),
        ("document_explorer", "Document Explorer", "Upload 5 documents", "🗂️", _D, 5, 50),
        ("first_quiz", "Quiz Rookie", "Complete your first quiz", "🎯", _Q, 1, 50),
        ("quiz_regular", "Quiz Regular", "Complete 5 quizzes", "📝", _Q, 5, 100),
        ("first_flashcards", "Card Collector", "Create your first flashcards", "⚡", _F, 1, 50),
        ("flashcard_beginner", "Flashcard Beginner", "Create 25 flashcards", "🃏", _F, 25, 100),
        ("streak_2", "Back Again", "Study 2 days in a row", "🔥", _S, 2, 50),
        ("streak_3", "3-Day Streak", "Study 3 days in a row", "🔥", _S, 3, 100),
        ("steady_pace", "Steady Pace", "Keep a 5-day study rhythm", "🗓️", _C, 5, 100),
        ("curious_mind", "Curious Mind", "Log 10 learning activities", "🧠", _M, 10, 100),
        ("quick_learner", "Quick Learner", "Log 15 learning activities", "⏱️", _SP, 15, 100),
        ("sharp_focus", "Sharp Focus", "Log 20 learning activities", "🔍", _A, 20, 100),
        ("well_rounded", "Well Rounded", "Log 30 learning activities", "🧭", _M, 30, 150),
        ("level_2", "Level Up", "Reach level 2", "⬆️", _L, 2, 200),
        ("level_3", "Apprentice", "Reach level 3", "🌱", _L, 3, 250),
    ],
    # Tier 2: building habits (non-level XP 2200)
    2: [
        ("document_collector", "Document Collector", "Upload 10 documents", "📚", _D, 10, 150),
        ("study_library", "Study Library", "Upload 20 documents", "🏫", _D, 20, 200),
        ("quiz_enthusiast", "Quiz Enthusiast", "Complete 10 quizzes", "🎲", _Q, 10, 150),
        ("quiz_devotee", "Quiz Devotee", "Complete 20 quizzes", "🧩", _Q, 20, 200),
        ("flashcard_fan", "Flashcard Fan", "Create 100 flashcards", "🎴", _F, 100, 150),
        ("card_stacker", "Card Stacker", "Create 200 flashcards", "🗃️", _F, 200, 200),
        ("streak_7", "Weekly Warrior", "Study 7 days in a row", "💪", _S, 7, 200),
        ("streak_10", "Ten Day Run", "Study 10 days in a row", "🏃", _S, 10, 150),
        ("dedicated_fortnight", "Dedicated Fortnight", "Keep a 14-day study rhythm", "📆", _C, 14, 200),
        ("knowledge_seeker", "Knowledge Seeker", "Log 75 learning activities", "🔭", _M, 75, 150),
        ("fast_tracker", "Fast Tracker", "Log 100 learning activities", "🚀", _SP, 100, 150),
        ("precise_mind", "Precise Mind", "Log 150 learning activities", "🎯", _A, 150, 150),
        ("all_rounder", "All-Rounder", "Log 250 learning activities", "🌐", _M, 250, 150),
        ("level_4", "Rising Learner", "Reach level 4", "✨", _L, 4, 400),
        ("level_5", "Rising Star", "Reach level 5", "🌟", _L, 5, 500),
    ],
    # Tier 3: committed learner (non-level XP 5000)
    3: [
        ("document_archivist", "Document Archivist", "Upload 35 documents", "🗄️", _D, 35, 350),
        ("library_builder", "Library Builder", "Upload 50 documents", "🏛️", _D, 50, 400),
        ("quiz_master", "Quiz Master", "Complete 35 quizzes", "🏆", _Q, 35, 350),
        ("quiz_veteran", "Quiz Veteran", "Complete 50 quizzes", "🎖️", _Q, 50, 400),
        ("memory_builder", "Memory Builder", "Create 350 flashcards", "🧱", _F, 350, 350),
        ("memory_champion", "Memory Champion", "Create 500 flashcards", "🧩", _F, 500, 400),
        ("streak_14", "Fortnight Focus", "Study 14 days in a row", "🔥", _S, 14, 400),
        ("streak_21", "Three Week Run", "Study 21 days in a row", "🔥", _S, 21, 450),
        ("month_master", "Month Master", "Keep a 30-day study rhythm", "⭐", _C, 30, 500),
        ("scholar", "Scholar", "Log 400 learning activities", "🎓", _M, 400, 350),
        ("rapid_reviewer", "Rapid Reviewer", "Log 500 learning activities", "⚡", _SP, 500, 350),
        ("exacting_eye", "Exacting Eye", "Log 600 learning activities", "🧐", _A, 600, 350),
        ("polymath", "Polymath", "Log 750 learning activities", "🦉", _M, 750, 350),
        ("level_6", "Skilled Learner", "Reach level 6", "🥉", _L, 6, 800),
        ("level_7", "Adept", "Reach level 7", "🥈", _L, 7, 1000),
    ],
    # Tier 4: expert (non-level XP 11000)
    4: [
        ("document_vault", "Document Vault", "Upload 75 documents", "🔐", _D, 75, 700),
        ("knowledge_curator", "Knowledge Curator", "Upload 100 documents", "🖼️", _D, 100, 800),
        ("quiz_expert", "Quiz Expert", "Complete 75 quizzes", "🥇", _Q, 75, 700),
        ("quiz_centurion", "Quiz Centurion", "Complete 100 quizzes", "💯", _Q, 100, 800),
        ("card_master", "Card Master", "Create 750 flashcards", "🂡", _F, 750, 700),
        ("flashcard_legend", "Flashcard Legend", "Create 1,000 flashcards", "🌠", _F, 1000, 800),
        ("streak_45", "Six Week Streak", "Study 45 days in a row", "🔥", _S, 45, 900),
        ("streak_60", "Two Month Streak", "Study 60 days in a row", "🔥", _S, 60, 1000),
        ("seasoned_habit", "Seasoned Habit", "Keep a 75-day study rhythm", "🍂", _C, 75, 1000),
        ("erudite", "Erudite", "Log 1,000 learning activities", "📜", _M, 1000, 800),
        ("lightning_learner", "Lightning Learner", "Log 1,250 learning activities", "🌩️", _SP, 1250, 900),
        ("flawless_focus", "Flawless Focus", "Log 1,500 learning activities", "💎", _A, 1500, 900),
        ("renaissance_mind", "Renaissance Mind", "Log 1,750 learning activities", "🎨", _M, 1750, 1000),
        ("level_8", "Expert Learner", "Reach level 8", "🔷", _L, 8, 2200),
        ("level_9", "Master Learner", "Reach level 9", "🔶", _L, 9, 2500),
    ],
    # Tier 5: legend (non-level XP 25000)
    5: [
        ("grand_library", "Grand Library", "Upload 150 documents", "🏰", _D, 150, 1500),
        ("document_legend", "Document Legend", "Upload 250 documents", "📖", _D, 250, 2000),
        ("quiz_grandmaster", "Quiz Grandmaster", "Complete 150 quizzes", "♟️", _Q, 150, 1500),
        ("quiz_legend", "Quiz Legend", "Complete 250 quizzes", "👑", _Q, 250, 2000),
        ("flashcard_titan", "Flashcard Titan", "Create 2,000 flashcards", "🗿", _F, 2000, 1500),
        ("memory_palace", "Memory Palace", "Create 3,000 flashcards", "🏯", _F, 3000, 2000),
        ("streak_100", "Dedication Legend", "Study 100 days in a row", "🔥", _S, 100, 2500),
        ("streak_180", "Half Year Streak", "Study 180 days in a row", "🔥", _S, 180, 2500),
        ("year_of_learning", "Year of Learning", "Keep a 365-day study rhythm", "🗓️", _C, 365, 3000),
        ("sage", "Sage", "Log 2,500 learning activities", "🧙", _M, 2500, 1500),
        ("speed_demon", "Speed Demon", "Log 3,000 learning activities", "🏎️", _SP, 3000, 1500),
        ("perfectionist", "Perfectionist", "Log 4,000 learning activities", "🎯", _A, 4000, 1500),
        ("learning_legend", "Learning Legend", "Log 5,000 learning activities", "🏅", _M, 5000, 2000),
        ("level_10", "Grand Scholar", "Reach level 10", "💠", _L, 10, 5000),
        ("level_11", "Luminary", "Reach level 11", "🌞", _L, 11, 6000),
    ],
}


def _build() -> tuple[AchievementDefinition, ...]:
    definitions = []
    order = 0
    for tier in sorted(_TIERS):
        for ach_id, title, description, icon, category, target, xp_reward in _TIERS[tier]:
            definitions.append(AchievementDefinition(
                id=ach_id,
                title=title,
                description=description,
                icon=icon,
                category=category,
                level=tier,
                target=target,
                xp_reward=xp_reward,
                order=order,
            ))
            order += 1
    return tuple(definitions)


ACHIEVEMENTS: tuple[AchievementDefinition, ...] = _build()
ACHIEVEMENTS_BY_ID: Mapping[str, AchievementDefinition] = MappingProxyType({a.id: a for a in ACHIEVEMENTS})
TIERS: Mapping[int, tuple[AchievementDefinition, ...]] = MappingProxyType({
    tier: tuple(a for a in ACHIEVEMENTS if a.level == tier) for tier in range(1, TIER_COUNT + 1)
})


def validate_catalog(definitions: tuple[AchievementDefinition, ...] = ACHIEVEMENTS) -> None:
    """Check catalog invariants. Raises ValueError on the first violation."""
    missing = set(AchievementCategory) - set(COUNTER_EXTRACTORS)
    if missing:
        raise ValueError(f"No counter extractor for categories: {sorted(c.value for c in missing)}")

    ids = [d.id for d in definitions]
    if len(ids) != len(set(ids)):
        raise ValueError("Achievement ids must be unique")

    for tier in range(1, TIER_COUNT + 1):
        count = sum(1 for d in definitions if d.level == tier)
        if count != ACHIEVEMENTS_PER_TIER:
            raise ValueError(f"Tier {tier} has {count} achievements, expected {ACHIEVEMENTS_PER_TIER}")

    for d in definitions:
        if d.target < 1 or d.xp_reward < 0:
            raise ValueError(f"Achievement {d.id!r} has invalid target or reward")


validate_catalog()


def get_definition(achievement_id: str) -> AchievementDefinition:
    try:
        return ACHIEVEMENTS_BY_ID[achievement_id]
    except KeyError:
        raise CatalogLookupMiss(achievement_id) from None


def tier_definitions(tier: int) -> tuple[AchievementDefinition, ...]:
    return TIERS.get(tier, ())
