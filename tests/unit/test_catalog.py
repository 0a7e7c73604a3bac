"""Achievement catalog tests: shape, immutability, reachability."""

import pytest

from studyquest.progression.catalog import (
    ACHIEVEMENTS,
    ACHIEVEMENTS_BY_ID,
    ACHIEVEMENTS_PER_TIER,
    COUNTER_EXTRACTORS,
    TIER_COUNT,
    AchievementCategory,
    counter_value,
    get_definition,
    progress_percent,
    tier_definitions,
    validate_catalog,
)
from studyquest.progression.counters import UserCounters
from studyquest.progression.errors import CatalogLookupMiss
from studyquest.progression.leveling import LevelState, cumulative_xp_for_level


class TestShape:
    def test_seventy_five_definitions(self):
        assert len(ACHIEVEMENTS) == 75

    def test_fifteen_per_tier(self):
        for tier in range(1, TIER_COUNT + 1):
            assert len(tier_definitions(tier)) == ACHIEVEMENTS_PER_TIER

    def test_unique_ids(self):
        assert len(ACHIEVEMENTS_BY_ID) == len(ACHIEVEMENTS)

    def test_order_is_global_and_sequential(self):
        assert [a.order for a in ACHIEVEMENTS] == list(range(75))

    def test_every_category_has_extractor(self):
        assert set(COUNTER_EXTRACTORS) == set(AchievementCategory)

    def test_positive_targets(self):
        assert all(a.target >= 1 for a in ACHIEVEMENTS)

    def test_validates_at_import(self):
        validate_catalog()

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValueError, match="unique"):
            validate_catalog(ACHIEVEMENTS + (ACHIEVEMENTS[0],))

    def test_unknown_tier_is_empty(self):
        assert tier_definitions(6) == ()


class TestImmutability:
    def test_lookup_table_is_read_only(self):
        with pytest.raises(TypeError):
            ACHIEVEMENTS_BY_ID["new"] = ACHIEVEMENTS[0]  # type: ignore[index]

    def test_definitions_are_frozen(self):
        with pytest.raises(AttributeError):
            ACHIEVEMENTS[0].target = 99  # type: ignore[misc]


class TestLookup:
    def test_known_id(self):
        definition = get_definition("document_explorer")
        assert definition.level == 1
        assert definition.target == 5
        assert definition.xp_reward == 50
        assert definition.category is AchievementCategory.DOCUMENT

    def test_unknown_id(self):
        with pytest.raises(CatalogLookupMiss) as exc_info:
            get_definition("retired_badge")
        assert exc_info.value.achievement_id == "retired_badge"


class TestCounters:
    """Category to counter dispatch."""

    COUNTERS = UserCounters(
        user_id=1,
        total_documents=3,
        total_flashcards=40,
        total_quizzes=7,
        study_streak=6,
        level=LevelState(current_level=4, total_xp=2400, current_xp=25, next_level_xp=1687),
    )

    @pytest.mark.parametrize(
        ("category", "expected"),
        [
            (AchievementCategory.DOCUMENT, 3),
            (AchievementCategory.FLASHCARD, 40),
            (AchievementCategory.QUIZ, 7),
            (AchievementCategory.STREAK, 6),
            (AchievementCategory.CONSISTENCY, 6),
            (AchievementCategory.LEVEL, 4),
            (AchievementCategory.MASTERY, 50),
            (AchievementCategory.SPEED, 50),
            (AchievementCategory.ACCURACY, 50),
        ],
    )
    def test_counter_value(self, category, expected):
        assert counter_value(category, self.COUNTERS) == expected

    def test_progress_rounds(self):
        counters = UserCounters(user_id=1, total_documents=5)
        assert progress_percent(get_definition("quick_learner"), counters) == 33
        assert progress_percent(get_definition("well_rounded"), counters) == 17

    def test_progress_caps_at_100(self):
        counters = UserCounters(user_id=1, total_documents=500)
        assert progress_percent(get_definition("first_document"), counters) == 100


class TestReachability:
    """The XP available in each tier pays for that tier's level goals."""

    def test_last_two_of_each_tier_are_level_goals(self):
        for tier in range(1, TIER_COUNT + 1):
            categories = [d.category for d in tier_definitions(tier)]
            assert categories[-2:] == [AchievementCategory.LEVEL, AchievementCategory.LEVEL]
            assert AchievementCategory.LEVEL not in categories[:-2]

    def test_every_tier_can_be_completed(self):
        total_xp = 0
        for tier in range(1, TIER_COUNT + 1):
            definitions = tier_definitions(tier)
            total_xp += sum(d.xp_reward for d in definitions[:-2])
            for level_goal in definitions[-2:]:
                assert total_xp >= cumulative_xp_for_level(level_goal.target), level_goal.id
                total_xp += level_goal.xp_reward
        assert total_xp == 63150
