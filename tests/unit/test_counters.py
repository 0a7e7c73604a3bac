"""Counter delta tests: trigger mapping, clamping, validation."""

import logging

import pytest

from studyquest.progression.counters import ActivityTrigger, CounterDelta, UserCounters
from studyquest.progression.errors import InvalidCounterState


class TestTriggers:
    """Each external trigger maps to one counter change."""

    def test_document_uploaded(self):
        delta = ActivityTrigger.DOCUMENT_UPLOADED.delta()
        assert delta == CounterDelta(documents=1, qualifies_for_streak=True)

    def test_document_deleted(self):
        delta = ActivityTrigger.DOCUMENT_DELETED.delta(2)
        assert delta == CounterDelta(documents=-2)

    def test_flashcards_generated_counts_cards(self):
        delta = ActivityTrigger.FLASHCARDS_GENERATED.delta(12)
        assert delta.flashcards == 12
        assert delta.qualifies_for_streak

    def test_quiz_generated_counts_quiz(self):
        delta = ActivityTrigger.QUIZ_GENERATED.delta()
        assert delta.quizzes == 1
        assert not delta.qualifies_for_streak

    def test_quiz_submitted_only_counts_for_streak(self):
        delta = ActivityTrigger.QUIZ_SUBMITTED.delta()
        assert (delta.documents, delta.flashcards, delta.quizzes) == (0, 0, 0)
        assert delta.qualifies_for_streak

    @pytest.mark.parametrize("trigger", [ActivityTrigger.DOCUMENT_UPLOADED, ActivityTrigger.FLASHCARDS_GENERATED])
    def test_zero_items_do_not_count_for_streak(self, trigger):
        delta = trigger.delta(0)
        assert not delta.qualifies_for_streak
        assert delta.is_empty

    def test_check_is_empty(self):
        assert ActivityTrigger.CHECK.delta().is_empty

    def test_negative_count_rejected(self):
        with pytest.raises(InvalidCounterState):
            ActivityTrigger.DOCUMENT_UPLOADED.delta(-1)


class TestApply:
    def test_adds_to_counters(self):
        counters = UserCounters(user_id=1, total_documents=2, total_quizzes=1)
        after = CounterDelta(documents=3, flashcards=10).apply(counters)
        assert after.total_documents == 5
        assert after.total_flashcards == 10
        assert after.total_quizzes == 1
        assert after.total_activity == 16

    def test_clamps_at_zero(self, caplog):
        counters = UserCounters(user_id=7, total_documents=2)
        with caplog.at_level(logging.WARNING):
            after = CounterDelta(documents=-5).apply(counters)
        assert after.total_documents == 0
        assert "total_documents" in caplog.text

    def test_streak_untouched(self):
        counters = UserCounters(user_id=1, study_streak=4)
        assert CounterDelta(documents=1, qualifies_for_streak=True).apply(counters).study_streak == 4


class TestValidate:
    def test_negative_counter_rejected(self):
        with pytest.raises(InvalidCounterState, match="total_quizzes"):
            UserCounters(user_id=1, total_quizzes=-1).validate()
