"""User activity counters and the deltas that triggers apply to them."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field, replace
from datetime import date

from studyquest.progression.errors import InvalidCounterState
from studyquest.progression.leveling import LevelState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserCounters:
    """Snapshot of a user's cumulative activity, streak and XP ledger."""

    user_id: int
    total_documents: int = 0
    total_flashcards: int = 0
    total_quizzes: int = 0
    study_streak: int = 0
    last_study_date: date | None = None
    level: LevelState = field(default_factory=LevelState)

    @property
    def total_activity(self) -> int:
        return self.total_documents + self.total_quizzes + self.total_flashcards

    def validate(self) -> None:
        for name in ("total_documents", "total_flashcards", "total_quizzes", "study_streak"):
            value = getattr(self, name)
            if value < 0:
                raise InvalidCounterState(f"{name} must not be negative, got {value}")
        self.level.validate()


@dataclass(frozen=True)
class CounterDelta:
    documents: int = 0
    flashcards: int = 0
    quizzes: int = 0
    qualifies_for_streak: bool = False

    @property
    def is_empty(self) -> bool:
        return not (self.documents or self.flashcards or self.quizzes or self.qualifies_for_streak)

    def apply(self, counters: UserCounters) -> UserCounters:
        """Return counters with this delta added, clamping each counter at zero."""
        return replace(
            counters,
            total_documents=_clamped(counters.user_id, "total_documents", counters.total_documents, self.documents),
            total_flashcards=_clamped(counters.user_id, "total_flashcards", counters.total_flashcards, self.flashcards),
            total_quizzes=_clamped(counters.user_id, "total_quizzes", counters.total_quizzes, self.quizzes),
        )


def _clamped(user_id: int, name: str, current: int, delta: int) -> int:
    value = current + delta
    if value < 0:
        logger.warning("Clamped %s to 0 for user %s (%d %+d)", name, user_id, current, delta)
        return 0
    return value


class ActivityTrigger(str, enum.Enum):
    """External events that feed the progression engine."""

    DOCUMENT_UPLOADED = "document_uploaded"
    DOCUMENT_DELETED = "document_deleted"
    FLASHCARDS_GENERATED = "flashcards_generated"
    QUIZ_GENERATED = "quiz_generated"
    QUIZ_SUBMITTED = "quiz_submitted"
    CHECK = "check"

    def delta(self, count: int = 1) -> CounterDelta:
        if count < 0:
            raise InvalidCounterState(f"Trigger count must not be negative, got {count}")
        if self is ActivityTrigger.DOCUMENT_UPLOADED:
            return CounterDelta(documents=count, qualifies_for_streak=count > 0)
        if self is ActivityTrigger.DOCUMENT_DELETED:
            return CounterDelta(documents=-count)
        if self is ActivityTrigger.FLASHCARDS_GENERATED:
            return CounterDelta(flashcards=count, qualifies_for_streak=count > 0)
        if self is ActivityTrigger.QUIZ_GENERATED:
            return CounterDelta(quizzes=count)
        if self is ActivityTrigger.QUIZ_SUBMITTED:
            return CounterDelta(qualifies_for_streak=True)
        return CounterDelta()
