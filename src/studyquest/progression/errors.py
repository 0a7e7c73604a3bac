"""Progression error kinds."""

from __future__ import annotations


class ProgressionError(Exception):
    """Base class for progression engine errors."""


class UserNotFound(ProgressionError):
    """The user referenced by a progression call does not exist."""

    def __init__(self, user_id: int) -> None:
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class CatalogLookupMiss(ProgressionError):
    """An achievement record references an id absent from the catalog."""

    def __init__(self, achievement_id: str) -> None:
        self.achievement_id = achievement_id
        super().__init__(f"Achievement {achievement_id!r} is not in the catalog")


class InvalidCounterState(ProgressionError):
    """Counters or level state are malformed (negative, inconsistent)."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)
