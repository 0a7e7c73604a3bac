"""Tests for the arq progression worker jobs."""

from __future__ import annotations

from datetime import timedelta

import pytest

from studyquest.progression import store
from studyquest.progression.streak import today_in
from studyquest.workers.progression_worker import WorkerSettings, apply_activity, expire_streaks

pytestmark = pytest.mark.asyncio


class TestApplyActivity:
    async def test_applies_trigger(self, db_session, make_user) -> None:
        user = await make_user()

        summary = await apply_activity({"redis": None}, user.user_id, "flashcards_generated", 3)

        assert summary == {
            "user_id": user.user_id,
            "unlocked": ["first_flashcards"],
            "xp_gained": 50,
            "level": 1,
        }
        db_session.expire_all()
        counters = await store.get_user(db_session, user.user_id)
        assert counters.total_flashcards == 3

    async def test_unknown_trigger_fails_job(self, make_user) -> None:
        user = await make_user()
        with pytest.raises(ValueError):
            await apply_activity({"redis": None}, user.user_id, "dance")


class TestExpireStreaks:
    async def test_sweep_job(self, db_session, make_user) -> None:
        today = today_in("UTC")
        stale = await make_user(study_streak=6, last_study_date=today - timedelta(days=10))
        await make_user(study_streak=2, last_study_date=today)

        assert await expire_streaks({}) == 1

        db_session.expire_all()
        assert (await store.get_user(db_session, stale.user_id)).study_streak == 0

    async def test_scheduled_daily(self) -> None:
        (job,) = WorkerSettings.cron_jobs
        assert job.coroutine is expire_streaks
        assert job.hour == {0}
        assert job.minute == {5}
        assert expire_streaks in WorkerSettings.functions
