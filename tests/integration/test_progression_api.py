"""Integration tests for the progression API endpoints."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from studyquest.db.models import User

pytestmark = pytest.mark.asyncio


class TestCatalogAPI:
    async def test_catalog_lists_all_definitions(self, client: AsyncClient):
        resp = await client.get("/api/v1/achievements/catalog")
        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 75
        first = data["achievements"][0]
        assert first == {
            "id": "first_document",
            "title": "First Steps",
            "description": "Upload your first document",
            "icon": "📄",
            "category": "document",
            "tier": 1,
            "target": 1,
            "xp_reward": 50,
        }
        assert {a["tier"] for a in data["achievements"]} == {1, 2, 3, 4, 5}


class TestAchievementsAPI:
    async def test_first_access_creates_tier_one(self, client: AsyncClient, make_user):
        user = await make_user()
        resp = await client.get(f"/api/v1/users/{user.user_id}/achievements")
        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 15
        assert data["unlocked"] == 0
        assert all(a["tier"] == 1 for a in data["achievements"])

    async def test_unknown_user_is_404(self, client: AsyncClient):
        resp = await client.get("/api/v1/users/4040/achievements")
        assert resp.status_code == 404
        assert resp.json() == {"detail": "User 4040 not found"}

    async def test_unlocked_reports_full_progress(self, client: AsyncClient, make_user):
        user = await make_user(total_documents=5)
        await client.post(f"/api/v1/users/{user.user_id}/achievements/check")

        resp = await client.get(f"/api/v1/users/{user.user_id}/achievements/unlocked")
        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 2
        assert all(a["progress"] == 100 and a["status"] == "unlocked" for a in data["achievements"])

    async def test_tiers(self, client: AsyncClient, make_user):
        user = await make_user(total_documents=1)
        await client.get(f"/api/v1/users/{user.user_id}/achievements")

        resp = await client.get(f"/api/v1/users/{user.user_id}/achievements/tiers")
        assert resp.status_code == 200
        data = resp.json()
        assert data["current_tier"] == 1
        assert data["tiers"][0] == {"tier": 1, "state": "in_progress", "unlocked": 1, "total": 15}
        assert data["tiers"][4]["state"] == "not_materialized"

    async def test_check_returns_unlocks(self, client: AsyncClient, make_user):
        user = await make_user(total_quizzes=100)
        resp = await client.post(f"/api/v1/users/{user.user_id}/achievements/check")
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["unlocked"]) == 7
        assert data["leveled_up"] is True
        assert data["xp_gained"] == 800
        assert data["level"]["current_level"] == 2
        assert data["streak_transition"] is None

    async def test_invalid_counter_state_is_422(self, client: AsyncClient, db_session, make_user):
        user = await make_user()
        row = await db_session.get(User, user.user_id)
        row.total_documents = -2
        await db_session.commit()

        resp = await client.post(f"/api/v1/users/{user.user_id}/achievements/check")
        assert resp.status_code == 422
        assert "total_documents" in resp.json()["detail"]


class TestActivityAPI:
    async def test_upload_trigger(self, client: AsyncClient, make_user):
        user = await make_user()
        resp = await client.post(
            f"/api/v1/users/{user.user_id}/activity",
            json={"trigger": "document_uploaded", "count": 1},
        )
        assert resp.status_code == 202
        data = resp.json()
        assert data["warning"] is None
        assert data["unlocked"] == [
            {"achievement_id": "first_document", "title": "First Steps", "tier": 1, "xp_reward": 50},
        ]
        assert data["level"]["total_xp"] == 50
        assert data["level"]["study_streak"] == 1
        assert data["streak_transition"] == "started"

    async def test_failed_progression_still_accepted(self, client: AsyncClient, database):
        resp = await client.post("/api/v1/users/999/activity", json={"trigger": "document_uploaded"})
        assert resp.status_code == 202
        data = resp.json()
        assert data["warning"]
        assert data["unlocked"] == []
        assert data["level"] is None

    async def test_unknown_trigger_rejected(self, client: AsyncClient, make_user):
        user = await make_user()
        resp = await client.post(f"/api/v1/users/{user.user_id}/activity", json={"trigger": "dance"})
        assert resp.status_code == 422
        assert resp.json()["detail"] == "Validation error"

    async def test_negative_count_rejected(self, client: AsyncClient, make_user):
        user = await make_user()
        resp = await client.post(
            f"/api/v1/users/{user.user_id}/activity",
            json={"trigger": "flashcards_generated", "count": -5},
        )
        assert resp.status_code == 422

    async def test_zero_count_rejected(self, client: AsyncClient, make_user):
        user = await make_user()
        resp = await client.post(
            f"/api/v1/users/{user.user_id}/activity",
            json={"trigger": "document_uploaded", "count": 0},
        )
        assert resp.status_code == 422

    async def test_feed(self, client: AsyncClient, make_user):
        user = await make_user()
        await client.post(f"/api/v1/users/{user.user_id}/activity", json={"trigger": "quiz_generated"})

        resp = await client.get(f"/api/v1/users/{user.user_id}/activity")
        assert resp.status_code == 200
        data = resp.json()
        assert data["page"] == 1
        assert data["per_page"] == 20
        assert len(data["entries"]) == 1
        entry = data["entries"][0]
        assert entry["type"] == "achievement"
        assert entry["description"] == "Quiz Rookie"
        assert entry["metadata"] == {"achievement_id": "first_quiz", "xp_reward": 50, "tier": 1}

    async def test_feed_pagination(self, client: AsyncClient, make_user):
        user = await make_user(total_quizzes=100)
        await client.post(f"/api/v1/users/{user.user_id}/achievements/check")

        page_two = await client.get(f"/api/v1/users/{user.user_id}/activity", params={"page": 2, "per_page": 5})
        assert page_two.status_code == 200
        assert len(page_two.json()["entries"]) == 3

    async def test_feed_unknown_user(self, client: AsyncClient, database):
        resp = await client.get("/api/v1/users/31337/activity")
        assert resp.status_code == 404


class TestLevelAPI:
    async def test_level(self, client: AsyncClient, make_user):
        user = await make_user(study_streak=2)
        await client.post(
            f"/api/v1/users/{user.user_id}/activity",
            json={"trigger": "flashcards_generated", "count": 25},
        )

        # 25 cards unlock both flashcard goals and three activity-volume goals
        resp = await client.get(f"/api/v1/users/{user.user_id}/level")
        assert resp.status_code == 200
        data = resp.json()
        assert data["current_level"] == 1
        assert data["total_xp"] == 450
        assert data["current_xp"] == 450
        assert data["next_level_xp"] == 500
        assert data["progress_percent"] == 90
        assert data["study_streak"] == 1
