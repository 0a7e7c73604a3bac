"""Progression tables.

Creates users (activity counters and XP ledger), user_achievements (one row
per materialized achievement) and activities (per-user timeline).

Revision ID: 001_progression_tables
Revises: None
Create Date: 2026-10-18
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_progression_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id BIGSERIAL PRIMARY KEY,
            display_name VARCHAR(64),
            email VARCHAR(320) UNIQUE,
            total_documents INTEGER NOT NULL DEFAULT 0 CHECK (total_documents >= 0),
            total_flashcards INTEGER NOT NULL DEFAULT 0 CHECK (total_flashcards >= 0),
            total_quizzes INTEGER NOT NULL DEFAULT 0 CHECK (total_quizzes >= 0),
            study_streak INTEGER NOT NULL DEFAULT 0 CHECK (study_streak >= 0),
            last_study_date DATE,
            current_level INTEGER NOT NULL DEFAULT 1 CHECK (current_level >= 1),
            total_xp BIGINT NOT NULL DEFAULT 0 CHECK (total_xp >= 0),
            current_xp BIGINT NOT NULL DEFAULT 0 CHECK (current_xp >= 0),
            next_level_xp BIGINT NOT NULL DEFAULT 500 CHECK (next_level_xp >= 1),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_users_last_study_date
        ON users(last_study_date) WHERE study_streak > 0
    """)

    # --- User Achievements ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_achievements (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            achievement_id VARCHAR(64) NOT NULL,
            level INTEGER NOT NULL,
            level_locked BOOLEAN NOT NULL DEFAULT false,
            status VARCHAR(16) NOT NULL DEFAULT 'locked',
            progress INTEGER NOT NULL DEFAULT 0 CHECK (progress BETWEEN 0 AND 100),
            target INTEGER NOT NULL,
            unlocked BOOLEAN NOT NULL DEFAULT false,
            unlocked_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ,
            CONSTRAINT uq_user_achievements_user_achievement UNIQUE (user_id, achievement_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_user_achievements_user_level
        ON user_achievements(user_id, level)
    """)

    # --- Activities ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS activities (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            type VARCHAR(16) NOT NULL,
            title TEXT NOT NULL,
            description TEXT,
            metadata JSONB DEFAULT '{}',
            timestamp TIMESTAMPTZ NOT NULL
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_activities_user_ts
        ON activities(user_id, timestamp DESC)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS activities")
    op.execute("DROP TABLE IF EXISTS user_achievements")
    op.execute("DROP TABLE IF EXISTS users")
