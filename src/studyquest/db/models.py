"""ORM models for users, achievement records and the activity feed.

Column names mirror the Alembic migration in alembic/versions.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studyquest.db.base import Base, BigIntPK, JSONType


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Account row carrying activity counters and the XP ledger."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    display_name: Mapped[str | None] = mapped_column(String(64), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True, unique=True)

    # --- Activity counters ---
    total_documents: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    total_flashcards: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    total_quizzes: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    study_streak: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    last_study_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # --- Level / XP ---
    current_level: Mapped[int] = mapped_column(Integer, default=1, server_default="1")
    total_xp: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    current_xp: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    next_level_xp: Mapped[int] = mapped_column(BigInteger, default=500, server_default="500")

    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    achievements: Mapped[list[UserAchievement]] = relationship(
        "UserAchievement", back_populates="user", cascade="all, delete-orphan", passive_deletes=True,
    )


# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------


class UserAchievement(Base):
    """One row per (user, achievement) for every materialized tier."""

    __tablename__ = "user_achievements"
    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="uq_user_achievements_user_achievement"),
        Index("idx_user_achievements_user_level", "user_id", "level"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    achievement_id: Mapped[str] = mapped_column(String(64), nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    level_locked: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="locked", server_default="locked")
    progress: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    target: Mapped[int] = mapped_column(Integer, nullable=False)
    unlocked: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    unlocked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped[User] = relationship("User", back_populates="achievements")


# ---------------------------------------------------------------------------
# Activity feed
# ---------------------------------------------------------------------------


class Activity(Base):
    """Append-only per-user activity timeline."""

    __tablename__ = "activities"
    __table_args__ = (
        Index("idx_activities_user_ts", "user_id", "timestamp"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    activity_metadata: Mapped[dict[str, Any]] = mapped_column("metadata", JSONType, default=dict)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
