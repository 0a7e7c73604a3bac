"""Account & content store: SQLAlchemy persistence for progression state.

Converts between ORM rows and the engine's value objects. None of these
functions commit; the caller owns the transaction.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from studyquest.db.models import Activity, User, UserAchievement
from studyquest.progression.counters import UserCounters
from studyquest.progression.engine import ActivityEntry
from studyquest.progression.errors import UserNotFound
from studyquest.progression.leveling import LevelState
from studyquest.progression.ledger import AchievementRecord, AchievementStatus


def _to_counters(user: User) -> UserCounters:
    return UserCounters(
        user_id=user.id,
        total_documents=user.total_documents,
        total_flashcards=user.total_flashcards,
        total_quizzes=user.total_quizzes,
        study_streak=user.study_streak,
        last_study_date=user.last_study_date,
        level=LevelState(
            current_level=user.current_level,
            total_xp=user.total_xp,
            current_xp=user.current_xp,
            next_level_xp=user.next_level_xp,
        ),
    )


def _to_record(row: UserAchievement) -> AchievementRecord:
    return AchievementRecord(
        user_id=row.user_id,
        achievement_id=row.achievement_id,
        level=row.level,
        target=row.target,
        level_locked=row.level_locked,
        status=AchievementStatus(row.status),
        progress=row.progress,
        unlocked=row.unlocked,
        unlocked_at=row.unlocked_at,
    )


async def create_user(
    db: AsyncSession,
    display_name: str | None = None,
    email: str | None = None,
) -> UserCounters:
    """Insert a fresh user with zeroed counters."""
    user = User(
        display_name=display_name,
        email=email,
        total_documents=0,
        total_flashcards=0,
        total_quizzes=0,
        study_streak=0,
        current_level=1,
        total_xp=0,
        current_xp=0,
        next_level_xp=LevelState().next_level_xp,
    )
    db.add(user)
    await db.flush()
    return _to_counters(user)


async def get_user(db: AsyncSession, user_id: int, for_update: bool = False) -> UserCounters:
    """Load a user's counters. ``for_update`` row-locks the user for the transaction."""
    stmt = select(User).where(User.id == user_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    user = result.scalar_one_or_none()
    if user is None:
        raise UserNotFound(user_id)
    return _to_counters(user)


async def save_user(db: AsyncSession, counters: UserCounters) -> None:
    result = await db.execute(
        update(User)
        .where(User.id == counters.user_id)
        .values(
            total_documents=counters.total_documents,
            total_flashcards=counters.total_flashcards,
            total_quizzes=counters.total_quizzes,
            study_streak=counters.study_streak,
            last_study_date=counters.last_study_date,
            current_level=counters.level.current_level,
            total_xp=counters.level.total_xp,
            current_xp=counters.level.current_xp,
            next_level_xp=counters.level.next_level_xp,
            updated_at=datetime.now(timezone.utc),
        )
    )
    if result.rowcount == 0:
        raise UserNotFound(counters.user_id)


async def find_achievement_records(
    db: AsyncSession,
    user_id: int,
    tier: int | None = None,
) -> list[AchievementRecord]:
    stmt = select(UserAchievement).where(UserAchievement.user_id == user_id)
    if tier is not None:
        stmt = stmt.where(UserAchievement.level == tier)
    result = await db.execute(stmt.order_by(UserAchievement.level, UserAchievement.id))
    return [_to_record(row) for row in result.scalars()]


async def insert_achievement_records(db: AsyncSession, records: list[AchievementRecord]) -> None:
    if not records:
        return
    now = datetime.now(timezone.utc)
    db.add_all([
        UserAchievement(
            user_id=r.user_id,
            achievement_id=r.achievement_id,
            level=r.level,
            level_locked=r.level_locked,
            status=r.status.value,
            progress=r.progress,
            target=r.target,
            unlocked=r.unlocked,
            unlocked_at=r.unlocked_at,
            updated_at=now,
        )
        for r in records
    ])
    await db.flush()


async def save_achievement_record(db: AsyncSession, record: AchievementRecord) -> None:
    await db.execute(
        update(UserAchievement)
        .where(
            UserAchievement.user_id == record.user_id,
            UserAchievement.achievement_id == record.achievement_id,
        )
        .values(
            status=record.status.value,
            progress=record.progress,
            unlocked=record.unlocked,
            unlocked_at=record.unlocked_at,
            level_locked=record.level_locked,
            updated_at=datetime.now(timezone.utc),
        )
    )


async def append_activity(db: AsyncSession, entry: ActivityEntry) -> None:
    db.add(Activity(
        user_id=entry.user_id,
        type=entry.type,
        title=entry.title,
        description=entry.description,
        activity_metadata=dict(entry.metadata),
        timestamp=entry.timestamp,
    ))


async def list_activities(
    db: AsyncSession,
    user_id: int,
    limit: int = 20,
    offset: int = 0,
) -> list[Activity]:
    """Most recent activity first."""
    result = await db.execute(
        select(Activity)
        .where(Activity.user_id == user_id)
        .order_by(Activity.timestamp.desc(), Activity.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def reset_expired_streaks(db: AsyncSession, cutoff: date) -> int:
    """Zero the streak of every user whose last study date is before ``cutoff``."""
    result = await db.execute(
        update(User)
        .where(
            User.last_study_date < cutoff,
            User.study_streak > 0,
        )
        .values(study_streak=0, updated_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0
