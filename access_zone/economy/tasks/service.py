from __future__ import annotations

import random
from datetime import datetime, timezone
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from access_zone.db.models.tasks import Task
from access_zone.db.repo.profiles_repo import ProfilesRepo
from access_zone.db.repo.tasks_repo import TasksRepo
from access_zone.economy.ledger.errors import ProfileNotFoundError
from access_zone.economy.ledger.service import LedgerService
from access_zone.economy.tasks.errors import AlreadyCheckedInError, DailyLimitReachedError
from access_zone.economy.tasks.rules import (
    CHECK_IN_TASK_TYPE,
    QUIZ_TASK_TYPE,
    check_in_points,
    current_streak,
    day_start_utc,
    next_cycle_day,
    next_day_start_utc,
    quiz_points,
)
from access_zone.economy.tasks.types import CheckInResult, QuizCompletion, QuizLimit

logger = structlog.get_logger(__name__)


class TaskService:
    @staticmethod
    async def quiz_limit(
        session: AsyncSession,
        *,
        user_id: UUID,
        daily_limit: int,
        now_utc: datetime | None = None,
    ) -> QuizLimit:
        now_utc = now_utc or datetime.now(timezone.utc)
        used = await TasksRepo.count_for_user_since(
            session,
            user_id=user_id,
            task_type=QUIZ_TASK_TYPE,
            since_utc=day_start_utc(now_utc),
        )
        return QuizLimit(
            used=used,
            limit=daily_limit,
            remaining=max(0, daily_limit - used),
            resets_at=next_day_start_utc(now_utc),
        )

    @staticmethod
    async def complete_quiz(
        session: AsyncSession,
        *,
        user_id: UUID,
        difficulty: str,
        category: str,
        correct_answers: int,
        total_questions: int,
        daily_limit: int,
        now_utc: datetime | None = None,
    ) -> QuizCompletion:
        now_utc = now_utc or datetime.now(timezone.utc)
        points = quiz_points(
            difficulty=difficulty,
            correct_answers=correct_answers,
            total_questions=total_questions,
        )

        profile = await ProfilesRepo.get_by_id_for_update(session, user_id)
        if profile is None:
            raise ProfileNotFoundError
        limit = await TaskService.quiz_limit(
            session,
            user_id=user_id,
            daily_limit=daily_limit,
            now_utc=now_utc,
        )
        if not limit.can_play:
            raise DailyLimitReachedError

        new_balance = profile.points
        if points > 0:
            change = await LedgerService.earn_for_locked_profile(
                session,
                profile=profile,
                points=points,
                description=(
                    f"Trivia quiz: {category.strip() or 'General'} ({difficulty.lower()}) "
                    f"- {correct_answers}/{total_questions} correct"
                ),
                task_type=QUIZ_TASK_TYPE,
                now_utc=now_utc,
            )
            new_balance = change.new_points

        await TasksRepo.create(
            session,
            task=Task(
                id=uuid4(),
                user_id=user_id,
                task_type=QUIZ_TASK_TYPE,
                task_id=f"{category.strip().lower() or 'general'}:{difficulty.lower()}",
                points_earned=points,
                completed_at=now_utc,
            ),
        )

        logger.info(
            "quiz_completed",
            user_id=str(user_id),
            difficulty=difficulty,
            points=points,
        )
        return QuizCompletion(
            points_earned=points,
            correct_answers=correct_answers,
            total_questions=total_questions,
            remaining=limit.remaining - 1,
            new_balance=new_balance,
        )

    @staticmethod
    async def check_in(
        session: AsyncSession,
        *,
        user_id: UUID,
        now_utc: datetime | None = None,
        rng: random.Random | None = None,
    ) -> CheckInResult:
        now_utc = now_utc or datetime.now(timezone.utc)
        rng = rng or random.Random()

        profile = await ProfilesRepo.get_by_id_for_update(session, user_id)
        if profile is None:
            raise ProfileNotFoundError

        completed = await TasksRepo.list_completed_at(
            session,
            user_id=user_id,
            task_type=CHECK_IN_TASK_TYPE,
        )
        today = now_utc.astimezone(timezone.utc).date()
        dates = [value.astimezone(timezone.utc).date() for value in completed]
        if today in dates:
            raise AlreadyCheckedInError

        streak = current_streak(dates, today=today)
        day = next_cycle_day(streak)
        points = check_in_points(day, rng)

        change = await LedgerService.earn_for_locked_profile(
            session,
            profile=profile,
            points=points,
            description=f"Daily check-in: Day {day}",
            task_type=CHECK_IN_TASK_TYPE,
            now_utc=now_utc,
        )
        await TasksRepo.create(
            session,
            task=Task(
                id=uuid4(),
                user_id=user_id,
                task_type=CHECK_IN_TASK_TYPE,
                task_id=f"day_{day}",
                points_earned=points,
                completed_at=now_utc,
            ),
        )
        logger.info("daily_check_in_completed", user_id=str(user_id), day=day, points=points)
        return CheckInResult(
            day=day,
            points_earned=points,
            streak=streak + 1,
            new_balance=change.new_points,
        )
