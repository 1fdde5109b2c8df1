from __future__ import annotations

import random
from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, timezone

from access_zone.economy.tasks.errors import InvalidQuizResultError

QUIZ_TASK_TYPE = "trivia_quiz"
CHECK_IN_TASK_TYPE = "daily_check_in"

QUIZ_POINTS_PER_CORRECT = {
    "easy": 10,
    "medium": 20,
    "hard": 30,
}
MAX_QUIZ_QUESTIONS = 50

CHECK_IN_CYCLE_DAYS = 7
CHECK_IN_REWARDS = (20, 40, 80, 120, 150, 200)
# (cumulative percent, low, high) for the final day of the cycle
CHECK_IN_BONUS_BANDS = (
    (80, 300, 400),
    (95, 401, 600),
    (99, 601, 800),
    (100, 801, 1000),
)


def day_start_utc(now_utc: datetime) -> datetime:
    return datetime.combine(now_utc.astimezone(timezone.utc).date(), time.min, tzinfo=timezone.utc)


def next_day_start_utc(now_utc: datetime) -> datetime:
    return day_start_utc(now_utc) + timedelta(days=1)


def quiz_points(*, difficulty: str, correct_answers: int, total_questions: int) -> int:
    per_correct = QUIZ_POINTS_PER_CORRECT.get(difficulty.lower())
    if per_correct is None:
        raise InvalidQuizResultError(f"unknown difficulty: {difficulty}")
    if total_questions <= 0 or total_questions > MAX_QUIZ_QUESTIONS:
        raise InvalidQuizResultError("total_questions out of range")
    if correct_answers < 0 or correct_answers > total_questions:
        raise InvalidQuizResultError("correct_answers out of range")
    return correct_answers * per_correct


def current_streak(check_in_dates: Iterable[date], *, today: date) -> int:
    """Count consecutive check-in days ending yesterday or today."""
    days = set(check_in_dates)
    cursor = today if today in days else today - timedelta(days=1)
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def next_cycle_day(streak: int) -> int:
    return streak % CHECK_IN_CYCLE_DAYS + 1


def roll_bonus(rng: random.Random) -> int:
    roll = rng.random() * 100
    for ceiling, low, high in CHECK_IN_BONUS_BANDS:
        if roll < ceiling:
            return rng.randint(low, high)
    _, low, high = CHECK_IN_BONUS_BANDS[-1]
    return rng.randint(low, high)


def check_in_points(day: int, rng: random.Random) -> int:
    if day < 1 or day > CHECK_IN_CYCLE_DAYS:
        raise ValueError("day must be within the check-in cycle")
    if day == CHECK_IN_CYCLE_DAYS:
        return roll_bonus(rng)
    return CHECK_IN_REWARDS[day - 1]
