from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class QuizLimit:
    used: int
    limit: int
    remaining: int
    resets_at: datetime

    @property
    def can_play(self) -> bool:
        return self.remaining > 0


@dataclass(slots=True)
class QuizCompletion:
    points_earned: int
    correct_answers: int
    total_questions: int
    remaining: int
    new_balance: int


@dataclass(slots=True)
class CheckInResult:
    day: int
    points_earned: int
    streak: int
    new_balance: int
