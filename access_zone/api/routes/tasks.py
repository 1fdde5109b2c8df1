from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from access_zone.api.deps import ensure_profile_active, get_identity
from access_zone.api.schemas import (
    CheckInResponse,
    QuizCompleteRequest,
    QuizCompleteResponse,
    QuizLimitResponse,
)
from access_zone.core.config import get_settings
from access_zone.db.session import SessionLocal
from access_zone.economy.tasks.service import TaskService
from access_zone.services.accounts import get_or_create_profile
from access_zone.services.auth import AuthIdentity

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.get("/quiz/limit", response_model=QuizLimitResponse)
async def quiz_limit(identity: AuthIdentity = Depends(get_identity)) -> QuizLimitResponse:
    async with SessionLocal.begin() as session:
        ensure_profile_active(await get_or_create_profile(session, identity))
        limit = await TaskService.quiz_limit(
            session,
            user_id=identity.user_id,
            daily_limit=get_settings().daily_quiz_limit,
        )
    return QuizLimitResponse(
        used=limit.used,
        limit=limit.limit,
        remaining=limit.remaining,
        can_play=limit.can_play,
        resets_at=limit.resets_at,
    )


@router.post("/quiz/complete", response_model=QuizCompleteResponse)
async def complete_quiz(
    payload: QuizCompleteRequest,
    identity: AuthIdentity = Depends(get_identity),
) -> QuizCompleteResponse:
    async with SessionLocal.begin() as session:
        ensure_profile_active(await get_or_create_profile(session, identity))
        result = await TaskService.complete_quiz(
            session,
            user_id=identity.user_id,
            difficulty=payload.difficulty,
            category=payload.category,
            correct_answers=payload.correct_answers,
            total_questions=payload.total_questions,
            daily_limit=get_settings().daily_quiz_limit,
            now_utc=datetime.now(timezone.utc),
        )
    return QuizCompleteResponse(
        points_earned=result.points_earned,
        correct_answers=result.correct_answers,
        total_questions=result.total_questions,
        remaining=result.remaining,
        new_balance=result.new_balance,
    )


@router.post("/check-in", response_model=CheckInResponse)
async def check_in(identity: AuthIdentity = Depends(get_identity)) -> CheckInResponse:
    async with SessionLocal.begin() as session:
        ensure_profile_active(await get_or_create_profile(session, identity))
        result = await TaskService.check_in(
            session,
            user_id=identity.user_id,
            now_utc=datetime.now(timezone.utc),
        )
    return CheckInResponse(
        day=result.day,
        points_earned=result.points_earned,
        streak=result.streak,
        new_balance=result.new_balance,
    )
