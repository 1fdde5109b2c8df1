from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from access_zone.economy.catalog.errors import (
    CatalogError,
    CatalogItemConflictError,
    CatalogItemNotFoundError,
)
from access_zone.economy.ledger.errors import (
    DuplicateTransactionError,
    EmptyDescriptionError,
    InsufficientPointsError,
    InvalidPointsError,
    LedgerError,
    NegativeBalanceError,
    ProfileNotFoundError,
)
from access_zone.economy.promo.errors import (
    PromoAlreadyRedeemedError,
    PromoCodeConflictError,
    PromoCodeNotFoundError,
    PromoError,
    PromoExhaustedError,
    PromoExpiredError,
    PromoInactiveError,
    PromoInvalidError,
    PromoNotStartedError,
    PromoUserNotFoundError,
)
from access_zone.economy.redemptions.errors import (
    ActivationCodeRequiredError,
    PointsCostMismatchError,
    RedemptionError,
    RedemptionNotFoundError,
    RedemptionTransitionError,
    RedemptionValidationError,
    SubscriptionUnavailableError,
)
from access_zone.economy.tasks.errors import (
    AlreadyCheckedInError,
    DailyLimitReachedError,
    InvalidQuizResultError,
    TaskError,
)

logger = structlog.get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"
BACKEND_UNAVAILABLE_MESSAGE = "Service temporarily unavailable"

# (status, code, message); a None message means the exception text is shown
DOMAIN_ERRORS: dict[type[Exception], tuple[int, str, str | None]] = {
    ProfileNotFoundError: (404, "E_PROFILE_NOT_FOUND", "Profile not found"),
    InvalidPointsError: (400, "E_INVALID_POINTS", "Points must be a non-zero number"),
    EmptyDescriptionError: (400, "E_DESCRIPTION_REQUIRED", "Description is required"),
    DuplicateTransactionError: (409, "E_DUPLICATE_TRANSACTION", "Duplicate transaction detected"),
    InsufficientPointsError: (400, "E_INSUFFICIENT_POINTS", "Insufficient points"),
    NegativeBalanceError: (400, "E_NEGATIVE_BALANCE", "Cannot reduce points below zero"),
    PromoInvalidError: (404, "E_PROMO_INVALID", "Invalid promo code"),
    PromoUserNotFoundError: (404, "E_PROMO_INVALID", "Invalid promo code"),
    PromoInactiveError: (422, "E_PROMO_INACTIVE", "This promo code is not active"),
    PromoNotStartedError: (422, "E_PROMO_NOT_STARTED", "This promo code is not valid yet"),
    PromoExpiredError: (410, "E_PROMO_EXPIRED", "This promo code has expired"),
    PromoExhaustedError: (422, "E_PROMO_EXHAUSTED", "This promo code has reached its usage limit"),
    PromoAlreadyRedeemedError: (
        409,
        "E_PROMO_ALREADY_REDEEMED",
        "You have already redeemed this code",
    ),
    PromoCodeConflictError: (409, "E_PROMO_CODE_EXISTS", "Promo code already exists"),
    PromoCodeNotFoundError: (404, "E_PROMO_CODE_NOT_FOUND", "Promo code not found"),
    ActivationCodeRequiredError: (
        400,
        "E_ACTIVATION_CODE_REQUIRED",
        "Activation code is required for completed status",
    ),
    PointsCostMismatchError: (400, "E_POINTS_COST_MISMATCH", "Points cost does not match"),
    RedemptionValidationError: (400, "E_VALIDATION", None),
    RedemptionNotFoundError: (404, "E_REDEMPTION_NOT_FOUND", "Redemption request not found"),
    RedemptionTransitionError: (
        409,
        "E_INVALID_TRANSITION",
        "Redemption request is already finalised",
    ),
    SubscriptionUnavailableError: (409, "E_OUT_OF_STOCK", "This subscription is out of stock"),
    CatalogItemNotFoundError: (404, "E_SUBSCRIPTION_NOT_FOUND", "Subscription not found"),
    CatalogItemConflictError: (
        409,
        "E_SUBSCRIPTION_EXISTS",
        "Subscription with this duration already exists",
    ),
    DailyLimitReachedError: (409, "E_DAILY_LIMIT_REACHED", "Daily limit reached"),
    AlreadyCheckedInError: (409, "E_ALREADY_CHECKED_IN", "Already checked in today"),
    InvalidQuizResultError: (400, "E_INVALID_QUIZ_RESULT", None),
}

_DEFAULT_CODES = {
    status.HTTP_400_BAD_REQUEST: "E_BAD_REQUEST",
    status.HTTP_401_UNAUTHORIZED: "E_UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "E_FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "E_NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "E_METHOD_NOT_ALLOWED",
}


def api_error(status_code: int, code: str, message: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"code": code, "error": message})


def error_body(message: str, code: str) -> dict[str, str]:
    return {"error": message, "code": code}


def resolve_domain_error(exc: Exception) -> tuple[int, str, str]:
    for klass in type(exc).__mro__:
        mapped = DOMAIN_ERRORS.get(klass)
        if mapped is None:
            continue
        status_code, code, message = mapped
        return status_code, code, message if message is not None else (str(exc) or code)
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "E_INTERNAL", INTERNAL_ERROR_MESSAGE


async def _http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail: Any = exc.detail
    if isinstance(detail, dict):
        code = str(detail.get("code") or _DEFAULT_CODES.get(exc.status_code, "E_HTTP"))
        message = str(detail.get("error") or code)
    else:
        code = _DEFAULT_CODES.get(exc.status_code, "E_HTTP")
        message = str(detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message, code),
        headers=getattr(exc, "headers", None),
    )


async def _validation_exception_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = sorted(
        {
            ".".join(str(part) for part in error.get("loc", ())[1:]) or "body"
            for error in exc.errors()
        }
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            **error_body("Missing or invalid fields", "E_VALIDATION"),
            "fields": fields,
        },
    )


async def _domain_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code, code, message = resolve_domain_error(exc)
    logger.info(
        "request_rejected",
        path=request.url.path,
        error_code=code,
        status_code=status_code,
    )
    return JSONResponse(status_code=status_code, content=error_body(message, code))


async def _backend_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "backend_unavailable",
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=error_body(BACKEND_UNAVAILABLE_MESSAGE, "E_BACKEND_UNAVAILABLE"),
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_request_error",
        path=request.url.path,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(INTERNAL_ERROR_MESSAGE, "E_INTERNAL"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    for domain_error in (LedgerError, PromoError, RedemptionError, TaskError, CatalogError):
        app.add_exception_handler(domain_error, _domain_exception_handler)
    for backend_error in (OperationalError, InterfaceError, ConnectionError):
        app.add_exception_handler(backend_error, _backend_unavailable_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
