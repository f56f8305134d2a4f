"""
Typed application errors and their FastAPI handlers.

Every failure the RSVP engine or the game lifecycle manager can report is an
`AppError` subclass carrying a stable `code`, an HTTP status and optional
retry hints. Endpoints let these propagate; the handlers registered in
`matchup.main` turn them into structured JSON responses.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError, OperationalError

logger = logging.getLogger(__name__)


class ErrorCategory:
    """Error categories for structured error handling"""
    VALIDATION = "validation_error"
    NOT_FOUND = "not_found_error"
    CONFLICT = "conflict_error"
    FORBIDDEN = "forbidden_error"
    DATABASE = "database_error"
    TIMEOUT = "timeout_error"
    INTERNAL = "internal_error"


class AppError(Exception):
    """Base application error with structured information"""

    code = "APP_ERROR"

    def __init__(
        self,
        message: str,
        category: str = ErrorCategory.INTERNAL,
        status_code: int = 500,
        details: Optional[dict] = None,
        retry_after: Optional[int] = None,
    ):
        self.message = message
        self.category = category
        self.status_code = status_code
        self.details = details or {}
        self.retry_after = retry_after
        super().__init__(self.message)


# --- Lookup failures ---

class GameNotFound(AppError):
    code = "GAME_NOT_FOUND"

    def __init__(self, game_id: str):
        super().__init__(
            message="Game not found",
            category=ErrorCategory.NOT_FOUND,
            status_code=404,
            details={"gameId": game_id},
        )


class VenueNotFound(AppError):
    code = "VENUE_NOT_FOUND"

    def __init__(self, venue_id: str):
        super().__init__(
            message="Venue not found",
            category=ErrorCategory.NOT_FOUND,
            status_code=404,
            details={"venueId": venue_id},
        )


# --- RSVP rule violations ---

class GameNotJoinable(AppError):
    code = "GAME_NOT_JOINABLE"

    def __init__(self, game_id: str, status: str):
        super().__init__(
            message="Cannot join this game",
            category=ErrorCategory.VALIDATION,
            status_code=400,
            details={"gameId": game_id, "gameStatus": status},
        )


class AlreadyJoined(AppError):
    code = "ALREADY_JOINED"

    def __init__(self, game_id: str, rsvp_status: str):
        super().__init__(
            message="You have already joined this game",
            category=ErrorCategory.VALIDATION,
            status_code=400,
            details={"gameId": game_id, "rsvpStatus": rsvp_status},
        )


class HostCannotLeave(AppError):
    code = "HOST_CANNOT_LEAVE"

    def __init__(self, game_id: str):
        super().__init__(
            message="Host cannot leave the game. Cancel it instead.",
            category=ErrorCategory.VALIDATION,
            status_code=400,
            details={"gameId": game_id},
        )


class NotJoined(AppError):
    code = "NOT_JOINED"

    def __init__(self, game_id: str):
        super().__init__(
            message="You are not in this game",
            category=ErrorCategory.VALIDATION,
            status_code=400,
            details={"gameId": game_id},
        )


class CapacityBelowConfirmed(AppError):
    code = "CAPACITY_BELOW_CONFIRMED"

    def __init__(self, game_id: str, requested: int, confirmed: int):
        super().__init__(
            message=(
                f"Max players cannot be lower than the {confirmed} confirmed players"
            ),
            category=ErrorCategory.VALIDATION,
            status_code=400,
            details={"gameId": game_id, "requested": requested, "confirmed": confirmed},
        )


class InvalidPlayerLimits(AppError):
    code = "INVALID_PLAYER_LIMITS"

    def __init__(self, min_players: int, max_players: int):
        super().__init__(
            message="Min players cannot exceed max players",
            category=ErrorCategory.VALIDATION,
            status_code=400,
            details={"minPlayers": min_players, "maxPlayers": max_players},
        )


# --- Lifecycle / authorization ---

class InvalidStatusTransition(AppError):
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, game_id: str, current: str, requested: str):
        super().__init__(
            message=f"Cannot change game status from {current} to {requested}",
            category=ErrorCategory.CONFLICT,
            status_code=409,
            details={"gameId": game_id, "current": current, "requested": requested},
        )


class Forbidden(AppError):
    code = "FORBIDDEN"

    def __init__(self, message: str = "Not authorized to modify this game"):
        super().__init__(
            message=message,
            category=ErrorCategory.FORBIDDEN,
            status_code=403,
        )


# --- Storage serialization failures (retryable) ---

class StorageConflict(AppError):
    code = "STORAGE_CONFLICT"

    def __init__(self, game_id: str, details: Optional[dict] = None):
        super().__init__(
            message="The game was modified concurrently. Please try again.",
            category=ErrorCategory.CONFLICT,
            status_code=409,
            details={"gameId": game_id, **(details or {})},
            retry_after=1,
        )


class StorageTimeout(AppError):
    code = "STORAGE_TIMEOUT"

    def __init__(self, game_id: str, details: Optional[dict] = None):
        super().__init__(
            message="The game is busy. Please try again.",
            category=ErrorCategory.TIMEOUT,
            status_code=503,
            details={"gameId": game_id, **(details or {})},
            retry_after=2,
        )


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


async def app_error_handler(request: Request, error: AppError) -> JSONResponse:
    """Handle structured application errors"""
    log = logger.warning if error.status_code < 500 else logger.error
    log(
        f"Application error: {error.code}",
        extra={
            "category": error.category,
            "error_code": error.code,
            "status_code": error.status_code,
            "path": request.url.path,
            "method": request.method,
            "details": error.details,
        },
    )

    headers = {}
    if error.retry_after:
        headers["Retry-After"] = str(error.retry_after)

    return JSONResponse(
        status_code=error.status_code,
        content={
            "error": {
                "category": error.category,
                "code": error.code,
                "message": error.message,
                "timestamp": _timestamp(),
                "path": request.url.path,
                **error.details,
            }
        },
        headers=headers,
    )


async def validation_error_handler(
    request: Request, error: RequestValidationError
) -> JSONResponse:
    """Handle FastAPI validation errors"""
    errors = [
        {
            "field": ".".join(str(loc) for loc in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in error.errors()
    ]

    logger.warning(
        f"Validation error on {request.url.path}",
        extra={"errors": errors, "method": request.method},
    )

    return JSONResponse(
        status_code=400,
        content={
            "error": {
                "category": ErrorCategory.VALIDATION,
                "code": "VALIDATION_FAILED",
                "message": errors[0]["message"] if errors else "Request validation failed",
                "timestamp": _timestamp(),
                "path": request.url.path,
                "validation_errors": errors,
            }
        },
    )


async def database_error_handler(request: Request, error: SQLAlchemyError) -> JSONResponse:
    """Handle database errors that escaped the engine's own mapping"""
    is_connection_error = isinstance(error, OperationalError)

    logger.error(
        f"Database error: {type(error).__name__}",
        extra={
            "error": str(error),
            "path": request.url.path,
            "method": request.method,
            "is_connection_error": is_connection_error,
        },
        exc_info=True,
    )

    return JSONResponse(
        status_code=503 if is_connection_error else 500,
        content={
            "error": {
                "category": ErrorCategory.DATABASE,
                "code": "DATABASE_ERROR",
                "message": "Database operation failed. Please try again.",
                "timestamp": _timestamp(),
                "path": request.url.path,
            }
        },
        headers={"Retry-After": "30" if is_connection_error else "10"},
    )
