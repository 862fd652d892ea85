"""Custom exceptions for the application.

Provides standardized error handling across the application.
"""
from typing import Optional


class AppException(Exception):
    """Base exception for application errors."""

    http_status = 400

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[dict] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details
        }


class GameException(AppException):
    """Game-related exceptions."""
    pass


class GameNotFoundError(GameException):
    """Raised when a game is not found."""

    http_status = 404

    def __init__(self, game_id: str):
        super().__init__(
            message=f"Game not found: {game_id}",
            code="GAME_NOT_FOUND",
            details={"game_id": game_id}
        )


class InvariantViolation(GameException):
    """Raised when game state breaks a rule the engine guarantees.

    Only raised when STRICT_INVARIANTS is on; otherwise the offending
    action is logged and ignored.
    """

    http_status = 500

    def __init__(self, message: str, game_id: Optional[str] = None):
        super().__init__(
            message=message,
            code="INVARIANT_VIOLATION",
            details={"game_id": game_id} if game_id else {}
        )


class DecisionError(AppException):
    """Raised when the decision collaborator cannot produce a usable answer."""

    def __init__(self, message: str, kind: Optional[str] = None):
        super().__init__(
            message=message,
            code="DECISION_ERROR",
            details={"kind": kind} if kind else {}
        )
