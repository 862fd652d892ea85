"""Invariant violation policy."""
import logging
from typing import Optional

from nightfall.core.config import settings
from nightfall.core.exceptions import InvariantViolation

logger = logging.getLogger(__name__)


def report_violation(message: str, game_id: Optional[str] = None) -> None:
    """Raise in strict mode; otherwise log so the caller can ignore the action."""
    if settings.STRICT_INVARIANTS:
        raise InvariantViolation(message, game_id=game_id)
    logger.error(f"Invariant violated: {message}", extra={"game_id": game_id})
