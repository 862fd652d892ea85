"""Base utilities for action handlers."""
from typing import Optional

from nightfall.models.game import Game
from nightfall.i18n import t


def validate_target(game: Game, target_id: Optional[int], choices: list[int]) -> None:
    """
    Validate action target legality.

    Args:
        game: Current game instance
        target_id: Chosen player ID
        choices: Legal targets for this action

    Raises:
        ValueError: If target is missing or not among the choices
    """
    if target_id is None or target_id not in choices:
        raise ValueError(t("api_responses.invalid_target", language=game.language, target=target_id))


def not_your_turn(game: Game) -> dict:
    return ActionResult.fail(t("api_responses.not_your_turn", language=game.language)).to_dict()


def invalid_for_phase(game: Game) -> dict:
    return ActionResult.fail(t("api_responses.invalid_action_for_phase", language=game.language)).to_dict()


class ActionResult:
    """Standardized action result."""

    def __init__(self, success: bool, message: str, **extra):
        self.success = success
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict:
        result = {"success": self.success, "message": self.message}
        result.update(self.extra)
        return result

    @classmethod
    def ok(cls, message: str, **extra) -> "ActionResult":
        return cls(True, message, **extra)

    @classmethod
    def fail(cls, message: str) -> "ActionResult":
        return cls(False, message)
