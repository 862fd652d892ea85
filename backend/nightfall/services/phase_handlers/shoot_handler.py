"""Hunter revenge shot handlers."""
import logging
from typing import TYPE_CHECKING, Optional

from nightfall.core.config import settings
from nightfall.i18n import t
from nightfall.models.game import Game
from nightfall.schemas.enums import GamePhase, DecisionKind, LogType
from nightfall.services.death_cascade import resolve_deaths
from .night_handler import stale

if TYPE_CHECKING:
    from nightfall.services.game_engine import GameEngine

logger = logging.getLogger(__name__)


def record_hunter_shot(game: Game, hunter_id: int, target_id: Optional[int]) -> None:
    if target_id is None:
        game.add_log(t("hunter.shoots_nobody", game.language, hunter=hunter_id), LogType.ACTION)
    else:
        game.add_log(t("hunter.shoots", game.language, hunter=hunter_id, target=target_id), LogType.ACTION)


def continue_after_hunter(game: Game, target_id: Optional[int]) -> dict:
    """Apply the shot and resume where the interrupted cascade was heading."""
    resume = game.resume_phase or GamePhase.NIGHT_WEREWOLF
    dead = [target_id] if target_id is not None else []
    return resolve_deaths(game, dead, resume)


async def handle_computer_hunter(game: Game, engine: "GameEngine") -> dict:
    hunter = game.get_player(game.current_turn_player_id)
    others = [pid for pid in game.get_alive_ids() if pid != hunter.id]

    decision = await engine.request_decision(game, hunter, DecisionKind.KILL, others)
    if decision is None:
        return stale(game)

    record_hunter_shot(game, hunter.id, decision.target_id)
    if not await engine.pace(game, settings.PACE_HUNTER_SECONDS):
        return stale(game)
    return continue_after_hunter(game, decision.target_id)


async def handle_hunter_gone(game: Game, engine: "GameEngine") -> dict:
    """No Hunter to wait on; carry on without a shot."""
    logger.warning(f"Game {game.id}: hunter turn without a hunter", extra={"game_id": game.id})
    return continue_after_hunter(game, None)
