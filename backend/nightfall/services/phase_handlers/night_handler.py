"""Night phase handlers - reveal, werewolf, witch and seer phases."""
import logging
from typing import TYPE_CHECKING

from nightfall.core.config import settings
from nightfall.i18n import t
from nightfall.models.game import Game
from nightfall.schemas.enums import ActionType, GamePhase, DecisionKind
from nightfall.services.actors import (
    wolf_leader, wolf_choices, living_witch, living_seer, witch_pending_stage
)
from nightfall.services.night_resolution import (
    apply_witch_save, apply_witch_poison, inspect_player
)
from nightfall.services.phase_transitions import enter_phase

if TYPE_CHECKING:
    from nightfall.services.game_engine import GameEngine

logger = logging.getLogger(__name__)


def stale(game: Game) -> dict:
    """Result for a step whose state changed underneath it."""
    return {"status": "stale", "new_phase": game.phase}


def updated(game: Game) -> dict:
    return {"status": "updated", "new_phase": game.phase}


async def _close_phase(game: Game, engine: "GameEngine", message_key: str,
                       pause: float, next_phase: GamePhase) -> dict:
    """Announce the end of a night phase, pause, then move on."""
    game.announce(t(message_key, game.language))
    if not await engine.pace(game, pause):
        return stale(game)
    enter_phase(game, next_phase)
    return updated(game)


async def handle_reveal_done(game: Game, engine: "GameEngine") -> dict:
    """Every human has seen their card - night falls."""
    game.announce(t("reveal.done", game.language))
    if not await engine.pace(game, settings.PACE_REVEAL_SECONDS):
        return stale(game)
    enter_phase(game, GamePhase.NIGHT_WEREWOLF)
    return updated(game)


async def handle_computer_wolves(game: Game, engine: "GameEngine") -> dict:
    """The leading computer wolf picks the pack's victim."""
    leader = wolf_leader(game)
    decision = await engine.request_decision(game, leader, DecisionKind.KILL, wolf_choices(game))
    if decision is None:
        return stale(game)

    game.night.wolves_target = decision.target_id
    game.night.wolves_decided = True
    game.increment_version()
    logger.info(
        f"Game {game.id}: pack decided, wolves_target={decision.target_id}",
        extra={"game_id": game.id}
    )
    return updated(game)


async def handle_wolves_done(game: Game, engine: "GameEngine") -> dict:
    """Wolves have chosen (or there are none left)."""
    game.night.wolves_decided = True
    return await _close_phase(
        game, engine, "night.wolves_close", settings.PACE_WOLVES_SECONDS, GamePhase.NIGHT_WITCH
    )


async def handle_computer_witch(game: Game, engine: "GameEngine") -> dict:
    """One potion decision per step: save first, then maybe poison."""
    witch = living_witch(game)
    night = game.night

    if witch_pending_stage(game) == ActionType.SAVE:
        victim = night.wolves_target
        decision = await engine.request_decision(game, witch, DecisionKind.SAVE, [victim])
        if decision is None:
            return stale(game)
        night.witch_save_decided = True
        if decision.target_id == victim:
            apply_witch_save(game)
        game.increment_version()
        return updated(game)

    # Poison stage: the computer Witch is only sometimes inclined to use it
    if game.rng.random() >= settings.AI_WITCH_POISON_CHANCE:
        night.witch_done = True
        game.increment_version()
        return updated(game)

    others = [pid for pid in game.get_alive_ids() if pid != witch.id]
    decision = await engine.request_decision(game, witch, DecisionKind.POISON, others)
    if decision is None:
        return stale(game)
    if decision.target_id is not None:
        apply_witch_poison(game, decision.target_id)
    night.witch_done = True
    game.increment_version()
    return updated(game)


async def handle_witch_done(game: Game, engine: "GameEngine") -> dict:
    game.night.witch_done = True
    return await _close_phase(
        game, engine, "night.witch_close", settings.PACE_WITCH_SECONDS, GamePhase.NIGHT_SEER
    )


async def handle_computer_seer(game: Game, engine: "GameEngine") -> dict:
    """Computer Seer checks someone it has not checked before, if possible."""
    seer = living_seer(game)
    others = [pid for pid in game.get_alive_ids() if pid != seer.id]
    unchecked = [pid for pid in others if pid not in seer.inspections]

    decision = await engine.request_decision(game, seer, DecisionKind.CHECK, unchecked or others)
    if decision is None:
        return stale(game)

    if decision.target_id is not None:
        team = inspect_player(game, seer, decision.target_id)
        logger.debug(f"Game {game.id}: seer_result {decision.target_id} -> {team.value}")
    # The result lives on in the Seer's private inspections only
    game.night.seer_result = None
    game.night.seer_done = True
    game.increment_version()
    return updated(game)


async def handle_seer_done(game: Game, engine: "GameEngine") -> dict:
    game.night.seer_done = True
    game.night.seer_result = None
    return await _close_phase(
        game, engine, "night.seer_close", settings.PACE_SEER_SECONDS, GamePhase.DAY_ANNOUNCE
    )
