"""Death cascade.

The only place that kills players outside of setup, and the only way into
GAME_OVER. Given who died and where the game would go next, it applies the
deaths, lets a dying Hunter retaliate, checks the win condition and picks
the next phase.
"""
import logging
from typing import Iterable, Optional

from nightfall.models.game import Game
from nightfall.schemas.enums import GamePhase, Role
from nightfall.services.invariants import report_violation
from nightfall.services.phase_transitions import enter_phase
from nightfall.services.turn_order import next_speaker
from nightfall.services.win_condition import check_winner

logger = logging.getLogger(__name__)


def _pending_hunter(game: Game, newly_dead: list[int]) -> Optional[int]:
    pending = None
    for pid in newly_dead:
        player = game.players[pid]
        if player.role != Role.HUNTER:
            continue
        # A poisoned Hunter takes nobody with them
        if game.night.witch_poison_target == pid:
            logger.info(f"Game {game.id}: Player {pid} cannot shoot", extra={"game_id": game.id})
            continue
        if pending is not None:
            report_violation(f"Hunters {pending} and {pid} both waiting to shoot", game.id)
            continue
        pending = pid
    return pending


def resolve_deaths(game: Game, dead_ids: Iterable[int], next_phase: GamePhase) -> dict:
    """Apply deaths and advance the game.

    Args:
        game: Game to mutate
        dead_ids: Players who die now; dead or unknown IDs are ignored
        next_phase: Phase to enter when nothing interrupts

    Returns:
        Step result dict with the phase the game ended up in
    """
    newly_dead = [pid for pid in sorted(set(dead_ids)) if game.kill_player(pid)]
    if newly_dead:
        logger.info(
            f"Game {game.id}: players died: {newly_dead}",
            extra={"game_id": game.id}
        )

    hunter_id = _pending_hunter(game, newly_dead)

    winner = check_winner(game.players.values())
    if winner:
        game.winner = winner
        game.resume_phase = None
        enter_phase(game, GamePhase.GAME_OVER)
        return {"status": "game_over", "new_phase": GamePhase.GAME_OVER, "winner": winner.value}

    if hunter_id is not None:
        game.resume_phase = next_phase
        enter_phase(game, GamePhase.HUNTER_ACTION, turn_holder=hunter_id)
        return {"status": "updated", "new_phase": GamePhase.HUNTER_ACTION}

    game.resume_phase = None

    if next_phase == GamePhase.DAY_DISCUSS:
        first = next_speaker(game.players.values(), 0)
        if first is not None:
            enter_phase(game, GamePhase.DAY_DISCUSS, turn_holder=first)
            return {"status": "updated", "new_phase": GamePhase.DAY_DISCUSS}
        next_phase = GamePhase.DAY_VOTE

    if next_phase == GamePhase.NIGHT_WEREWOLF:
        # Potions persist across nights
        game.reset_night()
        game.reset_votes()

    enter_phase(game, next_phase)
    return {"status": "updated", "new_phase": next_phase}
