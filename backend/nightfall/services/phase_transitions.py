"""Phase entry.

Every phase change goes through ``enter_phase`` so the state version, the
turn-holder and the entry announcements stay consistent.
"""
import logging
from typing import Callable, Optional

from nightfall.i18n import t
from nightfall.models.game import Game
from nightfall.schemas.enums import GamePhase, GameStatus
from nightfall.services.night_resolution import resolve_night_deaths

logger = logging.getLogger(__name__)


def _enter_reveal(game: Game) -> None:
    game.status = GameStatus.PLAYING
    if game.current_turn_player_id is not None:
        game.announce(t("game.started", game.language, player_id=game.current_turn_player_id))
    else:
        game.announce(t("game.started_no_humans", game.language))


def _enter_werewolf(game: Game) -> None:
    game.announce(
        t("night.wolves_wake", game.language),
        speech=t("night.wolves_wake_speech", game.language)
    )


def _enter_witch(game: Game) -> None:
    game.announce(
        t("night.witch_wake", game.language),
        speech=t("night.witch_wake_speech", game.language)
    )


def _enter_seer(game: Game) -> None:
    game.announce(
        t("night.seer_wake", game.language),
        speech=t("night.seer_wake_speech", game.language)
    )


def _enter_announce(game: Game) -> None:
    deaths = resolve_night_deaths(game.night)
    if deaths:
        ids = ", ".join(str(pid) for pid in deaths)
        game.announce(t("day.sunrise_deaths", game.language, player_ids=ids))
    else:
        game.announce(t("day.sunrise_peaceful", game.language))


def _enter_discuss(game: Game) -> None:
    game.day += 1
    game.announce(t(
        "day.discussion_start", game.language,
        day=game.day, player_id=game.current_turn_player_id
    ))


def _enter_vote(game: Game) -> None:
    game.reset_votes()
    game.announce(t("day.discussion_end", game.language))


def _enter_hunter(game: Game) -> None:
    game.announce(t("hunter.died", game.language, player_id=game.current_turn_player_id))


def _enter_game_over(game: Game) -> None:
    game.status = GameStatus.FINISHED
    team = game.winner.value if game.winner else "?"
    game.announce(t("game.over", game.language, team=team))


_ON_ENTER: dict[GamePhase, Callable[[Game], None]] = {
    GamePhase.REVEAL: _enter_reveal,
    GamePhase.NIGHT_WEREWOLF: _enter_werewolf,
    GamePhase.NIGHT_WITCH: _enter_witch,
    GamePhase.NIGHT_SEER: _enter_seer,
    GamePhase.DAY_ANNOUNCE: _enter_announce,
    GamePhase.DAY_DISCUSS: _enter_discuss,
    GamePhase.DAY_VOTE: _enter_vote,
    GamePhase.HUNTER_ACTION: _enter_hunter,
    GamePhase.GAME_OVER: _enter_game_over,
}


def enter_phase(game: Game, phase: GamePhase, turn_holder: Optional[int] = None) -> None:
    """Move the game into ``phase`` and run its entry effects."""
    if game.phase == GamePhase.GAME_OVER:
        logger.warning(
            f"Game {game.id}: ignoring transition to {phase.value} after game over",
            extra={"game_id": game.id}
        )
        return

    previous = game.phase
    game.phase = phase
    game.current_turn_player_id = turn_holder
    game.increment_version()
    logger.info(
        f"Game {game.id}: {previous.value} -> {phase.value} (day {game.day})",
        extra={"game_id": game.id}
    )

    on_enter = _ON_ENTER.get(phase)
    if on_enter:
        on_enter(game)
