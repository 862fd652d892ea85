"""Day phase handlers - dawn, discussion, voting and game over."""
import logging
from typing import TYPE_CHECKING, Optional

from nightfall.core.config import settings
from nightfall.i18n import t
from nightfall.models.game import Game, Player
from nightfall.schemas.enums import GamePhase, DecisionKind, LogType
from nightfall.services.death_cascade import resolve_deaths
from nightfall.services.night_resolution import resolve_night_deaths
from nightfall.services.phase_transitions import enter_phase
from nightfall.services.turn_order import next_speaker
from nightfall.services.vote_resolution import (
    tally_votes, next_computer_voter, vote_choices
)
from .night_handler import stale, updated

if TYPE_CHECKING:
    from nightfall.services.game_engine import GameEngine

logger = logging.getLogger(__name__)


async def handle_dawn(game: Game, engine: "GameEngine") -> dict:
    """The dawn message went out on entry; apply the night's deaths."""
    if not await engine.pace(game, settings.PACE_SUNRISE_SECONDS):
        return stale(game)
    return resolve_deaths(game, resolve_night_deaths(game.night), GamePhase.DAY_DISCUSS)


def record_speech(game: Game, speaker: Player, text: str) -> None:
    game.add_log(text, LogType.CHAT, author=f"Player {speaker.id}")


def advance_speaker(game: Game) -> dict:
    """Hand the floor to the next living speaker, or open the vote."""
    current = game.current_turn_player_id or 0
    following = next_speaker(game.players.values(), current)
    if following is None:
        enter_phase(game, GamePhase.DAY_VOTE)
    else:
        game.current_turn_player_id = following
        game.increment_version()
    return updated(game)


async def handle_computer_speech(game: Game, engine: "GameEngine") -> dict:
    speaker = game.get_player(game.current_turn_player_id)
    text = await engine.request_speech(game, speaker)
    if text is None:
        return stale(game)

    record_speech(game, speaker, text)
    game.narrate(text)
    result = advance_speaker(game)

    # Give the room time to hear it
    reading_time = settings.PACE_SPEECH_BASE_SECONDS + len(text) * settings.PACE_SPEECH_PER_CHAR_SECONDS
    await engine.pace(game, reading_time)
    return result


async def handle_silent_speaker(game: Game, engine: "GameEngine") -> dict:
    """The turn-holder is dead or missing; skip them."""
    if game.current_turn_player_id is None:
        enter_phase(game, GamePhase.DAY_VOTE)
        return updated(game)
    logger.info(
        f"Game {game.id}: skipping Player {game.current_turn_player_id}",
        extra={"game_id": game.id}
    )
    return advance_speaker(game)


def record_vote(game: Game, voter_id: int, target_id: Optional[int], is_human: bool) -> None:
    """Store a ballot and log it; None is an abstention."""
    if is_human:
        game.human_votes[voter_id] = target_id
    else:
        game.computer_votes[voter_id] = target_id

    if target_id is None:
        game.add_log(t("vote.abstain", game.language, voter=voter_id), LogType.ACTION)
    else:
        game.add_log(t("vote.cast", game.language, voter=voter_id, target=target_id), LogType.ACTION)


async def handle_computer_vote(game: Game, engine: "GameEngine") -> dict:
    voter = next_computer_voter(game)
    decision = await engine.request_decision(game, voter, DecisionKind.VOTE, vote_choices(game, voter.id))
    if decision is None:
        return stale(game)
    record_vote(game, voter.id, decision.target_id, is_human=False)
    game.increment_version()
    return updated(game)


async def handle_vote_result(game: Game, engine: "GameEngine") -> dict:
    """Everyone has voted: announce, pause, then eliminate (or not)."""
    outcome = tally_votes(game.human_votes, game.computer_votes)
    logger.info(f"Game {game.id}: vote counts {outcome.counts}", extra={"game_id": game.id})

    # A stale pause re-runs this step; the verdict is only announced once
    if not game.verdict_announced:
        if outcome.eliminated is not None:
            game.announce(t("vote.eliminated", game.language, player_id=outcome.eliminated))
        elif outcome.tied:
            game.announce(t("vote.tie", game.language))
        else:
            game.announce(t("vote.no_votes", game.language))
        game.verdict_announced = True

    if not await engine.pace(game, settings.PACE_VERDICT_SECONDS):
        return stale(game)

    game.reset_votes()
    dead = [outcome.eliminated] if outcome.eliminated is not None else []
    return resolve_deaths(game, dead, GamePhase.NIGHT_WEREWOLF)


async def handle_game_over(game: Game, engine: "GameEngine") -> dict:
    return {
        "status": "game_over",
        "new_phase": GamePhase.GAME_OVER,
        "winner": game.winner.value if game.winner else None,
    }
