"""Who the game is waiting on.

Each phase has one relevant actor: the wolves as a bloc, the Witch, the
Seer, the current speaker, the next voter or the dying Hunter. The actor is
classified as HUMAN (wait for input), COMPUTER (ask for a decision) or NONE
(nothing left to wait for, the phase can finish).
"""
from typing import Callable, Optional

from nightfall.models.game import Game, Player
from nightfall.schemas.enums import ActorKind, ActionType, GamePhase, Role
from nightfall.services.vote_resolution import next_human_voter, next_computer_voter


def _kind(player: Optional[Player]) -> ActorKind:
    if player is None:
        return ActorKind.NONE
    return ActorKind.HUMAN if player.is_human else ActorKind.COMPUTER


def _living_turn_holder(game: Game) -> Optional[Player]:
    player = game.get_player(game.current_turn_player_id)
    if player is None or not player.is_alive:
        return None
    return player


def wolf_leader(game: Game) -> Optional[Player]:
    """First living computer wolf; speaks for the pack."""
    for wolf in game.get_alive_werewolves():
        if not wolf.is_human:
            return wolf
    return None


def wolf_choices(game: Game) -> list[int]:
    """Wolves may only target living non-wolves."""
    return [p.id for p in game.get_alive_players() if p.role != Role.WEREWOLF]


def living_witch(game: Game) -> Optional[Player]:
    witch = game.get_player_by_role(Role.WITCH)
    return witch if witch and witch.is_alive else None


def living_seer(game: Game) -> Optional[Player]:
    seer = game.get_player_by_role(Role.SEER)
    return seer if seer and seer.is_alive else None


def witch_pending_stage(game: Game) -> Optional[ActionType]:
    """The Witch's outstanding decision tonight, if any.

    Stage one is the save, offered only with the save potion and a victim.
    Stage two is the poison, offered only with the poison potion and only
    when nobody was saved tonight.
    """
    night = game.night
    if night.witch_done:
        return None
    if (not night.witch_save_decided
            and game.potions.save
            and night.wolves_target is not None):
        return ActionType.SAVE
    if game.potions.poison and not night.witch_save_used:
        return ActionType.POISON
    return None


def _werewolf_actor(game: Game) -> Optional[Player]:
    if game.night.wolves_decided:
        return None
    wolves = game.get_alive_werewolves()
    for wolf in wolves:
        if wolf.is_human:
            return wolf
    return wolves[0] if wolves else None


def _witch_actor(game: Game) -> Optional[Player]:
    witch = living_witch(game)
    if witch is None or witch_pending_stage(game) is None:
        return None
    return witch


def _seer_actor(game: Game) -> Optional[Player]:
    if game.night.seer_done:
        return None
    return living_seer(game)


def _voter(game: Game) -> Optional[Player]:
    return next_human_voter(game) or next_computer_voter(game)


def _reveal_actor(game: Game) -> Optional[Player]:
    return game.get_player(game.current_turn_player_id)


def _hunter_actor(game: Game) -> Optional[Player]:
    return game.get_player(game.current_turn_player_id)


_ACTOR_FINDERS: dict[GamePhase, Callable[[Game], Optional[Player]]] = {
    GamePhase.REVEAL: _reveal_actor,
    GamePhase.NIGHT_WEREWOLF: _werewolf_actor,
    GamePhase.NIGHT_WITCH: _witch_actor,
    GamePhase.NIGHT_SEER: _seer_actor,
    GamePhase.DAY_DISCUSS: _living_turn_holder,
    GamePhase.DAY_VOTE: _voter,
    GamePhase.HUNTER_ACTION: _hunter_actor,
}


def current_actor(game: Game) -> Optional[Player]:
    """The player the current phase is waiting on."""
    finder = _ACTOR_FINDERS.get(game.phase)
    return finder(game) if finder else None


def classify_actor(game: Game) -> ActorKind:
    """HUMAN, COMPUTER or NONE for the current phase."""
    return _kind(current_actor(game))


def current_human_actor(game: Game) -> Optional[Player]:
    """The human holding the device right now, if any."""
    player = current_actor(game)
    return player if player and player.is_human else None
