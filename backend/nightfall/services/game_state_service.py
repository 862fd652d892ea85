"""Game state serialization and pending action computation.

One device is passed around the table, so the view shows the shared board
plus whatever the human currently holding the device needs to act.
"""
from typing import Optional, TYPE_CHECKING

from nightfall.schemas.enums import GamePhase, GameStatus, Role, ActionType
from nightfall.services.actors import current_human_actor, wolf_choices, witch_pending_stage
from nightfall.services.vote_resolution import vote_choices
from nightfall.i18n import t

if TYPE_CHECKING:
    from nightfall.models.game import Game, Player


def _others_alive(game: "Game", player: "Player") -> list[int]:
    return [pid for pid in game.get_alive_ids() if pid != player.id]


def get_pending_action(game: "Game") -> Optional[dict]:
    """
    What the human at the device must do now.

    Returns a dict matching PendingAction schema, or None if the game is
    not waiting on a human.
    """
    player = current_human_actor(game)
    if player is None:
        return None

    lang = game.language
    phase = game.phase
    pending = {"actor": player.id, "actor_role": player.role.value}

    if phase == GamePhase.REVEAL:
        pending.update(
            types=[ActionType.CONFIRM.value],
            message=t("pending.reveal", lang, role=player.role.value),
        )
        if player.role == Role.WEREWOLF:
            pending["wolf_teammates"] = [
                p.id for p in game.get_roster() if p.role == Role.WEREWOLF and p.id != player.id
            ]

    elif phase == GamePhase.NIGHT_WEREWOLF:
        pending.update(
            types=[ActionType.KILL.value, ActionType.SKIP.value],
            choices=wolf_choices(game),
            message=t("pending.wolves", lang),
            wolf_teammates=[p.id for p in game.get_alive_werewolves() if p.id != player.id],
        )

    elif phase == GamePhase.NIGHT_WITCH:
        potions = {"save": game.potions.save, "poison": game.potions.poison}
        if witch_pending_stage(game) == ActionType.SAVE:
            target = game.night.wolves_target
            pending.update(
                types=[ActionType.SAVE.value, ActionType.SKIP.value],
                choices=[target],
                wolves_target=target,
                potions=potions,
                message=t("pending.witch_save", lang, target=target),
            )
        else:
            pending.update(
                types=[ActionType.POISON.value, ActionType.SKIP.value],
                choices=_others_alive(game, player),
                wolves_target=game.night.wolves_target,
                potions=potions,
                message=t("pending.witch_poison", lang),
            )

    elif phase == GamePhase.NIGHT_SEER:
        night = game.night
        if night.seer_check is None:
            pending.update(
                types=[ActionType.CHECK.value],
                choices=_others_alive(game, player),
                message=t("pending.seer_check", lang),
            )
        else:
            result = night.seer_result.value if night.seer_result else None
            pending.update(
                types=[ActionType.CONFIRM.value],
                seer_check=night.seer_check,
                seer_result=result,
                message=t("pending.seer_result", lang, target=night.seer_check, team=result),
            )

    elif phase == GamePhase.DAY_DISCUSS:
        pending.update(types=[ActionType.SPEAK.value], message=t("pending.speak", lang))

    elif phase == GamePhase.DAY_VOTE:
        pending.update(
            types=[ActionType.VOTE.value],
            choices=vote_choices(game, player.id),
            message=t("pending.vote", lang),
        )

    elif phase == GamePhase.HUNTER_ACTION:
        pending.update(
            types=[ActionType.SHOOT.value, ActionType.SKIP.value],
            choices=_others_alive(game, player),
            message=t("pending.hunter", lang),
        )

    else:
        return None

    return pending


def build_state_view(game: "Game") -> dict:
    """Serialise the game for the shared screen.

    Roles stay hidden until the game is over.
    """
    finished = game.status == GameStatus.FINISHED
    players = [
        {
            "id": p.id,
            "personality": p.personality,
            "is_alive": p.is_alive,
            "is_human": p.is_human,
            "role": p.role.value if finished else None,
        }
        for p in game.get_roster()
    ]
    log = [
        {
            "id": entry.id,
            "type": entry.log_type.value,
            "author": entry.author,
            "content": entry.content,
        }
        for entry in game.log
    ]
    return {
        "game_id": game.id,
        "status": game.status.value,
        "day": game.day,
        "phase": game.phase.value,
        "current_turn_player_id": game.current_turn_player_id,
        "players": players,
        "log": log,
        "pending_action": get_pending_action(game),
        "winner": game.winner.value if game.winner else None,
    }
