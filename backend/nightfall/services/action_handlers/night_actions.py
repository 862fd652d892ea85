"""Reveal and night phase action handlers for human players."""
from typing import Optional

from nightfall.i18n import t
from nightfall.models.game import Game, Player
from nightfall.schemas.enums import ActionType, Role
from nightfall.services.actors import wolf_choices, witch_pending_stage
from nightfall.services.night_resolution import (
    apply_witch_save, apply_witch_poison, inspect_player
)
from .base import validate_target, ActionResult, not_your_turn, invalid_for_phase


def handle_reveal_action(
    game: Game,
    player: Player,
    action_type: ActionType,
    target_id: Optional[int],
    content: Optional[str] = None
) -> dict:
    """The turn-holder has seen their card; pass the device on."""
    if action_type != ActionType.CONFIRM:
        return invalid_for_phase(game)
    if game.current_turn_player_id != player.id:
        return not_your_turn(game)

    later = [pid for pid in game.get_human_ids() if pid > player.id]
    game.current_turn_player_id = later[0] if later else None
    if later:
        game.announce(t("reveal.next", game.language, player_id=later[0]))
    return ActionResult.ok(t("api_responses.confirmed", language=game.language)).to_dict()


def handle_werewolf_action(
    game: Game,
    player: Player,
    action_type: ActionType,
    target_id: Optional[int],
    content: Optional[str] = None
) -> dict:
    """Any living human wolf picks the pack's victim, or passes."""
    if player.role != Role.WEREWOLF or not player.is_alive or game.night.wolves_decided:
        return not_your_turn(game)

    if action_type == ActionType.SKIP:
        game.night.wolves_target = None
        game.night.wolves_decided = True
        return ActionResult.ok(t("api_responses.skipped", language=game.language)).to_dict()

    if action_type != ActionType.KILL:
        return invalid_for_phase(game)

    try:
        validate_target(game, target_id, wolf_choices(game))
    except ValueError as e:
        return ActionResult.fail(str(e)).to_dict()

    game.night.wolves_target = target_id
    game.night.wolves_decided = True
    return ActionResult.ok(t("api_responses.target_chosen", language=game.language)).to_dict()


def handle_witch_action(
    game: Game,
    player: Player,
    action_type: ActionType,
    target_id: Optional[int],
    content: Optional[str] = None
) -> dict:
    """Two stages: save tonight's victim, then (if no save) poison someone."""
    if player.role != Role.WITCH or not player.is_alive:
        return not_your_turn(game)

    stage = witch_pending_stage(game)
    night = game.night

    if stage == ActionType.SAVE:
        if action_type == ActionType.SKIP:
            night.witch_save_decided = True
            return ActionResult.ok(t("api_responses.skipped", language=game.language)).to_dict()
        if action_type != ActionType.SAVE:
            return invalid_for_phase(game)
        if target_id is not None and target_id != night.wolves_target:
            return ActionResult.fail(
                t("api_responses.invalid_target", language=game.language, target=target_id)
            ).to_dict()
        apply_witch_save(game)
        return ActionResult.ok(t("api_responses.potion_used", language=game.language)).to_dict()

    if stage == ActionType.POISON:
        if action_type == ActionType.SKIP:
            night.witch_done = True
            return ActionResult.ok(t("api_responses.skipped", language=game.language)).to_dict()
        if action_type != ActionType.POISON:
            return invalid_for_phase(game)
        others = [pid for pid in game.get_alive_ids() if pid != player.id]
        try:
            validate_target(game, target_id, others)
        except ValueError as e:
            return ActionResult.fail(str(e)).to_dict()
        apply_witch_poison(game, target_id)
        return ActionResult.ok(t("api_responses.potion_used", language=game.language)).to_dict()

    return invalid_for_phase(game)


def handle_seer_action(
    game: Game,
    player: Player,
    action_type: ActionType,
    target_id: Optional[int],
    content: Optional[str] = None
) -> dict:
    """Check one player, read the result, then confirm."""
    if player.role != Role.SEER or not player.is_alive or game.night.seer_done:
        return not_your_turn(game)

    night = game.night
    if night.seer_check is None:
        if action_type != ActionType.CHECK:
            return invalid_for_phase(game)
        others = [pid for pid in game.get_alive_ids() if pid != player.id]
        try:
            validate_target(game, target_id, others)
        except ValueError as e:
            return ActionResult.fail(str(e)).to_dict()
        team = inspect_player(game, player, target_id)
        return ActionResult.ok(
            t("api_responses.check_result", language=game.language, target=target_id, team=team.value),
            target_id=target_id,
            team=team.value
        ).to_dict()

    if action_type != ActionType.CONFIRM:
        return invalid_for_phase(game)
    night.seer_result = None
    night.seer_done = True
    return ActionResult.ok(t("api_responses.confirmed", language=game.language)).to_dict()
