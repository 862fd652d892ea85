"""Hunter shot action handler for human players."""
from typing import Optional

from nightfall.i18n import t
from nightfall.models.game import Game, Player
from nightfall.schemas.enums import ActionType, Role
from nightfall.services.phase_handlers import continue_after_hunter, record_hunter_shot
from .base import validate_target, ActionResult, not_your_turn, invalid_for_phase


def handle_shoot_action(
    game: Game,
    player: Player,
    action_type: ActionType,
    target_id: Optional[int],
    content: Optional[str] = None
) -> dict:
    """The dead Hunter takes someone with them, or passes."""
    if player.role != Role.HUNTER or game.current_turn_player_id != player.id:
        return not_your_turn(game)

    if action_type == ActionType.SKIP:
        record_hunter_shot(game, player.id, None)
        result = continue_after_hunter(game, None)
        return ActionResult.ok(
            t("api_responses.skipped", language=game.language), new_phase=result["new_phase"]
        ).to_dict()

    if action_type != ActionType.SHOOT:
        return invalid_for_phase(game)

    others = [pid for pid in game.get_alive_ids() if pid != player.id]
    try:
        validate_target(game, target_id, others)
    except ValueError as e:
        return ActionResult.fail(str(e)).to_dict()

    record_hunter_shot(game, player.id, target_id)
    result = continue_after_hunter(game, target_id)
    return ActionResult.ok(
        t("api_responses.shot_fired", language=game.language), new_phase=result["new_phase"]
    ).to_dict()
