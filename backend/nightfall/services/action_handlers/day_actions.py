"""Day phase action handlers for human players."""
from typing import Optional

from nightfall.i18n import t
from nightfall.models.game import Game, Player
from nightfall.schemas.enums import ActionType
from nightfall.services.phase_handlers import record_speech, record_vote, advance_speaker
from nightfall.services.vote_resolution import next_human_voter, vote_choices
from .base import validate_target, ActionResult, not_your_turn, invalid_for_phase


def handle_speech_action(
    game: Game,
    player: Player,
    action_type: ActionType,
    target_id: Optional[int],
    content: Optional[str]
) -> dict:
    """Handle speech action."""
    if action_type != ActionType.SPEAK:
        return invalid_for_phase(game)
    if game.current_turn_player_id != player.id or not player.is_alive:
        return not_your_turn(game)
    if not content:
        return ActionResult.fail(t("api_responses.empty_speech", language=game.language)).to_dict()

    record_speech(game, player, content)
    advance_speaker(game)
    return ActionResult.ok(t("api_responses.speech_recorded", language=game.language)).to_dict()


def handle_vote_action(
    game: Game,
    player: Player,
    action_type: ActionType,
    target_id: Optional[int],
    content: Optional[str] = None
) -> dict:
    """Humans vote one at a time, lowest ID first, and may not abstain."""
    if action_type != ActionType.VOTE:
        return invalid_for_phase(game)

    voter = next_human_voter(game)
    if voter is None or voter.id != player.id:
        return not_your_turn(game)

    try:
        validate_target(game, target_id, vote_choices(game, player.id))
    except ValueError as e:
        return ActionResult.fail(str(e)).to_dict()

    record_vote(game, player.id, target_id, is_human=True)
    return ActionResult.ok(t("api_responses.vote_recorded", language=game.language)).to_dict()
