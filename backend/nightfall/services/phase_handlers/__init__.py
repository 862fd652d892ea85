"""Phase handlers for game engine - modular phase processing."""
from nightfall.services.phase_handlers.night_handler import (
    handle_reveal_done,
    handle_computer_wolves,
    handle_wolves_done,
    handle_computer_witch,
    handle_witch_done,
    handle_computer_seer,
    handle_seer_done,
)
from nightfall.services.phase_handlers.day_handler import (
    handle_dawn,
    handle_computer_speech,
    handle_silent_speaker,
    handle_computer_vote,
    handle_vote_result,
    handle_game_over,
    record_speech,
    record_vote,
    advance_speaker,
)
from nightfall.services.phase_handlers.shoot_handler import (
    handle_computer_hunter,
    handle_hunter_gone,
    record_hunter_shot,
    continue_after_hunter,
)

__all__ = [
    # Night handlers
    "handle_reveal_done",
    "handle_computer_wolves",
    "handle_wolves_done",
    "handle_computer_witch",
    "handle_witch_done",
    "handle_computer_seer",
    "handle_seer_done",
    # Day handlers
    "handle_dawn",
    "handle_computer_speech",
    "handle_silent_speaker",
    "handle_computer_vote",
    "handle_vote_result",
    "handle_game_over",
    "record_speech",
    "record_vote",
    "advance_speaker",
    # Shoot handlers
    "handle_computer_hunter",
    "handle_hunter_gone",
    "record_hunter_shot",
    "continue_after_hunter",
]
