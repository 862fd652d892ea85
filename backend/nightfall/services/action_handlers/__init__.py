"""Action handlers for human player actions.

This module exports all action handlers used by game_engine.py.
"""
from .night_actions import (
    handle_reveal_action,
    handle_werewolf_action,
    handle_witch_action,
    handle_seer_action,
)
from .day_actions import (
    handle_speech_action,
    handle_vote_action,
)
from .shoot_actions import handle_shoot_action
from .base import validate_target, ActionResult

__all__ = [
    # Night actions
    "handle_reveal_action",
    "handle_werewolf_action",
    "handle_witch_action",
    "handle_seer_action",
    # Day actions
    "handle_speech_action",
    "handle_vote_action",
    # Shoot actions
    "handle_shoot_action",
    # Base utilities
    "validate_target",
    "ActionResult",
]
