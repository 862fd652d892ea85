# Models package
from .game import (
    Game, Player, WitchPotions, NightActionData, GameLogEntry, Narration,
    GameStore, game_store, STANDARD_ROLES, PERSONALITIES, PLAYER_COUNT
)
