"""Game schemas."""
from typing import Optional
from pydantic import BaseModel, Field

from .enums import GameStatus, GamePhase, Role, ActionType, LogType, Team
from .player import PlayerPublic


class GameStartRequest(BaseModel):
    """Request schema for starting a new game."""
    human_count: int = Field(1, ge=0, le=9)
    human_seats: Optional[list[int]] = None  # Overrides human_count when set
    seed: Optional[int] = None  # Fixed seed for reproducible shuffles
    language: Optional[str] = None  # Defaults to DEFAULT_LANGUAGE


class GameStartResponse(BaseModel):
    """Response schema for game start."""
    game_id: str
    phase: GamePhase
    human_seats: list[int]
    players: list[PlayerPublic]


class LogEntryView(BaseModel):
    """Game log entry as shown on screen."""
    id: int
    type: LogType
    author: Optional[str] = None
    content: str


class PendingAction(BaseModel):
    """Pending action for the human turn-holder."""
    actor: int
    actor_role: Role
    types: list[ActionType]
    choices: list[int] = Field(default_factory=list)
    message: Optional[str] = None
    # Role-private info for whoever holds the device
    wolf_teammates: list[int] = Field(default_factory=list)
    wolves_target: Optional[int] = None
    seer_check: Optional[int] = None
    seer_result: Optional[Team] = None
    potions: Optional[dict[str, bool]] = None


class GameStateView(BaseModel):
    """Full game state response."""
    game_id: str
    status: GameStatus
    day: int
    phase: GamePhase
    current_turn_player_id: Optional[int] = None
    players: list[PlayerPublic]
    log: list[LogEntryView]
    pending_action: Optional[PendingAction] = None
    winner: Optional[Team] = None


class StepResponse(BaseModel):
    """Response for game step."""
    status: str  # "updated", "waiting_for_human", "busy", "stale", "game_over"
    new_phase: Optional[GamePhase] = None
    message: Optional[str] = None
    narration: list[str] = Field(default_factory=list)
