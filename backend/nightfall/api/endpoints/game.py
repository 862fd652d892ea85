"""Game API endpoints."""
import logging
from typing import Dict, List

from fastapi import APIRouter, HTTPException

from nightfall.core.config import settings
from nightfall.models.game import game_store
from nightfall.schemas.game import (
    GameStartRequest, GameStartResponse, GameStateView, StepResponse
)
from nightfall.schemas.action import ActionRequest, ActionResponse
from nightfall.schemas.player import PlayerPublic
from nightfall.services.game_engine import game_engine
from nightfall.services.game_state_service import build_state_view
from nightfall.services.log_manager import get_game_logs

router = APIRouter(prefix="/game", tags=["game"])
logger = logging.getLogger(__name__)


@router.post("/start", response_model=GameStartResponse)
def start_game(request: GameStartRequest) -> GameStartResponse:
    """
    Deal roles and open the reveal round.
    POST /api/game/start
    """
    try:
        game = game_engine.start_game(
            human_count=request.human_count,
            human_seats=request.human_seats,
            language=request.language or settings.DEFAULT_LANGUAGE,
            seed=request.seed,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return GameStartResponse(
        game_id=game.id,
        phase=game.phase,
        human_seats=game.get_human_ids(),
        players=[
            PlayerPublic(
                id=p.id,
                personality=p.personality,
                is_alive=p.is_alive,
                is_human=p.is_human,
            )
            for p in game.get_roster()
        ],
    )


@router.get("/{game_id}/state", response_model=GameStateView)
def get_game_state(game_id: str) -> dict:
    """
    Shared-screen view of the game.
    GET /api/game/{game_id}/state
    """
    game = game_engine.get_game(game_id)
    return build_state_view(game)


@router.post("/{game_id}/step", response_model=StepResponse)
async def step_game(game_id: str) -> StepResponse:
    """
    Advance the game state by one step.
    POST /api/game/{game_id}/step

    Uses the per-game lock so two steps never interleave on one game.
    """
    game_engine.get_game(game_id)

    async with game_store.get_lock(game_id):
        result = await game_engine.step(game_id)

    status = result.get("status", "error")
    if status == "error":
        raise HTTPException(status_code=400, detail=result.get("message") or "Unknown error")

    winner = result.get("winner")
    return StepResponse(
        status=status,
        new_phase=result.get("new_phase"),
        message=result.get("message") or (f"Winner: {winner}" if winner else None),
        narration=result.get("narration", []),
    )


@router.post("/{game_id}/action", response_model=ActionResponse)
async def submit_action(game_id: str, request: ActionRequest) -> ActionResponse:
    """
    Submit an action for the human holding the device.
    POST /api/game/{game_id}/action
    """
    game_engine.get_game(game_id)

    async with game_store.get_lock(game_id):
        result = game_engine.process_human_action(
            game_id=game_id,
            seat_id=request.seat_id,
            action_type=request.action_type,
            target_id=request.target_id,
            content=request.content
        )

    if not result.get("success"):
        raise HTTPException(
            status_code=400,
            detail=result.get("message", "Action failed")
        )

    return ActionResponse(
        success=True,
        message=result.get("message"),
        narration=result.get("narration", []),
    )


@router.delete("/{game_id}")
def delete_game(game_id: str) -> dict:
    """
    Delete a game.
    DELETE /api/game/{game_id}
    """
    if game_store.delete_game(game_id):
        return {"success": True, "message": "Game deleted"}
    raise HTTPException(status_code=404, detail="Game not found")


@router.get("/{game_id}/logs")
def get_logs(game_id: str, limit: int = 100) -> Dict[str, List[Dict]]:
    """
    Get sanitized engine logs (filtered to remove spoilers).
    GET /api/game/{game_id}/logs?limit=100
    """
    game_engine.get_game(game_id)
    return {"logs": get_game_logs(game_id, limit)}
