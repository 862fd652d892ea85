"""API router aggregation."""
from fastapi import APIRouter

from nightfall.api.endpoints import game

api_router = APIRouter(prefix="/api")
api_router.include_router(game.router)
