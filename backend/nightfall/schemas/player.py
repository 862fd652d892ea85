"""Player schemas."""
from typing import Optional
from pydantic import BaseModel

from .enums import Role


class PlayerPublic(BaseModel):
    """Public player info (visible on the shared screen)."""
    id: int
    personality: str
    is_alive: bool
    is_human: bool
    role: Optional[Role] = None  # Only shown when game is finished

