"""Action schemas."""
from typing import Optional
from pydantic import BaseModel, Field

from .enums import ActionType


class ActionRequest(BaseModel):
    """Request schema for a human player action.

    The shared screen passes the device around, so the acting seat travels
    with the request and is checked against the current turn-holder.
    """
    seat_id: int
    action_type: ActionType
    target_id: Optional[int] = None
    content: Optional[str] = Field(None, max_length=500, description="Speech content (max 500 chars)")


class ActionResponse(BaseModel):
    """Response schema for action."""
    success: bool
    message: Optional[str] = None
    narration: list[str] = Field(default_factory=list)
