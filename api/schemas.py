from typing import List, Optional

from pydantic import BaseModel, Field


class StartRequest(BaseModel):
    """Match start request schema."""
    seed: int = 42
    blue: str = "priority"
    red: str = "rush"
    max_turns: Optional[int] = Field(default=None, ge=1, le=10000)


class DecideRequest(BaseModel):
    """Protocol text for one stateless decision: the init block and one turn block."""
    init: List[str]
    turn: List[str]


class DecideResponse(BaseModel):
    lines: List[str]


class EventsResponse(BaseModel):
    """Events response schema."""
    next_offset: int
    events: List[dict]
