from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class GameState(BaseModel):
    id: int
    game_has_started: bool = False
    game_run_id: Optional[str] = None
    started_at: Optional[datetime] = None


class GameToggleResponse(BaseModel):
    game_has_started: bool
    game_run_id: Optional[str] = None
    group_sizes: List[int] = []
    message: str


class GameProgress(BaseModel):
    game_has_started: bool
    total_groups: int
    checkpoint1_completed: int  # face match
    checkpoint2_completed: int  # riddles
    checkpoint3_completed: int  # final assembly
    finished: int  # QR scanned
