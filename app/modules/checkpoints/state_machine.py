"""
Which checkpoint a player is on, derived only from persisted records.

Clients re-evaluate this on every poll or push notification for their group,
so the function must stay pure: same game state + same group row, same answer.
"""
from enum import Enum
from typing import Optional

from app.modules.game.schemas import GameState
from app.modules.groups.schemas import GroupRecord


class CheckpointState(str, Enum):
    NOT_STARTED = "not_started"
    NO_GROUP = "no_group"
    FACE_MATCH = "face_match"
    RIDDLES = "riddles"
    WAITING_FOR_TEAM = "waiting_for_team"
    FINAL_ASSEMBLY = "final_assembly"
    QR_SCAN = "qr_scan"
    COMPLETE = "complete"


def resolve_state(game: GameState, group: Optional[GroupRecord], user_id: str) -> CheckpointState:
    if not game.game_has_started:
        return CheckpointState.NOT_STARTED
    if group is None or group.slot_for(user_id) is None:
        return CheckpointState.NO_GROUP
    if not group.found:
        return CheckpointState.FACE_MATCH
    if not group.location_is_solved:
        if group.slot_for(user_id).solved:
            return CheckpointState.WAITING_FOR_TEAM
        return CheckpointState.RIDDLES
    if not group.final_is_solved:
        return CheckpointState.FINAL_ASSEMBLY
    if not group.qr_is_solved:
        return CheckpointState.QR_SCAN
    return CheckpointState.COMPLETE
