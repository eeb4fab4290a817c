from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from app.modules.groups.models import (
    MAX_SLOTS, user_id_column, questions_column, progress_column, solved_column
)


class MemberSlot(BaseModel):
    slot: int = Field(ge=1, le=MAX_SLOTS)
    user_id: str
    question_ids: List[int] = []
    progress: int = 0
    solved: bool = False

    @property
    def current_question_id(self) -> Optional[int]:
        if self.solved or self.progress >= len(self.question_ids):
            return None
        return self.question_ids[self.progress]


class GroupRecord(BaseModel):
    """One group row with its per-slot columns folded into `slots`."""
    id: Optional[int] = None
    game_run_id: Optional[str] = None
    slots: List[MemberSlot] = []
    photo_url: Optional[str] = None
    found: bool = False
    location_is_solved: bool = False
    final_is_solved: bool = False
    qr_is_solved: bool = False
    created_at: Optional[datetime] = None

    @property
    def size(self) -> int:
        return len(self.slots)

    @property
    def member_ids(self) -> List[str]:
        return [s.user_id for s in self.slots]

    @property
    def all_solved(self) -> bool:
        return bool(self.slots) and all(s.solved for s in self.slots)

    def slot_for(self, user_id: str) -> Optional[MemberSlot]:
        return next((s for s in self.slots if s.user_id == user_id), None)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "GroupRecord":
        slots = []
        for n in range(1, MAX_SLOTS + 1):
            user_id = row.get(user_id_column(n))
            if not user_id:
                continue
            slots.append(MemberSlot(
                slot=n,
                user_id=user_id,
                question_ids=row.get(questions_column(n)) or [],
                progress=row.get(progress_column(n)) or 0,
                solved=bool(row.get(solved_column(n))),
            ))
        return cls(
            id=row.get("id"),
            game_run_id=row.get("game_run_id"),
            slots=slots,
            photo_url=row.get("photo_url"),
            found=bool(row.get("found")),
            location_is_solved=bool(row.get("location_is_solved")),
            final_is_solved=bool(row.get("final_is_solved")),
            qr_is_solved=bool(row.get("qr_is_solved")),
            created_at=row.get("created_at"),
        )

    def to_row(self) -> Dict[str, Any]:
        """Flat insert payload. Unused slots are written as explicit nulls."""
        row: Dict[str, Any] = {
            "game_run_id": self.game_run_id,
            "photo_url": self.photo_url,
            "found": self.found,
            "location_is_solved": self.location_is_solved,
            "final_is_solved": self.final_is_solved,
            "qr_is_solved": self.qr_is_solved,
        }
        by_slot = {s.slot: s for s in self.slots}
        for n in range(1, MAX_SLOTS + 1):
            slot = by_slot.get(n)
            row[user_id_column(n)] = slot.user_id if slot else None
            row[questions_column(n)] = slot.question_ids if slot else []
            row[progress_column(n)] = slot.progress if slot else 0
            row[solved_column(n)] = slot.solved if slot else False
        return row


class GroupMemberResponse(BaseModel):
    slot: int
    user_id: str
    name: Optional[str] = None
    question_count: int
    solved: bool


class GroupResponse(BaseModel):
    id: int
    size: int
    photo_url: Optional[str] = None
    found: bool
    location_is_solved: bool
    final_is_solved: bool
    qr_is_solved: bool
    members: List[GroupMemberResponse]
    created_at: Optional[datetime] = None
