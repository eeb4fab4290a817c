from supabase import Client
from app.core.exceptions import AllocationError
from app.modules.hints.schemas import Hint
from typing import Dict, List
from fastapi import HTTPException


class HintService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_hints(self) -> List[Hint]:
        """The whole pool in id order"""
        try:
            result = self.supabase.table("hints")\
                .select("*")\
                .order("id")\
                .execute()
            return [Hint(**hint) for hint in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_hints_by_ids(self, hint_ids: List[int]) -> Dict[int, Hint]:
        if not hint_ids:
            return {}
        try:
            result = self.supabase.table("hints")\
                .select("*")\
                .in_("id", hint_ids)\
                .execute()
            return {row["id"]: Hint(**row) for row in result.data or []}
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def require_pool(self, minimum: int) -> List[Hint]:
        """Pool for an allocation run; too few riddles aborts the game start."""
        hints = self.list_hints()
        if len(hints) < minimum:
            raise AllocationError(
                f"Not enough hints ({len(hints)}) for a group of {minimum}"
            )
        return hints
