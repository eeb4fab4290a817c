from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.hints.schemas import HintPublic
from app.modules.hints.service import HintService
from supabase import Client
from typing import List

router = APIRouter(prefix="/hints", tags=["hints"])


def get_hint_service(supabase: Client = Depends(get_supabase)) -> HintService:
    return HintService(supabase)


@router.get("", response_model=List[HintPublic])
async def list_hints(service: HintService = Depends(get_hint_service)):
    """Riddle pool without answers"""
    return [HintPublic(id=h.id, question=h.question) for h in service.list_hints()]
