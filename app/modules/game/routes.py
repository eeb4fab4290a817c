from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.game.schemas import GameProgress, GameState, GameToggleResponse
from app.modules.game.service import GameService
from supabase import Client
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/game", tags=["game"])


def get_game_service(supabase: Client = Depends(get_supabase)) -> GameService:
    return GameService(supabase)


@router.get("/state", response_model=GameState)
async def get_state(service: GameService = Depends(get_game_service)):
    """Global game flag; players poll this while waiting"""
    return service.get_state()


@router.get("/progress", response_model=GameProgress)
async def get_progress(service: GameService = Depends(get_game_service)):
    """How many groups passed each checkpoint"""
    return service.get_progress()


@router.post("/toggle", response_model=GameToggleResponse)
async def toggle_game(service: GameService = Depends(get_game_service)):
    """Admin start/stop button: forms teams and allocates resources before starting"""
    return service.toggle_game()


@router.post("/start", response_model=GameToggleResponse)
async def start_game(service: GameService = Depends(get_game_service)):
    return service.start_game()


@router.post("/stop", response_model=GameToggleResponse)
async def stop_game(service: GameService = Depends(get_game_service)):
    return service.stop_game()
