from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.database.storage import SupabaseStorage
from app.modules.checkpoints.schemas import (
    AnswerOutcome, AnswerSubmission, CheckpointView, FaceMatchOutcome,
    FaceMatchSubmission, FinalAssemblySubmission, QRSubmission, SubmissionOutcome
)
from app.modules.checkpoints.service import ProgressService
from app.modules.facematch.service import FaceMatcher, get_face_matcher
from app.modules.users.service import get_selfie_storage
from supabase import Client

router = APIRouter(prefix="/checkpoints", tags=["checkpoints"])


def get_progress_service(
    supabase: Client = Depends(get_supabase),
    matcher: FaceMatcher = Depends(get_face_matcher),
    storage: SupabaseStorage = Depends(get_selfie_storage)
) -> ProgressService:
    return ProgressService(supabase, matcher, storage)


@router.get("/{user_id}", response_model=CheckpointView)
async def get_checkpoint(user_id: str, service: ProgressService = Depends(get_progress_service)):
    """Current checkpoint for the player; clients call this whenever their group changes"""
    return service.get_view(user_id)


@router.post("/{user_id}/facematch", response_model=FaceMatchOutcome)
async def submit_face_match(
    user_id: str,
    body: FaceMatchSubmission,
    service: ProgressService = Depends(get_progress_service)
):
    """Checkpoint 1: group photo that must show every teammate"""
    return service.submit_face_match(user_id, body.image)


@router.post("/{user_id}/answer", response_model=AnswerOutcome)
async def submit_answer(
    user_id: str,
    body: AnswerSubmission,
    service: ProgressService = Depends(get_progress_service)
):
    """Checkpoint 2: answer to the player's current riddle"""
    return service.submit_answer(user_id, body.answer)


@router.post("/{user_id}/final", response_model=SubmissionOutcome)
async def submit_final_assembly(
    user_id: str,
    body: FinalAssemblySubmission,
    service: ProgressService = Depends(get_progress_service)
):
    """Checkpoint 3: the team's combined answers"""
    return service.submit_final_assembly(user_id, body.fields)


@router.post("/{user_id}/qr", response_model=SubmissionOutcome)
async def submit_qr(
    user_id: str,
    body: QRSubmission,
    service: ProgressService = Depends(get_progress_service)
):
    """Final step: decoded payload of the scanned QR code"""
    return service.submit_qr(user_id, body.payload)
