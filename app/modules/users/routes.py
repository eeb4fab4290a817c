from fastapi import APIRouter, Depends
from app.core.exceptions import NotFoundError
from app.database.supabase_client import get_supabase
from app.database.storage import SupabaseStorage
from app.modules.users.schemas import UserCreate, UserResponse
from app.modules.users.service import UserService, get_selfie_storage
from supabase import Client
from typing import List

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(
    supabase: Client = Depends(get_supabase),
    storage: SupabaseStorage = Depends(get_selfie_storage)
) -> UserService:
    return UserService(supabase, storage)


@router.post("", response_model=UserResponse, status_code=201)
async def register_user(
    user_data: UserCreate,
    service: UserService = Depends(get_user_service)
):
    """Register a participant with their selfie"""
    return service.register_user(user_data)


@router.get("", response_model=List[UserResponse])
async def list_users(service: UserService = Depends(get_user_service)):
    """Full roster for the admin dashboard"""
    return service.list_users()


@router.get("/lookup", response_model=UserResponse)
async def lookup_user(email: str, service: UserService = Depends(get_user_service)):
    """Login by email. 404 tells the client to show the registration form."""
    user = service.get_user_by_email(email)
    if not user:
        raise NotFoundError("User not found")
    return user


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, service: UserService = Depends(get_user_service)):
    return service.get_user_by_id(user_id)
