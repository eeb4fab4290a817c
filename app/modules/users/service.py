from supabase import Client
from app.config import settings
from app.core.exceptions import InputValidationError, NotFoundError, PreconditionError
from app.core.images import decode_image, extension_for
from app.database.storage import SupabaseStorage
from app.database.supabase_client import SupabaseClient, is_unique_violation
from app.modules.users.schemas import UserCreate, UserResponse
from typing import List, Optional
from fastapi import HTTPException
import logging
import uuid

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, supabase: Client, storage: Optional[SupabaseStorage] = None):
        self.supabase = supabase
        self.storage = storage or SupabaseStorage(supabase, settings.selfies_bucket)

    def get_user_by_id(self, user_id: str) -> UserResponse:
        """Get user by ID"""
        try:
            result = self.supabase.table("users")\
                .select("*")\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise NotFoundError("User not found")

            return UserResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_user_by_email(self, email: str) -> Optional[UserResponse]:
        """Get user by email; None when nobody registered with it"""
        try:
            result = self.supabase.table("users")\
                .select("*")\
                .eq("email", email.strip().lower())\
                .execute()

            if not result.data:
                return None

            return UserResponse(**result.data[0])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_users_by_ids(self, user_ids: List[str]) -> List[UserResponse]:
        if not user_ids:
            return []
        try:
            result = self.supabase.table("users")\
                .select("*")\
                .in_("id", user_ids)\
                .execute()
            return [UserResponse(**user) for user in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_users(self) -> List[UserResponse]:
        """Full roster, oldest registration first"""
        try:
            result = self.supabase.table("users")\
                .select("*")\
                .order("created_at")\
                .execute()
            return [UserResponse(**user) for user in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def register_user(self, user_data: UserCreate) -> UserResponse:
        """Upload the selfie, then create the user row"""
        email = str(user_data.email).strip().lower()
        if self.get_user_by_email(email):
            raise PreconditionError("A user with this email already exists")

        image, content_type = decode_image(user_data.selfie, field="selfie")
        if len(image) > settings.selfie_max_bytes:
            raise InputValidationError("Selfie exceeds the 2MB limit")

        self.storage.ensure_bucket(public=True, file_size_limit=settings.selfie_max_bytes)
        key = f"{uuid.uuid4()}.{extension_for(content_type)}"
        selfie_url = self.storage.upload_file(image, key, content_type=content_type)

        try:
            result = self.supabase.table("users").insert({
                "email": email,
                "name": user_data.name,
                "major": user_data.major,
                "selfie_url": selfie_url,
            }).execute()
        except Exception as e:
            self._discard_selfie(key)
            if is_unique_violation(e):
                # Registered concurrently after the email check above
                raise PreconditionError("A user with this email already exists")
            raise HTTPException(status_code=500, detail=str(e))

        if not result.data:
            self._discard_selfie(key)
            raise HTTPException(status_code=500, detail="Failed to create user")

        logger.info("Registered user %s", result.data[0]["id"])
        return UserResponse(**result.data[0])

    def _discard_selfie(self, key: str) -> None:
        try:
            self.storage.delete_file(key)
        except HTTPException as e:
            logger.warning("Selfie %s left orphaned: %s", key, e.detail)


def get_selfie_storage() -> SupabaseStorage:
    """Bucket creation needs the service role key when RLS is on."""
    return SupabaseStorage(SupabaseClient.get_service_client(), settings.selfies_bucket)
