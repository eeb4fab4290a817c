"""
Error taxonomy for the game backend.

Every class is an HTTPException so services can raise them directly and the
routes need no translation layer. None of them is fatal: each one leaves
persisted state untouched and can be retried by the player or the admin.
"""

from fastapi import HTTPException, status
from typing import List, Optional


class GameError(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "game_error"

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)


class InputValidationError(GameError):
    """Malformed or missing input. The client re-prompts."""
    status_code = 422
    code = "invalid_input"


class NotFoundError(GameError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class PreconditionError(GameError):
    """A prerequisite record is missing or the player is on another checkpoint."""
    status_code = status.HTTP_409_CONFLICT
    code = "precondition_failed"

    def __init__(self, detail: str, state: Optional[str] = None):
        super().__init__(detail)
        self.state = state


class MembersMissingError(InputValidationError):
    code = "members_missing"

    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__(f"Members missing from the photo: {', '.join(missing)}")


class ExternalServiceError(GameError):
    """Supabase storage or Rekognition failed. No completion flag was written."""
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "external_service_error"


class AllocationError(GameError):
    """Team, image or question allocation failed. The game stays unstarted."""
    status_code = status.HTTP_409_CONFLICT
    code = "allocation_failed"


def error_content(exc: GameError) -> dict:
    """JSON body for a GameError: detail plus whatever the client needs to recover."""
    content = {"detail": exc.detail, "code": exc.code}
    if getattr(exc, "state", None):
        content["state"] = exc.state
    if getattr(exc, "missing", None):
        content["missing"] = exc.missing
    return content
