from fastapi import APIRouter, Depends
from app.core.images import decode_image
from app.modules.facematch.schemas import FaceMatchRequest, FaceMatchResponse
from app.modules.facematch.service import FaceMatcher, get_face_matcher
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/facematch", tags=["facematch"])


@router.post("", response_model=FaceMatchResponse)
async def compare_faces(
    body: FaceMatchRequest,
    matcher: FaceMatcher = Depends(get_face_matcher)
):
    """Compare the face in userImage with the faces in friendImage"""
    user_image, _ = decode_image(body.user_image, field="userImage")
    friend_image, _ = decode_image(body.friend_image, field="friendImage")
    logger.debug(f"Comparing images of {len(user_image)} and {len(friend_image)} bytes")

    result = matcher.compare(user_image, friend_image)
    if result.is_match:
        return FaceMatchResponse(
            success=True,
            similarity=result.score,
            message=f"Face match found with {result.score:.2f}% confidence"
        )
    return FaceMatchResponse(success=False, similarity=result.score, message="No matching faces found")
