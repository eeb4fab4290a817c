from pydantic import BaseModel, Field
from typing import Optional


class FaceMatchRequest(BaseModel):
    user_image: str = Field(alias="userImage")
    friend_image: str = Field(alias="friendImage")

    model_config = {"populate_by_name": True}


class FaceMatchResponse(BaseModel):
    success: bool
    similarity: Optional[float] = None
    message: str
