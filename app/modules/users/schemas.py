from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime


class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(min_length=2)
    major: str = Field(min_length=1)
    selfie: str = Field(min_length=1, description="Base64 image or data URI")

    @field_validator("name", "major")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    major: Optional[str] = None
    selfie_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TeamMember(BaseModel):
    id: str
    name: str
