from pydantic import BaseModel, Field
from typing import List, Optional

from app.modules.checkpoints.state_machine import CheckpointState
from app.modules.users.schemas import TeamMember


class CurrentQuestion(BaseModel):
    id: int
    question: str
    number: int  # 1-based position among this member's questions
    total: int


class CheckpointView(BaseModel):
    """Everything one checkpoint screen needs for the current state."""
    state: CheckpointState
    group_id: Optional[int] = None
    photo_url: Optional[str] = None
    teammates: List[TeamMember] = []
    question: Optional[CurrentQuestion] = None
    waiting_for: List[TeamMember] = []
    answer_pool: List[str] = []
    field_count: int = 0


class FaceMatchSubmission(BaseModel):
    image: str = Field(min_length=1, description="Group photo, base64 or data URI")


class TeammateMatch(BaseModel):
    user_id: str
    name: str
    score: float
    matched: bool


class FaceMatchOutcome(BaseModel):
    state: CheckpointState
    matches: List[TeammateMatch]


class AnswerSubmission(BaseModel):
    answer: str


class AnswerOutcome(BaseModel):
    correct: bool
    state: CheckpointState
    member_solved: bool = False
    group_converged: bool = False
    message: str


class FinalAssemblySubmission(BaseModel):
    fields: List[str]


class QRSubmission(BaseModel):
    payload: str


class SubmissionOutcome(BaseModel):
    correct: bool
    state: CheckpointState
    message: str
