from pydantic import BaseModel


class Hint(BaseModel):
    id: int
    question: str
    answer: str


class HintPublic(BaseModel):
    """What players see: never the answer."""
    id: int
    question: str
