"""Request schemas for quiz endpoints."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class QuizSubmitRequest(BaseModel):
    """Answers are option indexes in question order."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="userId")
    answers: list[Any] = Field(default_factory=list)
