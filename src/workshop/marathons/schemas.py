"""Request schemas for marathon endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class SubmitDayRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="userId")
    day: int = Field(..., ge=1)
    submission_text: str | None = None
