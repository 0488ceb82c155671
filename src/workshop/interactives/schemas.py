"""Request schemas for interactive endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class InteractiveSubmitRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="userId")
    answer: int
