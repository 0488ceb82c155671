"""Request schemas for achievement and notification endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class UserActionRequest(BaseModel):
    """Body carrying only the acting user's id."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="userId")
