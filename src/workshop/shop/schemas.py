"""Request schemas for shop endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class PurchaseRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="userId")
    item_id: int = Field(..., alias="itemId")
