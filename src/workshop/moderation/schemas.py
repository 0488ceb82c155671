"""Request schemas for works, reviews and moderation."""

from pydantic import BaseModel, ConfigDict, Field


class UploadWorkRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="userId")
    title: str = Field("", max_length=200)
    description: str = ""
    image_url: str = Field("", alias="imageUrl")
    category: str = Field("other", max_length=32)


class ReviewRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="userId")
    review_text: str = Field(..., alias="reviewText")
    rating: int = 5


class ModerateRequest(BaseModel):
    """``status`` is the decision: approved or rejected."""

    model_config = ConfigDict(populate_by_name=True)

    status: str
    admin_comment: str | None = None
    points_earned: float | None = Field(None, ge=0)


class BatchModerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    work_ids: list[int] = Field(..., alias="workIds", min_length=1)
    status: str
    admin_comment: str | None = None
