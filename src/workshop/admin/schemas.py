"""Request schemas for admin management endpoints."""

from pydantic import BaseModel, ConfigDict, Field

from workshop.db.enums import AdminRole


class AdminCreateRequest(BaseModel):
    """``userId`` in the query string is the acting admin; the new admin goes in the body."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="adminUserId")
    username: str | None = Field(None, max_length=64)
    role: AdminRole = AdminRole.MODERATOR


class SettingEntry(BaseModel):
    key: str = Field(..., min_length=1, max_length=64)
    value: str
    description: str | None = None


class SettingsUpdateRequest(BaseModel):
    settings: list[SettingEntry] = Field(..., min_length=1)
