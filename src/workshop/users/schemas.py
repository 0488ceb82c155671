"""Request schemas for user endpoints.

The Mini-App sends camelCase keys; snake_case is accepted too.
"""

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="userId")
    first_name: str = Field(..., alias="firstName", min_length=1, max_length=128)
    username: str | None = Field(None, max_length=64)
    role_id: int = Field(..., alias="roleId")
    character_id: int = Field(..., alias="characterId")


class ChangeRoleRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="userId")
    role_id: int = Field(..., alias="roleId")
    character_id: int = Field(..., alias="characterId")
