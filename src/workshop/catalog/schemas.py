"""Request schemas for catalog management.

PUT endpoints take the same body as POST and replace the stored entity.
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, Field, model_validator

from workshop.db.enums import DEFAULT_CAPABILITIES, BonusType, Capability, ConditionType, ItemType


class RoleIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    icon: str = Field("🎨", max_length=16)
    display_order: int = 0
    is_active: bool = True
    available_buttons: list[Capability] = Field(default_factory=lambda: list(DEFAULT_CAPABILITIES))


class CharacterIn(BaseModel):
    role_id: int
    name: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    bonus_type: BonusType
    bonus_value: str = Field("0", max_length=32)
    is_active: bool = True


class QuestionIn(BaseModel):
    """One quiz question; ``correctAnswer`` is accepted for admin panel payloads."""

    question: str = Field(..., min_length=1)
    options: list[str] = Field(..., min_length=2)
    correct_answer: int = Field(..., ge=0, validation_alias=AliasChoices("correct_answer", "correctAnswer"))
    explanation: str = ""

    @model_validator(mode="after")
    def _check_answer_index(self) -> QuestionIn:
        if self.correct_answer >= len(self.options):
            raise ValueError("correct_answer must index one of the options")
        return self


class QuizIn(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    questions: list[QuestionIn] = Field(..., min_length=1)
    sparks_per_correct: float = Field(2, ge=0)
    sparks_perfect_bonus: float = Field(10, ge=0)
    cooldown_hours: int = Field(24, ge=0)
    allow_retake: bool = True
    max_attempts_per_day: int | None = Field(None, ge=1)
    difficulty: str = "beginner"
    is_active: bool = True


class MarathonTaskIn(BaseModel):
    day: int = Field(..., ge=1)
    title: str = Field(..., min_length=1)
    description: str = ""
    instructions: str = ""
    tips: list[str] = Field(default_factory=list)
    requires_submission: bool = False
    sparks_reward: float | None = Field(None, ge=0)


class MarathonIn(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    duration_days: int | None = Field(None, ge=1)
    tasks: list[MarathonTaskIn] = Field(..., min_length=1)
    sparks_per_day: float = Field(7, ge=0)
    sparks_completion_bonus: float = Field(50, ge=0)
    difficulty: str = "beginner"
    is_active: bool = True

    @model_validator(mode="after")
    def _check_days(self) -> MarathonIn:
        days = [task.day for task in self.tasks]
        if len(set(days)) != len(days):
            raise ValueError("task days must be unique")
        if self.duration_days is None:
            self.duration_days = max(days)
        if max(days) > self.duration_days:
            raise ValueError("task day exceeds duration_days")
        self.tasks.sort(key=lambda task: task.day)
        return self


class InteractiveIn(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    question: str = Field(..., min_length=1)
    options: list[str] = Field(..., min_length=2)
    correct_answer: int = Field(..., ge=0)
    explanation: str = ""
    sparks_reward: float = Field(5, ge=0)
    allow_retake: bool = False
    is_active: bool = True

    @model_validator(mode="after")
    def _check_answer_index(self) -> InteractiveIn:
        if self.correct_answer >= len(self.options):
            raise ValueError("correct_answer must index one of the options")
        return self


class ShopItemIn(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    type: ItemType = ItemType.MATERIAL
    price: float = Field(..., ge=0)
    discount_percent: int = Field(0, ge=0, le=100)
    file_url: str | None = None
    preview_url: str | None = None
    content_text: str | None = None
    is_active: bool = True


class PostIn(BaseModel):
    post_id: str | None = Field(None, max_length=64)
    title: str = Field(..., min_length=1, max_length=200)
    content: str = ""
    image_url: str | None = None
    featured: bool = False
    is_active: bool = True


class AchievementIn(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    icon: str = Field("🏆", max_length=16)
    condition_type: ConditionType
    condition_value: str = "1"
    sparks_reward: float = Field(0, ge=0)
    is_active: bool = True


class StatusUpdate(BaseModel):
    is_active: bool
