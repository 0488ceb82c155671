"""Enumerated value sets stored as plain strings in the database."""

from __future__ import annotations

from enum import Enum


class Capability(str, Enum):
    """App sections a role's members may open (the role's button set)."""

    QUIZ = "quiz"
    MARATHON = "marathon"
    WORKS = "works"
    PHOTO_WORK = "photo_work"
    ACTIVITIES = "activities"
    POSTS = "posts"
    SHOP = "shop"
    INVITE = "invite"
    INTERACTIVES = "interactives"
    CHANGE_ROLE = "change_role"


DEFAULT_CAPABILITIES: tuple[Capability, ...] = (
    Capability.QUIZ,
    Capability.MARATHON,
    Capability.WORKS,
    Capability.ACTIVITIES,
    Capability.POSTS,
    Capability.SHOP,
    Capability.INVITE,
    Capability.INTERACTIVES,
    Capability.CHANGE_ROLE,
)


class BonusType(str, Enum):
    PERCENT_BONUS = "percent_bonus"
    RANDOM_GIFT = "random_gift"
    FORGIVENESS = "forgiveness"
    SERIES_BONUS = "series_bonus"
    SECRET_ADVICE = "secret_advice"
    PHOTO_BONUS = "photo_bonus"
    WEEKLY_SURPRISE = "weekly_surprise"
    MINI_QUEST = "mini_quest"
    QUIZ_HINT = "quiz_hint"
    FACT_STAR = "fact_star"
    STREAK_MULTIPLIER = "streak_multiplier"


class ModerationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ItemType(str, Enum):
    VIDEO = "video"
    EBOOK = "ebook"
    COURSE = "course"
    MATERIAL = "material"
    TEMPLATE = "template"


class AdminRole(str, Enum):
    MODERATOR = "moderator"
    SUPERADMIN = "superadmin"


class ConditionType(str, Enum):
    """What an achievement counts to decide it has been earned."""

    REGISTRATION = "registration"
    QUIZ_COMPLETION = "quiz_completion"
    PERFECT_QUIZ = "perfect_quiz"
    WORK_UPLOAD = "work_upload"
    SPARKS_TOTAL = "sparks_total"
    MARATHON_COMPLETION = "marathon_completion"
    INTERACTIVE_COMPLETION = "interactive_completion"
    LEVEL_REACHED = "level_reached"


class UserStatus(str, Enum):
    ACTIVE = "active"
    BLOCKED = "blocked"
