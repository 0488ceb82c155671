"""Reward policy lookup.

Admins can override any numeric policy value through the ``app_settings``
table; otherwise the value comes from ``Settings`` (environment).
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from workshop.config import Settings
from workshop.db.models import AppSetting

logger = logging.getLogger(__name__)

POLICY_KEYS = (
    "default_sparks",
    "upload_work_sparks",
    "work_approved_sparks",
    "review_sparks",
    "daily_comment_sparks",
    "max_works_per_day",
    "quiz_attempts_per_day",
)


async def policy_value(db: AsyncSession, settings: Settings, key: str) -> float:
    """Return the effective value of a policy key."""
    fallback = float(getattr(settings, key))
    row = await db.get(AppSetting, key)
    if row is None:
        return fallback
    try:
        return float(row.value)
    except ValueError:
        logger.warning("Ignoring non-numeric setting %s=%r", key, row.value)
        return fallback
