"""Sparks balance mutation and the activity ledger.

``adjust_sparks`` is the only code path that changes ``users.sparks``; every
call writes exactly one ``Activity`` row in the same transaction.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.db.models import Activity, User
from workshop.exceptions import InsufficientSparksError, NotFoundError
from workshop.users.levels import level_title
from workshop.utils import isoformat, utcnow

logger = logging.getLogger(__name__)


async def record_activity(
    db: AsyncSession,
    user_id: int,
    activity_type: str,
    description: str,
    sparks: float = 0,
    details: dict[str, Any] | None = None,
) -> Activity:
    """Append an activity row."""
    activity = Activity(
        user_id=user_id,
        activity_type=activity_type,
        sparks_earned=sparks,
        description=description,
        details=details or {},
        created_at=utcnow(),
    )
    db.add(activity)
    await db.flush()
    return activity


async def adjust_sparks(
    db: AsyncSession,
    user_id: int,
    delta: float,
    activity_type: str,
    description: str,
    details: dict[str, Any] | None = None,
    *,
    require_funds: bool = False,
    award_achievements: bool = True,
) -> Activity:
    """Change a user's balance by ``delta`` and log it.

    With ``require_funds`` a debit is applied as a single conditional UPDATE
    (``sparks >= amount``), so concurrent debits can never overdraw; if no row
    matches, InsufficientSparksError is raised. Other debits clamp at zero.
    """
    now = utcnow()
    stmt = update(User).where(User.user_id == user_id)
    if delta < 0 and require_funds:
        stmt = stmt.where(User.sparks >= -delta).values(sparks=User.sparks + delta, last_active=now)
    elif delta < 0:
        stmt = stmt.values(
            sparks=case((User.sparks + delta < 0, 0), else_=User.sparks + delta),
            last_active=now,
        )
    else:
        stmt = stmt.values(sparks=User.sparks + delta, last_active=now)

    result = await db.execute(stmt.execution_options(synchronize_session=False))
    if result.rowcount == 0:
        exists = await db.scalar(select(func.count()).select_from(User).where(User.user_id == user_id))
        if not exists:
            raise NotFoundError("Пользователь не найден")
        raise InsufficientSparksError("Недостаточно искр")

    user = await db.get(User, user_id, populate_existing=True)
    if user is None:
        raise NotFoundError("Пользователь не найден")
    user.level = level_title(user.sparks)

    activity = await record_activity(db, user_id, activity_type, description, delta, details)
    logger.info("Sparks adjusted: user=%s delta=%s type=%s balance=%s", user_id, delta, activity_type, user.sparks)

    if award_achievements:
        from workshop.gamification.achievements import check_achievements

        await check_achievements(db, user_id)

    return activity


async def list_activities(
    db: AsyncSession,
    user_id: int,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Activity], int]:
    """Get a user's activity history, newest first."""
    total = await db.scalar(select(func.count()).select_from(Activity).where(Activity.user_id == user_id))

    result = await db.execute(
        select(Activity)
        .where(Activity.user_id == user_id)
        .order_by(Activity.created_at.desc(), Activity.id.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all()), total or 0


def activity_to_dict(activity: Activity) -> dict[str, Any]:
    return {
        "id": activity.id,
        "user_id": activity.user_id,
        "activity_type": activity.activity_type,
        "sparks_earned": activity.sparks_earned,
        "description": activity.description,
        "details": activity.details,
        "created_at": isoformat(activity.created_at),
    }
