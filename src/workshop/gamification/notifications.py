"""User notifications: creation, listing, read state."""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.db.models import Notification
from workshop.exceptions import NotFoundError
from workshop.utils import isoformat, utcnow


async def notify(
    db: AsyncSession,
    user_id: int,
    type: str,  # noqa: A002
    title: str,
    message: str,
    action_url: str | None = None,
) -> Notification:
    """Persist a notification for a user."""
    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        action_url=action_url,
        created_at=utcnow(),
    )
    db.add(notification)
    await db.flush()
    return notification


async def list_notifications(
    db: AsyncSession,
    user_id: int,
    unread_only: bool = False,
    limit: int = 20,
    offset: int = 0,
) -> dict[str, Any]:
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))
    result = await db.execute(
        query.order_by(Notification.created_at.desc(), Notification.id.desc()).offset(offset).limit(limit)
    )
    total = await db.scalar(
        select(func.count()).select_from(Notification).where(Notification.user_id == user_id)
    )
    unread = await unread_count(db, user_id)
    return {
        "notifications": [notification_to_dict(n) for n in result.scalars().all()],
        "total": total or 0,
        "unread_count": unread,
        "limit": limit,
        "offset": offset,
    }


async def unread_count(db: AsyncSession, user_id: int) -> int:
    count = await db.scalar(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
    )
    return count or 0


async def mark_read(db: AsyncSession, notification_id: int, user_id: int) -> Notification:
    """Mark one of the user's notifications as read."""
    result = await db.execute(
        select(Notification).where(Notification.id == notification_id, Notification.user_id == user_id)
    )
    notification = result.scalar_one_or_none()
    if notification is None:
        raise NotFoundError("Уведомление не найдено")
    notification.is_read = True
    await db.flush()
    return notification


async def mark_all_read(db: AsyncSession, user_id: int) -> int:
    """Mark every unread notification as read. Returns how many changed."""
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


def notification_to_dict(notification: Notification) -> dict[str, Any]:
    return {
        "id": notification.id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "action_url": notification.action_url,
        "is_read": notification.is_read,
        "created_at": isoformat(notification.created_at),
    }
