"""Shop: catalog browsing, purchases and content delivery."""

from __future__ import annotations

import logging
import re
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.catalog.service import shop_item_to_dict
from workshop.db.enums import ItemType
from workshop.db.models import Purchase, ShopItem, User
from workshop.exceptions import NotFoundError, ValidationError
from workshop.gamification.notifications import notify
from workshop.users.sparks import adjust_sparks
from workshop.utils import isoformat

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME = re.compile(r"[^\w\-]+", re.UNICODE)


def final_price(price: float, discount_percent: int) -> float:
    """Price after discount, rounded to whole sparks."""
    if discount_percent and discount_percent > 0:
        return round(price * (1 - discount_percent / 100))
    return price


def download_filename(title: str, item_type: str) -> str:
    extension = "pdf" if item_type == ItemType.EBOOK.value else "zip"
    stem = _UNSAFE_FILENAME.sub("_", title).strip("_") or "material"
    return f"{stem}.{extension}"


class ShopService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_items(self) -> list[dict[str, Any]]:
        result = await self.db.execute(select(ShopItem).where(ShopItem.is_active.is_(True)).order_by(ShopItem.id))
        return [self._describe(item) for item in result.scalars().all()]

    async def get_item(self, item_id: int) -> dict[str, Any]:
        return self._describe(await self._active_item(item_id))

    async def _active_item(self, item_id: int) -> ShopItem:
        item = await self.db.get(ShopItem, item_id)
        if item is None or not item.is_active:
            raise NotFoundError("Товар не найден")
        return item

    @staticmethod
    def _describe(item: ShopItem) -> dict[str, Any]:
        return {**shop_item_to_dict(item), "final_price": final_price(item.price, item.discount_percent)}

    async def purchase(self, user_id: int, item_id: int) -> dict[str, Any]:
        """Buy an item. The debit is atomic and never takes the balance below zero.

        Buying the same item again is allowed and creates another purchase.
        """
        item = await self._active_item(item_id)
        price = final_price(item.price, item.discount_percent)

        await adjust_sparks(
            self.db,
            user_id,
            -price,
            "purchase",
            f"Покупка: {item.title}",
            {"item_id": item.id, "price": price},
            require_funds=True,
        )
        purchase = Purchase(
            user_id=user_id,
            item_id=item.id,
            price_paid=price,
            original_price=item.price,
            discount_percent=item.discount_percent,
        )
        self.db.add(purchase)
        await self.db.flush()

        await notify(
            self.db,
            user_id,
            "purchase",
            "🛒 Покупка совершена!",
            f"Вы приобрели «{item.title}» за {price:g}✨",
            action_url="/purchases",
        )
        user = await self.db.get(User, user_id)
        logger.info("Purchase: user=%s item=%s price=%s", user_id, item.id, price)

        return {
            "purchase_id": purchase.id,
            "item": self._describe(item),
            "price_paid": price,
            "remaining_sparks": user.sparks if user else 0,
            "message": f"Покупка совершена! -{price:g}✨",
        }

    async def list_purchases(self, user_id: int) -> list[dict[str, Any]]:
        result = await self.db.execute(
            select(Purchase, ShopItem)
            .join(ShopItem, ShopItem.id == Purchase.item_id)
            .where(Purchase.user_id == user_id)
            .order_by(Purchase.purchased_at.desc(), Purchase.id.desc())
        )
        return [
            {
                **purchase_to_dict(purchase),
                "title": item.title,
                "type": item.type,
                "preview_url": item.preview_url,
            }
            for purchase, item in result.all()
        ]

    async def _owned(self, purchase_id: int, user_id: int) -> tuple[Purchase, ShopItem]:
        purchase = await self.db.get(Purchase, purchase_id)
        if purchase is None or purchase.user_id != user_id:
            raise NotFoundError("Покупка не найдена")
        item = await self.db.get(ShopItem, purchase.item_id)
        if item is None:
            raise NotFoundError("Товар не найден")
        return purchase, item

    async def get_purchase_content(self, purchase_id: int, user_id: int) -> dict[str, Any]:
        purchase, item = await self._owned(purchase_id, user_id)
        purchase.content_delivered = True
        await self.db.flush()
        return {
            "purchase_id": purchase.id,
            "title": item.title,
            "type": item.type,
            "content_text": item.content_text,
            "file_url": item.file_url,
            "preview_url": item.preview_url,
        }

    async def prepare_download(self, purchase_id: int, user_id: int) -> dict[str, Any]:
        purchase, item = await self._owned(purchase_id, user_id)
        if not item.file_url:
            raise ValidationError("Для этого товара нет файла")
        purchase.download_count += 1
        await self.db.flush()
        return {
            "download_url": item.file_url,
            "filename": download_filename(item.title, item.type),
            "download_count": purchase.download_count,
        }


def purchase_to_dict(purchase: Purchase) -> dict[str, Any]:
    return {
        "id": purchase.id,
        "item_id": purchase.item_id,
        "price_paid": purchase.price_paid,
        "original_price": purchase.original_price,
        "discount_percent": purchase.discount_percent,
        "content_delivered": purchase.content_delivered,
        "download_count": purchase.download_count,
        "purchased_at": isoformat(purchase.purchased_at),
    }
