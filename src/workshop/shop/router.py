"""Shop endpoints for the Mini-App."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.dependencies import get_db
from workshop.shop.schemas import PurchaseRequest
from workshop.shop.service import ShopService

logger = structlog.get_logger()

router = APIRouter(prefix="/api/webapp", tags=["Shop"])


@router.get("/shop/items")
async def list_items(db: AsyncSession = Depends(get_db)) -> list[dict[str, Any]]:
    return await ShopService(db).list_items()


@router.get("/shop/items/{item_id}")
async def get_item(item_id: int, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    return await ShopService(db).get_item(item_id)


@router.post("/shop/purchase")
async def purchase(body: PurchaseRequest, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    """Buy an item for sparks."""
    result = await ShopService(db).purchase(body.user_id, body.item_id)
    await db.commit()
    logger.info("shop_purchase", user_id=body.user_id, item_id=body.item_id, price=result["price_paid"])
    return {"success": True, **result}


@router.get("/users/{user_id}/purchases")
async def list_purchases(user_id: int, db: AsyncSession = Depends(get_db)) -> list[dict[str, Any]]:
    return await ShopService(db).list_purchases(user_id)


@router.get("/purchases/{purchase_id}/content")
async def purchase_content(
    purchase_id: int,
    user_id: int = Query(..., alias="userId"),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    result = await ShopService(db).get_purchase_content(purchase_id, user_id)
    await db.commit()
    return result


@router.get("/purchases/{purchase_id}/download")
async def purchase_download(
    purchase_id: int,
    user_id: int = Query(..., alias="userId"),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    result = await ShopService(db).prepare_download(purchase_id, user_id)
    await db.commit()
    logger.info("purchase_download", purchase_id=purchase_id, user_id=user_id)
    return {"success": True, **result}
