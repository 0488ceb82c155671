"""Shop purchase flow."""

from __future__ import annotations

import pytest


async def _item_id(client, title_prefix):
    items = (await client.get("/api/webapp/shop/items")).json()
    return next(i["id"] for i in items if i["title"].startswith(title_prefix))


@pytest.mark.asyncio
class TestPurchase:
    async def test_purchase_debits_and_records(self, client, seeded, make_user, get_sparks, count_activities):
        await make_user(700, sparks=50)
        item_id = await _item_id(client, "🎨")

        resp = await client.post("/api/webapp/shop/purchase", json={"userId": 700, "itemId": item_id})
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["price_paid"] == 15
        assert body["remaining_sparks"] == 35
        assert await get_sparks(700) == 35
        assert await count_activities(700) == 1

        purchases = (await client.get("/api/webapp/users/700/purchases")).json()
        assert len(purchases) == 1
        assert purchases[0]["item_id"] == item_id

    async def test_duplicate_purchase_allowed(self, client, seeded, make_user, get_sparks):
        await make_user(701, sparks=50)
        item_id = await _item_id(client, "📚")
        for _ in range(2):
            resp = await client.post("/api/webapp/shop/purchase", json={"userId": 701, "itemId": item_id})
            assert resp.status_code == 200
        assert await get_sparks(701) == 30
        assert len((await client.get("/api/webapp/users/701/purchases")).json()) == 2

    async def test_insufficient_sparks(self, client, seeded, make_user, get_sparks, count_activities):
        await make_user(702, sparks=5)
        item_id = await _item_id(client, "🎨")
        resp = await client.post("/api/webapp/shop/purchase", json={"userId": 702, "itemId": item_id})
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error_code"] == "insufficient_sparks"
        assert await get_sparks(702) == 5
        assert await count_activities(702) == 0
        assert (await client.get("/api/webapp/users/702/purchases")).json() == []

    async def test_unknown_item(self, client, seeded, make_user):
        await make_user(703)
        resp = await client.post("/api/webapp/shop/purchase", json={"userId": 703, "itemId": 9999})
        assert resp.status_code == 404


@pytest.mark.asyncio
class TestPurchasedContent:
    async def _buy(self, client, user_id, prefix):
        item_id = await _item_id(client, prefix)
        resp = await client.post("/api/webapp/shop/purchase", json={"userId": user_id, "itemId": item_id})
        return resp.json()["purchase_id"]

    async def test_content_and_download(self, client, seeded, make_user):
        await make_user(710, sparks=100)
        purchase_id = await self._buy(client, 710, "📚")

        content = await client.get(f"/api/webapp/purchases/{purchase_id}/content", params={"userId": 710})
        assert content.status_code == 200
        assert content.json()["file_url"].endswith(".pdf")

        download = await client.get(f"/api/webapp/purchases/{purchase_id}/download", params={"userId": 710})
        assert download.status_code == 200
        assert download.json()["filename"] == "Гайд_по_композиции.pdf"
        assert download.json()["download_count"] == 1

    async def test_other_users_purchase_is_hidden(self, client, seeded, make_user):
        await make_user(711, sparks=100)
        await make_user(712, sparks=100)
        purchase_id = await self._buy(client, 711, "📚")
        resp = await client.get(f"/api/webapp/purchases/{purchase_id}/content", params={"userId": 712})
        assert resp.status_code == 404

    async def test_download_without_file(self, client, seeded, make_user):
        await make_user(713, sparks=100)
        purchase_id = await self._buy(client, 713, "💡")
        resp = await client.get(f"/api/webapp/purchases/{purchase_id}/download", params={"userId": 713})
        assert resp.status_code == 400
