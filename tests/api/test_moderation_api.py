"""Work uploads, post reviews and the admin moderation queue."""

from __future__ import annotations

import pytest

ADMIN_ID = 1000  # created by the `seeded` fixture
AUTH = {"userId": ADMIN_ID}


async def _upload(client, user_id, title="Закат"):
    resp = await client.post(
        "/api/webapp/upload-work",
        json={"userId": user_id, "title": title, "imageUrl": "https://example.com/w.jpg"},
    )
    assert resp.status_code == 200
    return resp.json()["work_id"]


@pytest.mark.asyncio
class TestWorks:
    async def test_upload_credits_and_queues(self, client, seeded, make_user, get_sparks):
        await make_user(300, sparks=0)
        await _upload(client, 300)
        assert await get_sparks(300) == 5

        works = (await client.get("/api/webapp/users/300/works")).json()
        assert works["total"] == 1
        assert works["works"][0]["status"] == "pending"

        queue = (await client.get("/api/admin/user-works", params=AUTH)).json()
        assert [w["user_id"] for w in queue] == [300]

    async def test_upload_requires_title_and_image(self, client, seeded, make_user):
        await make_user(301)
        resp = await client.post("/api/webapp/upload-work", json={"userId": 301, "title": "", "imageUrl": ""})
        assert resp.status_code == 400

    async def test_approve_once(self, client, seeded, make_user, get_sparks):
        await make_user(302, sparks=0)
        work_id = await _upload(client, 302)

        resp = await client.post(
            f"/api/admin/user-works/{work_id}/moderate", params=AUTH, json={"status": "approved"}
        )
        assert resp.status_code == 200
        assert resp.json()["sparks_awarded"] == 15
        assert await get_sparks(302) == 20

        again = await client.post(
            f"/api/admin/user-works/{work_id}/moderate", params=AUTH, json={"status": "rejected"}
        )
        assert again.status_code == 409
        assert again.json()["error_code"] == "invalid_state"
        assert await get_sparks(302) == 20

    async def test_unknown_decision(self, client, seeded, make_user):
        await make_user(303)
        work_id = await _upload(client, 303)
        resp = await client.post(f"/api/admin/user-works/{work_id}/moderate", params=AUTH, json={"status": "maybe"})
        assert resp.status_code == 400

    async def test_batch_moderation_reports_each_item(self, client, seeded, make_user):
        await make_user(304, sparks=0)
        first = await _upload(client, 304, "Первая")
        second = await _upload(client, 304, "Вторая")
        await client.post(f"/api/admin/user-works/{first}/moderate", params=AUTH, json={"status": "rejected"})

        resp = await client.post(
            "/api/admin/user-works/batch-moderate",
            params=AUTH,
            json={"workIds": [first, second, 9999], "status": "approved"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["processed"] == 1
        assert body["failed"] == 2
        outcome = {r["id"]: r["success"] for r in body["results"]}
        assert outcome == {first: False, second: True, 9999: False}

    async def test_queue_filter(self, client, seeded, make_user):
        await make_user(305)
        work_id = await _upload(client, 305)
        await client.post(f"/api/admin/user-works/{work_id}/moderate", params=AUTH, json={"status": "approved"})

        pending = (await client.get("/api/admin/user-works", params=AUTH)).json()
        approved = (await client.get("/api/admin/user-works", params={**AUTH, "status": "approved"})).json()
        assert pending == []
        assert [w["id"] for w in approved] == [work_id]


@pytest.mark.asyncio
class TestReviews:
    async def test_first_review_of_day_gets_bonus(self, client, seeded, make_user, get_sparks):
        await make_user(400, sparks=0)
        first = await client.post(
            "/api/webapp/posts/post_art_basics/review", json={"userId": 400, "reviewText": "Отлично", "rating": 5}
        )
        assert first.status_code == 200
        assert first.json()["sparks_earned"] == 4

        second = await client.post(
            "/api/webapp/posts/post_color_psychology/review", json={"userId": 400, "reviewText": "Интересно"}
        )
        assert second.json()["sparks_earned"] == 3
        assert await get_sparks(400) == 7

    async def test_one_review_per_post(self, client, seeded, make_user):
        await make_user(401)
        payload = {"userId": 401, "reviewText": "Хорошо"}
        await client.post("/api/webapp/posts/post_art_basics/review", json=payload)
        resp = await client.post("/api/webapp/posts/post_art_basics/review", json=payload)
        assert resp.status_code == 409

    async def test_rating_range(self, client, seeded, make_user):
        await make_user(402)
        resp = await client.post(
            "/api/webapp/posts/post_art_basics/review", json={"userId": 402, "reviewText": "x", "rating": 9}
        )
        assert resp.status_code == 400

    async def test_review_shows_on_post_and_moderation(self, client, seeded, make_user):
        await make_user(403)
        created = await client.post(
            "/api/webapp/posts/post_art_basics/review", json={"userId": 403, "reviewText": "Супер", "rating": 4}
        )
        review_id = created.json()["review_id"]

        post = (await client.get("/api/webapp/channel-posts/post_art_basics", params={"userId": 403})).json()
        assert post["reviews_count"] == 1
        assert post["user_review"]["rating"] == 4

        queue = (await client.get("/api/admin/reviews", params=AUTH)).json()
        assert [r["id"] for r in queue] == [review_id]

        resp = await client.post(f"/api/admin/reviews/{review_id}/moderate", params=AUTH, json={"status": "approved"})
        assert resp.status_code == 200
        again = await client.post(f"/api/admin/reviews/{review_id}/moderate", params=AUTH, json={"status": "approved"})
        assert again.status_code == 409
