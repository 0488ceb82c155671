"""Admin panel API: access gate, catalog management, settings, reports."""

from __future__ import annotations

import pytest

from workshop.db.models import Admin

ADMIN_ID = 1000  # created by the `seeded` fixture
AUTH = {"userId": ADMIN_ID}


@pytest.mark.asyncio
class TestAdminGate:
    async def test_missing_user_id(self, client, seeded):
        resp = await client.get("/api/admin/stats")
        assert resp.status_code == 403
        assert resp.json()["error_code"] == "forbidden"

    async def test_unknown_user(self, client, seeded):
        resp = await client.get("/api/admin/stats", params={"userId": 1})
        assert resp.status_code == 403

    async def test_removed_admin(self, client, seeded):
        await client.post("/api/admin/admins", params=AUTH, json={"adminUserId": 2000})
        await client.delete("/api/admin/admins/2000", params=AUTH)
        resp = await client.get("/api/admin/stats", params={"userId": 2000})
        assert resp.status_code == 403

    async def test_inactive_admin(self, client, seeded, database):
        async with database.session() as session:
            session.add(Admin(user_id=2002, username="former", is_active=False))
            await session.commit()
        resp = await client.get("/api/admin/stats", params={"userId": 2002})
        assert resp.status_code == 403

    async def test_catalog_routes_are_gated(self, client, seeded):
        resp = await client.post("/api/admin/roles", json={"name": "Хакер"})
        assert resp.status_code == 403

    async def test_admin_passes(self, client, seeded):
        resp = await client.get("/api/admin/stats", params=AUTH)
        assert resp.status_code == 200
        stats = resp.json()
        assert stats["totalAdmins"] == 1
        assert stats["activeQuizzes"] == 2
        assert stats["shopItems"] == 3


@pytest.mark.asyncio
class TestAdminManagement:
    async def test_add_list_and_remove(self, client, seeded):
        resp = await client.post(
            "/api/admin/admins", params=AUTH, json={"adminUserId": 2001, "username": "mod", "role": "moderator"}
        )
        assert resp.status_code == 200
        assert resp.json()["admin"]["user_id"] == 2001

        admins = (await client.get("/api/admin/admins", params=AUTH)).json()
        assert {a["user_id"] for a in admins} == {ADMIN_ID, 2001}

        # The new admin can call admin routes
        assert (await client.get("/api/admin/stats", params={"userId": 2001})).status_code == 200

        resp = await client.delete("/api/admin/admins/2001", params=AUTH)
        assert resp.status_code == 200
        admins = (await client.get("/api/admin/admins", params=AUTH)).json()
        assert [a["user_id"] for a in admins] == [ADMIN_ID]

    async def test_duplicate_admin(self, client, seeded):
        resp = await client.post("/api/admin/admins", params=AUTH, json={"adminUserId": ADMIN_ID})
        assert resp.status_code == 409

    async def test_cannot_remove_self(self, client, seeded):
        resp = await client.delete(f"/api/admin/admins/{ADMIN_ID}", params=AUTH)
        assert resp.status_code == 400


@pytest.mark.asyncio
class TestCatalogManagement:
    async def test_role_crud(self, client, seeded):
        created = await client.post(
            "/api/admin/roles", params=AUTH, json={"name": "Фотограф", "available_buttons": ["quiz", "photo_work"]}
        )
        assert created.status_code == 200
        role = created.json()["role"]
        assert role["available_buttons"] == ["quiz", "photo_work"]

        updated = await client.put(
            f"/api/admin/roles/{role['id']}", params=AUTH, json={"name": "Фотохудожник", "is_active": False}
        )
        assert updated.json()["role"]["name"] == "Фотохудожник"

        # Inactive roles are hidden from the registration screen
        public = (await client.get("/api/webapp/roles")).json()
        assert "Фотохудожник" not in {r["name"] for r in public}

        deleted = await client.delete(f"/api/admin/roles/{role['id']}", params=AUTH)
        assert deleted.status_code == 200

    async def test_role_with_characters_cannot_be_deleted(self, client, seeded):
        role_id = seeded["roles"]["Художник"]
        resp = await client.delete(f"/api/admin/roles/{role_id}", params=AUTH)
        assert resp.status_code == 409
        assert resp.json()["error_code"] == "conflict"

    async def test_unknown_capability_rejected(self, client, seeded):
        resp = await client.post(
            "/api/admin/roles", params=AUTH, json={"name": "X", "available_buttons": ["teleport"]}
        )
        assert resp.status_code == 422

    async def test_character_needs_existing_role(self, client, seeded):
        resp = await client.post(
            "/api/admin/characters",
            params=AUTH,
            json={"role_id": 9999, "name": "Призрак", "bonus_type": "percent_bonus", "bonus_value": "5"},
        )
        assert resp.status_code == 400

    async def test_quiz_create_and_deactivate(self, client, seeded):
        created = await client.post(
            "/api/admin/quizzes",
            params=AUTH,
            json={
                "title": "Новый квиз",
                "questions": [{"question": "2+2?", "options": ["3", "4"], "correctAnswer": 1}],
            },
        )
        assert created.status_code == 200
        quiz_id = created.json()["quiz"]["id"]
        assert created.json()["quiz"]["questions"][0]["correct_answer"] == 1

        status = await client.put(f"/api/admin/quizzes/{quiz_id}/status", params=AUTH, json={"is_active": False})
        assert status.status_code == 200

        public = (await client.get("/api/webapp/quizzes")).json()
        assert quiz_id not in {q["id"] for q in public}
        assert (await client.get(f"/api/webapp/quizzes/{quiz_id}")).status_code == 404

    async def test_shop_item_with_purchases_cannot_be_deleted(self, client, seeded, make_user):
        await make_user(900, sparks=100)
        created = await client.post(
            "/api/admin/shop/items", params=AUTH, json={"title": "Кисти", "price": 5, "type": "material"}
        )
        item_id = created.json()["item"]["id"]
        await client.post("/api/webapp/shop/purchase", json={"userId": 900, "itemId": item_id})

        resp = await client.delete(f"/api/admin/shop/items/{item_id}", params=AUTH)
        assert resp.status_code == 409

    async def test_post_lifecycle(self, client, seeded):
        created = await client.post(
            "/api/admin/channel-posts", params=AUTH, json={"title": "Новости", "content": "Текст"}
        )
        assert created.status_code == 200
        post_id = created.json()["post"]["post_id"]
        assert post_id.startswith("post_")

        public = await client.get(f"/api/webapp/channel-posts/{post_id}")
        assert public.status_code == 200
        assert public.json()["reviews_count"] == 0

        await client.put(
            f"/api/admin/channel-posts/{post_id}", params=AUTH, json={"title": "Новости", "is_active": False}
        )
        assert (await client.get(f"/api/webapp/channel-posts/{post_id}")).status_code == 404

        deleted = await client.delete(f"/api/admin/channel-posts/{post_id}", params=AUTH)
        assert deleted.status_code == 200


@pytest.mark.asyncio
class TestSettingsAndReports:
    async def test_settings_override_policy(self, client, seeded):
        settings = (await client.get("/api/admin/settings", params=AUTH)).json()
        default = next(s for s in settings if s["key"] == "default_sparks")
        assert default["value"] == "50"

        resp = await client.put(
            "/api/admin/settings", params=AUTH, json={"settings": [{"key": "default_sparks", "value": "80"}]}
        )
        assert resp.status_code == 200
        assert resp.json()["updated"] == 1

        first = (await client.get("/api/users/4321")).json()
        assert first["user"]["sparks"] == 80

    async def test_full_stats_sections(self, client, seeded):
        resp = await client.get("/api/admin/full-stats", params=AUTH)
        assert resp.status_code == 200
        assert set(resp.json()) == {"users", "content", "activities", "completions", "revenue"}

    async def test_users_report_orders_by_activity(self, client, seeded):
        roles, characters = seeded["roles"], seeded["characters"]
        for user_id in (1, 2):
            await client.post(
                "/api/users/register",
                json={
                    "userId": user_id,
                    "firstName": f"u{user_id}",
                    "roleId": roles["Художник"],
                    "characterId": characters["Сюрреалист"],
                },
            )
        quiz_id = seeded["quizzes"]["🎨 Основы живописи"]
        await client.post(f"/api/webapp/quizzes/{quiz_id}/submit", json={"userId": 2, "answers": [1, 1]})

        report = (await client.get("/api/admin/users-report", params=AUTH)).json()
        assert [row["user_id"] for row in report] == [2, 1]
        assert report[0]["total_activities"] == 2

    async def test_quiz_stats(self, client, seeded, make_user):
        await make_user(950)
        quiz_id = seeded["quizzes"]["🎨 Основы живописи"]
        await client.post(f"/api/webapp/quizzes/{quiz_id}/submit", json={"userId": 950, "answers": [1, 0]})
        stats = (await client.get(f"/api/admin/quizzes/{quiz_id}/stats", params=AUTH)).json()
        assert stats["completions"] == 1
        assert [q["correct_count"] for q in stats["questions"]] == [1, 0]
