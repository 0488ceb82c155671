"""Catalog referential rules and cascades."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from workshop.catalog.schemas import QuizIn, RoleIn
from workshop.catalog.service import CatalogService
from workshop.db.models import Character, QuizCompletion, Role, User
from workshop.exceptions import ConflictError, NotFoundError


@pytest.mark.asyncio
class TestRoles:
    async def test_role_with_members_cannot_be_deleted(self, db_session):
        role = Role(name="Художник")
        db_session.add(role)
        await db_session.flush()
        db_session.add(User(user_id=1, role_id=role.id, role_name=role.name))
        await db_session.commit()

        with pytest.raises(ConflictError):
            await CatalogService(db_session).delete_role(role.id)

    async def test_role_with_characters_cannot_be_deleted(self, db_session):
        role = Role(name="Писатель")
        db_session.add(role)
        await db_session.flush()
        db_session.add(Character(role_id=role.id, name="Поэт", bonus_type="forgiveness"))
        await db_session.commit()

        with pytest.raises(ConflictError):
            await CatalogService(db_session).delete_role(role.id)

    async def test_rename_updates_members(self, db_session):
        role = Role(name="Художник")
        db_session.add(role)
        await db_session.flush()
        db_session.add(User(user_id=1, role_id=role.id, role_name=role.name))
        await db_session.commit()

        await CatalogService(db_session).update_role(role.id, RoleIn(name="Живописец"))
        user = await db_session.get(User, 1)
        assert user.role_name == "Живописец"

    async def test_missing_role(self, db_session):
        with pytest.raises(NotFoundError):
            await CatalogService(db_session).get_role(404)


@pytest.mark.asyncio
class TestQuizzes:
    async def test_delete_cascades_completions(self, db_session):
        svc = CatalogService(db_session)
        quiz = await svc.create_quiz(
            QuizIn(title="Q", questions=[{"question": "?", "options": ["a", "b"], "correct_answer": 0}])
        )
        db_session.add(User(user_id=1))
        db_session.add(QuizCompletion(user_id=1, quiz_id=quiz.id, score=1, total_questions=1))
        await db_session.commit()

        await svc.delete_quiz(quiz.id)
        await db_session.commit()
        remaining = await db_session.scalar(select(func.count()).select_from(QuizCompletion))
        assert remaining == 0
