"""Unit tests for catalog request validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from workshop.catalog.schemas import MarathonIn, QuizIn, RoleIn
from workshop.db.enums import DEFAULT_CAPABILITIES, Capability


class TestRoleIn:
    def test_default_capabilities(self):
        role = RoleIn(name="Художник")
        assert role.available_buttons == list(DEFAULT_CAPABILITIES)
        assert Capability.PHOTO_WORK not in role.available_buttons

    def test_unknown_capability_rejected(self):
        with pytest.raises(ValidationError):
            RoleIn(name="Художник", available_buttons=["quiz", "teleport"])

    def test_capabilities_dump_as_strings(self):
        role = RoleIn(name="Художник", available_buttons=["quiz", "shop"])
        assert role.model_dump(mode="json")["available_buttons"] == ["quiz", "shop"]


class TestQuizIn:
    def _question(self, **overrides):
        return {"question": "Q", "options": ["a", "b"], "correct_answer": 0, **overrides}

    def test_camel_case_answer_accepted(self):
        quiz = QuizIn(title="T", questions=[{"question": "Q", "options": ["a", "b"], "correctAnswer": 1}])
        assert quiz.questions[0].correct_answer == 1

    def test_requires_a_question(self):
        with pytest.raises(ValidationError):
            QuizIn(title="T", questions=[])

    def test_requires_two_options(self):
        with pytest.raises(ValidationError):
            QuizIn(title="T", questions=[self._question(options=["only"])])

    def test_answer_must_index_an_option(self):
        with pytest.raises(ValidationError):
            QuizIn(title="T", questions=[self._question(correct_answer=2)])

    def test_blank_title_rejected(self):
        with pytest.raises(ValidationError):
            QuizIn(title="", questions=[self._question()])


class TestMarathonIn:
    def test_duration_defaults_to_last_day_and_tasks_sorted(self):
        marathon = MarathonIn(title="M", tasks=[{"day": 2, "title": "b"}, {"day": 1, "title": "a"}])
        assert marathon.duration_days == 2
        assert [t.day for t in marathon.tasks] == [1, 2]

    def test_duplicate_days_rejected(self):
        with pytest.raises(ValidationError):
            MarathonIn(title="M", tasks=[{"day": 1, "title": "a"}, {"day": 1, "title": "b"}])

    def test_task_beyond_duration_rejected(self):
        with pytest.raises(ValidationError):
            MarathonIn(title="M", duration_days=1, tasks=[{"day": 2, "title": "a"}])
