"""Unit tests for achievement condition comparison."""

from __future__ import annotations

from workshop.db.enums import ConditionType
from workshop.gamification.achievements import condition_met


class TestConditionMet:
    def test_count_threshold(self):
        assert condition_met(ConditionType.QUIZ_COMPLETION, "3", 3)
        assert not condition_met(ConditionType.QUIZ_COMPLETION, "3", 2)

    def test_sparks_total_with_fractional_balance(self):
        assert condition_met(ConditionType.SPARKS_TOTAL, "300", 300.5)
        assert not condition_met(ConditionType.SPARKS_TOTAL, "300", 299.9)

    def test_registration_flag(self):
        assert condition_met(ConditionType.REGISTRATION, "1", 1)
        assert not condition_met(ConditionType.REGISTRATION, "1", 0)

    def test_level_reached_compares_rank(self):
        assert condition_met(ConditionType.LEVEL_REACHED, "Знаток", "Мастер")
        assert condition_met(ConditionType.LEVEL_REACHED, "Знаток", "Знаток")
        assert not condition_met(ConditionType.LEVEL_REACHED, "Знаток", "Искатель")

    def test_unknown_level_never_met(self):
        assert not condition_met(ConditionType.LEVEL_REACHED, "Гуру", "Легенда")

    def test_malformed_threshold_never_met(self):
        assert not condition_met(ConditionType.WORK_UPLOAD, "many", 10)
