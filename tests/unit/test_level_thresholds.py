"""Unit tests for level computation from the sparks balance."""

from __future__ import annotations

from workshop.users.levels import LEVEL_THRESHOLDS, compute_level, level_title


class TestLevelTitle:
    def test_thresholds_are_ordered(self):
        required = [entry["sparks_required"] for entry in LEVEL_THRESHOLDS]
        assert required == sorted(required)

    def test_boundaries(self):
        assert level_title(0) == "Ученик"
        assert level_title(49.5) == "Ученик"
        assert level_title(50) == "Искатель"
        assert level_title(150) == "Знаток"
        assert level_title(300) == "Мастер"
        assert level_title(500) == "Наставник"
        assert level_title(1000) == "Легенда"
        assert level_title(10_000) == "Легенда"


class TestComputeLevel:
    def test_progress_midway(self):
        info = compute_level(100)
        assert info["level"] == "Искатель"
        assert info["next_level"] == "Знаток"
        assert info["sparks_to_next"] == 50
        assert info["progress"] == 50

    def test_max_level(self):
        info = compute_level(1500)
        assert info["level"] == "Легенда"
        assert info["next_level"] is None
        assert info["progress"] == 100

    def test_start(self):
        info = compute_level(0)
        assert info["level"] == "Ученик"
        assert info["progress"] == 0
