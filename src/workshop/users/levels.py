"""Level thresholds and computation.

Levels are derived from the current sparks balance, so spending sparks can
lower a member's level.
"""

from __future__ import annotations

LEVEL_THRESHOLDS: list[dict] = [
    {"title": "Ученик", "sparks_required": 0},
    {"title": "Искатель", "sparks_required": 50},
    {"title": "Знаток", "sparks_required": 150},
    {"title": "Мастер", "sparks_required": 300},
    {"title": "Наставник", "sparks_required": 500},
    {"title": "Легенда", "sparks_required": 1000},
]


def level_title(sparks: float) -> str:
    """Return the level label for a sparks balance."""
    title = LEVEL_THRESHOLDS[0]["title"]
    for entry in LEVEL_THRESHOLDS:
        if sparks >= entry["sparks_required"]:
            title = entry["title"]
    return title


def compute_level(sparks: float) -> dict:
    """Compute level info (label, next label, percent towards next) from sparks."""
    index = 0
    for i, entry in enumerate(LEVEL_THRESHOLDS):
        if sparks >= entry["sparks_required"]:
            index = i

    current = LEVEL_THRESHOLDS[index]
    if index == len(LEVEL_THRESHOLDS) - 1:
        return {
            "level": current["title"],
            "next_level": None,
            "sparks_to_next": 0,
            "progress": 100,
        }

    next_level = LEVEL_THRESHOLDS[index + 1]
    span = next_level["sparks_required"] - current["sparks_required"]
    progress = (sparks - current["sparks_required"]) / span * 100
    return {
        "level": current["title"],
        "next_level": next_level["title"],
        "sparks_to_next": next_level["sparks_required"] - sparks,
        "progress": round(min(max(progress, 0), 100)),
    }
