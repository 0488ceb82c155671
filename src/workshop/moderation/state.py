"""Moderation state machine shared by user works and post reviews."""

from __future__ import annotations

from workshop.db.enums import ModerationStatus
from workshop.exceptions import StateError, ValidationError

VALID_TRANSITIONS: dict[str, list[str]] = {
    ModerationStatus.PENDING.value: [ModerationStatus.APPROVED.value, ModerationStatus.REJECTED.value],
    ModerationStatus.APPROVED.value: [],
    ModerationStatus.REJECTED.value: [],
}

DECISIONS = frozenset(VALID_TRANSITIONS[ModerationStatus.PENDING.value])


def validate_decision(decision: str) -> str:
    """Return the decision if it is approved/rejected. Raises ValidationError otherwise."""
    if decision not in DECISIONS:
        raise ValidationError("Статус должен быть approved или rejected")
    return decision


def validate_transition(current_status: str, target_status: str) -> None:
    """Validate a moderation transition. Raises StateError if invalid."""
    valid = VALID_TRANSITIONS.get(current_status, [])
    if target_status not in valid:
        raise StateError(f"Уже промодерировано: {current_status} → {target_status} невозможно")
