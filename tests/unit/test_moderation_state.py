"""Unit tests for the moderation state machine."""

from __future__ import annotations

import pytest

from workshop.exceptions import StateError, ValidationError
from workshop.moderation.state import VALID_TRANSITIONS, validate_decision, validate_transition


class TestModerationStateMachine:
    """pending -> approved | rejected; both terminal."""

    def test_valid_transitions_structure(self):
        assert set(VALID_TRANSITIONS.keys()) == {"pending", "approved", "rejected"}

    def test_pending_to_approved(self):
        validate_transition("pending", "approved")

    def test_pending_to_rejected(self):
        validate_transition("pending", "rejected")

    def test_approved_is_terminal(self):
        assert VALID_TRANSITIONS["approved"] == []
        with pytest.raises(StateError):
            validate_transition("approved", "rejected")

    def test_rejected_is_terminal(self):
        with pytest.raises(StateError):
            validate_transition("rejected", "approved")

    def test_cannot_reapprove(self):
        with pytest.raises(StateError):
            validate_transition("approved", "approved")

    def test_unknown_decision_rejected(self):
        with pytest.raises(ValidationError):
            validate_decision("maybe")

    def test_pending_is_not_a_decision(self):
        with pytest.raises(ValidationError):
            validate_decision("pending")
