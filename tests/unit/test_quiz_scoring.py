"""Unit tests for pure quiz scoring and reward math."""

from __future__ import annotations

from workshop.quizzes.scoring import (
    apply_character_bonus,
    compute_reward,
    result_message,
    score_answers,
    score_percentage,
)

QUESTIONS = [
    {"question": "Q1", "options": ["a", "b", "c"], "correct_answer": 1, "explanation": "b"},
    {"question": "Q2", "options": ["a", "b"], "correct_answer": 0},
    {"question": "Q3", "options": ["a", "b", "c", "d"], "correct_answer": 3},
]


class TestScoreAnswers:
    """Scoring compares each answer index to the stored correct index."""

    def test_all_correct(self):
        correct, results = score_answers(QUESTIONS, [1, 0, 3])
        assert correct == 3
        assert all(r["is_correct"] for r in results)

    def test_all_wrong(self):
        correct, _ = score_answers(QUESTIONS, [0, 1, 0])
        assert correct == 0

    def test_short_answer_list_counts_missing_as_wrong(self):
        correct, results = score_answers(QUESTIONS, [1])
        assert correct == 1
        assert results[1]["user_answer"] is None
        assert results[2]["is_correct"] is False

    def test_extra_answers_ignored(self):
        correct, results = score_answers(QUESTIONS, [1, 0, 3, 2, 2])
        assert correct == 3
        assert len(results) == 3

    def test_non_integer_answers_are_wrong(self):
        correct, _ = score_answers(QUESTIONS, ["1", None, 3.0])
        assert correct == 0

    def test_bool_is_not_an_option_index(self):
        correct, _ = score_answers([{"question": "Q", "options": ["a", "b"], "correct_answer": 1}], [True])
        assert correct == 0

    def test_score_is_bounded_and_deterministic(self):
        for answers in ([], [1], [1, 0], [9, 9, 9], [1, 0, 3]):
            first, _ = score_answers(QUESTIONS, answers)
            second, _ = score_answers(QUESTIONS, answers)
            assert 0 <= first <= len(QUESTIONS)
            assert first == second

    def test_results_carry_explanation(self):
        _, results = score_answers(QUESTIONS, [1, 0, 3])
        assert results[0]["explanation"] == "b"
        assert results[1]["explanation"] == ""

    def test_empty_quiz(self):
        correct, results = score_answers([], [1, 2])
        assert correct == 0
        assert results == []


class TestReward:
    def test_partial_score_has_no_bonus(self):
        assert compute_reward(1, 2, 2, 10) == 2

    def test_perfect_score_adds_bonus_once(self):
        assert compute_reward(2, 2, 2, 10) == 14

    def test_zero_question_quiz_awards_nothing(self):
        assert compute_reward(0, 0, 2, 10) == 0

    def test_percentage(self):
        assert score_percentage(1, 2) == 50
        assert score_percentage(2, 3) == 67
        assert score_percentage(0, 0) == 0


class TestCharacterBonus:
    def test_percent_bonus_rounds_down(self):
        assert apply_character_bonus(14, "percent_bonus", "15") == 16

    def test_other_bonus_types_ignored(self):
        assert apply_character_bonus(14, "random_gift", "3") == 14

    def test_no_character(self):
        assert apply_character_bonus(14, None, None) == 14

    def test_malformed_value_ignored(self):
        assert apply_character_bonus(14, "percent_bonus", "lots") == 14

    def test_zero_reward_stays_zero(self):
        assert apply_character_bonus(0, "percent_bonus", "15") == 0


class TestResultMessage:
    def test_perfect_message(self):
        assert result_message(2, 2, 2, 10, 14) == "Идеально! 🎉 +14✨ (2×2 + 10 бонус)"

    def test_partial_message(self):
        assert result_message(1, 2, 2, 10, 2) == "Правильно: 1/2. +2✨ (1×2)"
