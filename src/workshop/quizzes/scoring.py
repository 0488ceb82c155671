"""Pure quiz scoring and reward math."""

from __future__ import annotations

import math
from typing import Any

from workshop.db.enums import BonusType


def _is_correct(answer: Any, expected: Any) -> bool:
    # bool is an int subclass; True must not match option 1
    if isinstance(answer, bool) or not isinstance(answer, int):
        return False
    return answer == expected


def score_answers(questions: list[dict[str, Any]], answers: list[Any]) -> tuple[int, list[dict[str, Any]]]:
    """Compare answers to the question set.

    Missing, out-of-range and non-integer answers count as incorrect.
    Returns ``(correct_count, per_question_results)``.
    """
    correct = 0
    results = []
    for index, question in enumerate(questions):
        answer = answers[index] if index < len(answers) else None
        is_correct = _is_correct(answer, question.get("correct_answer"))
        if is_correct:
            correct += 1
        results.append({
            "question": question.get("question", ""),
            "user_answer": answer,
            "correct_answer": question.get("correct_answer"),
            "is_correct": is_correct,
            "explanation": question.get("explanation", ""),
        })
    return correct, results


def score_percentage(correct: int, total: int) -> int:
    if total <= 0:
        return 0
    return round(correct / total * 100)


def compute_reward(correct: int, total: int, per_correct: float, perfect_bonus: float) -> float:
    """``correct * per_correct`` plus the perfect bonus once for a full score."""
    reward = correct * per_correct
    if total > 0 and correct == total:
        reward += perfect_bonus
    return reward


def apply_character_bonus(reward: float, bonus_type: str | None, bonus_value: str | None) -> float:
    """Add a percent_bonus character's share, rounded down."""
    if bonus_type != BonusType.PERCENT_BONUS.value or reward <= 0:
        return reward
    try:
        percent = float(bonus_value or 0)
    except ValueError:
        return reward
    return reward + math.floor(reward * percent / 100)


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def result_message(correct: int, total: int, per_correct: float, perfect_bonus: float, earned: float) -> str:
    if total > 0 and correct == total:
        return (
            f"Идеально! 🎉 +{_fmt(earned)}✨ "
            f"({correct}×{_fmt(per_correct)} + {_fmt(perfect_bonus)} бонус)"
        )
    return f"Правильно: {correct}/{total}. +{_fmt(earned)}✨ ({correct}×{_fmt(per_correct)})"
