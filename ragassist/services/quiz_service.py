"""Quiz answer scoring.

Scoring is a pure function of the submitted answers and the questions the
client received; no stored state or provider call is involved.
"""

from __future__ import annotations

from collections.abc import Sequence

from ragassist.models.quiz import AnswerResult, QuizQuestion, QuizScore


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def validate_quiz_answers(answers: Sequence[int], questions: Sequence[QuizQuestion]) -> QuizScore:
    """Score *answers* against *questions* position by position.

    Raises
    ------
    ValueError
        If the two sequences differ in length.
    """
    if len(answers) != len(questions):
        raise ValueError(
            f"Number of answers ({len(answers)}) must match number of questions ({len(questions)})"
        )

    results = [
        AnswerResult(
            question_index=index,
            user_answer=answer,
            correct_answer=question.correct_answer,
            is_correct=answer == question.correct_answer,
            explanation=question.explanation,
        )
        for index, (answer, question) in enumerate(zip(answers, questions))
    ]
    score = sum(1 for r in results if r.is_correct)
    total = len(questions)
    percentage = _round_half_up(score / total * 100) if total else 0

    return QuizScore(
        score=score,
        total_questions=total,
        percentage=percentage,
        results=results,
    )
