"""
Scoring Service
Pure aggregation of a question set and its answer log into a ScoreReport.
"""
from typing import Optional, Sequence

from examiner.schemas import Outcome, Question, QuestionResult, ScoreReport


def classify(question: Question, answer: Optional[str]) -> Outcome:
    """Classify one answer by exact string match against the correct answer."""
    if answer is None:
        return Outcome.UNATTEMPTED
    if answer == question.correct_answer:
        return Outcome.CORRECT
    return Outcome.WRONG


def round_percentage(correct: int, total: int) -> int:
    """Whole-number percentage rounded half up; 0 for an empty exam."""
    if total <= 0:
        return 0
    return (correct * 200 + total) // (total * 2)


def score_exam(
    questions: Sequence[Question],
    answers: Sequence[Optional[str]]
) -> ScoreReport:
    """
    Scores an answer log against its question set.

    Args:
        questions: Ordered questions of the exam.
        answers: One slot per question, None where unattempted.

    Returns:
        ScoreReport with aggregate counts and per-question results.

    Raises:
        ValueError: If questions and answers differ in length.
    """
    if len(questions) != len(answers):
        raise ValueError(
            f"Expected {len(questions)} answers, got {len(answers)}"
        )

    results = []
    for number, (question, answer) in enumerate(zip(questions, answers), start=1):
        results.append(
            QuestionResult(
                number=number,
                question=question.question,
                options=list(question.options),
                user_answer=answer,
                correct_answer=question.correct_answer,
                outcome=classify(question, answer),
            )
        )

    total = len(results)
    correct = sum(1 for result in results if result.outcome == Outcome.CORRECT)
    attempted = sum(1 for result in results if result.outcome != Outcome.UNATTEMPTED)

    return ScoreReport(
        total=total,
        correct_count=correct,
        wrong_count=attempted - correct,
        attempted_count=attempted,
        unattempted_count=total - attempted,
        percentage=round_percentage(correct, total),
        results=results,
    )
