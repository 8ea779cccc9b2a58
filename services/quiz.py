from dataclasses import dataclass
from typing import Optional

from services.content_loader import Question


CORRECT_FEEDBACK = "✅ Richtig!"
INCORRECT_FEEDBACK = "❌ Falsch!"


class QuizDataError(LookupError):
    """The answered question does not exist in the catalog (stale or tampered button)."""


@dataclass(frozen=True)
class QuizResult:
    correct: bool
    feedback: str


def evaluate_answer(question: Optional[Question], submitted_index: int) -> QuizResult:
    """Check an option index against a multiple choice question."""
    if question is None:
        raise QuizDataError("Question not found")

    if submitted_index == question.correct:
        return QuizResult(correct=True, feedback=CORRECT_FEEDBACK)

    if question.explanation:
        return QuizResult(correct=False, feedback=f"{INCORRECT_FEEDBACK}\n{question.explanation}")
    return QuizResult(correct=False, feedback=INCORRECT_FEEDBACK)


def evaluate_choice(correct_label: Optional[str], submitted_label: str) -> QuizResult:
    """Label based variant used by two-option exercises."""
    if not correct_label:
        raise QuizDataError("Solution not found")

    if submitted_label == correct_label:
        return QuizResult(correct=True, feedback=CORRECT_FEEDBACK)

    return QuizResult(correct=False, feedback=f"{INCORRECT_FEEDBACK}\nRichtige Antwort: {correct_label}")
