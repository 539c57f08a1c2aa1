"""Read-only replay of a student's last quiz attempt."""
from dataclasses import dataclass
from typing import Optional

from tutor_portal import store
from tutor_portal.models import QuizQuestion
from tutor_portal.quiz import load_questions

CORRECT = "correct"
INCORRECT = "incorrect"
SKIPPED = "skipped"


@dataclass(frozen=True)
class ReviewItem:
    question: QuizQuestion
    selected: Optional[str]
    outcome: str


def review_answers(questions: list[QuizQuestion], history: dict) -> list[ReviewItem]:
    """Classify each question against the recorded answers; no entry means skipped."""
    items = []
    for question in questions:
        selected = (history or {}).get(question.id)
        if selected is None:
            outcome = SKIPPED
        elif selected == question.correct_answer:
            outcome = CORRECT
        else:
            outcome = INCORRECT
        items.append(ReviewItem(question=question, selected=selected, outcome=outcome))
    return items


def review_summary(items: list[ReviewItem]) -> dict:
    summary = {CORRECT: 0, INCORRECT: 0, SKIPPED: 0}
    for item in items:
        summary[item.outcome] += 1
    return summary


def load_review(db_path: str, student_email: str, topic_id: str) -> list[ReviewItem]:
    questions = load_questions(db_path, topic_id)
    rows = store.select(
        db_path, "progress",
        columns=["history"],
        filters={"student_email": student_email, "topic_id": topic_id},
    )
    history = rows[0]["history"] if rows and rows[0]["history"] else {}
    return review_answers(questions, history)
