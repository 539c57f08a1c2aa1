"""Quiz sessions for a single topic."""
import logging
import random
from typing import Callable, Optional

from tutor_portal import store
from tutor_portal.errors import MutationError, StoreError
from tutor_portal.models import OPTIONS, QuizQuestion, question_from_row
from tutor_portal.progress import save_progress

logger = logging.getLogger(__name__)

# Fixed pass mark: at or above it the topic is complete and any assignment cleared.
PASS_THRESHOLD = 70

LOADING = "loading"
NO_QUESTIONS = "no_questions"
IN_PROGRESS = "in_progress"
FINISHED = "finished"


def load_questions(db_path: str, topic_id: str) -> list[QuizQuestion]:
    rows = store.select(
        db_path, "quiz_questions", filters={"topic_id": topic_id}, order_by="created_at"
    )
    return [question_from_row(row) for row in rows]


def score_percentage(correct: int, total: int) -> int:
    if total == 0:
        return 0
    return int(100 * correct / total + 0.5)


class QuizSession:
    """Walks one student through a shuffled question set.

    ``answer()`` and ``next()`` called out of turn are ignored rather than
    raising, so a double submit from the UI is harmless.
    """

    def __init__(self, questions: list[QuizQuestion], rng: Optional[random.Random] = None,
                 on_finish: Optional[Callable[["QuizSession"], None]] = None):
        self.questions = list(questions)
        self.rng = rng or random.Random()
        self.on_finish = on_finish
        self.state = LOADING
        self.index = 0
        self.score = 0
        self.answered = False
        self.selected: Optional[str] = None
        self.history: dict[str, str] = {}
        self.percentage = 0

    def start(self) -> str:
        if not self.questions:
            self.state = NO_QUESTIONS
            return self.state
        self.rng.shuffle(self.questions)
        self.state = IN_PROGRESS
        self.index = 0
        self.score = 0
        self.answered = False
        self.selected = None
        self.history = {}
        return self.state

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def current(self) -> Optional[QuizQuestion]:
        if self.state != IN_PROGRESS:
            return None
        return self.questions[self.index]

    @property
    def passed(self) -> bool:
        return self.state == FINISHED and self.percentage >= PASS_THRESHOLD

    def answer(self, option: str) -> Optional[bool]:
        """Record ``option`` for the current question; returns whether it was right."""
        if self.state != IN_PROGRESS or self.answered:
            return None
        option = option.strip().lower()
        if option not in OPTIONS:
            raise ValueError(f"Answer must be one of {', '.join(OPTIONS)}")
        question = self.questions[self.index]
        self.selected = option
        self.answered = True
        self.history[question.id] = option
        correct = option == question.correct_answer
        if correct:
            self.score += 1
        return correct

    def next(self) -> str:
        if self.state != IN_PROGRESS or not self.answered:
            return self.state
        if self.index + 1 < self.total:
            self.index += 1
            self.answered = False
            self.selected = None
            return self.state
        self.state = FINISHED
        self.selected = None
        self.percentage = score_percentage(self.score, self.total)
        if self.on_finish is not None:
            self.on_finish(self)
        return self.state


def record_quiz_result(db_path: str, student_email: str, topic_id: str,
                       percentage: int, history: dict) -> dict:
    """Save a finished attempt to the student's progress and the attempt log.

    A failing score leaves ``is_assigned`` as it was so the topic stays on
    the homework list. The progress row is the record of the result; if only
    the attempt log write fails the score still counts as saved.
    """
    passed = percentage >= PASS_THRESHOLD
    fields = {
        "status": "complete" if passed else "review",
        "score": percentage,
        "history": dict(history),
    }
    if passed:
        fields["is_assigned"] = False
    try:
        row = save_progress(db_path, student_email, topic_id, **fields)
    except StoreError as e:
        logger.error("Could not save quiz result for %s on %s: %s", student_email, topic_id, e)
        raise MutationError(topic_id, "score", str(e)) from e
    logger.info("%s scored %s%% on %s", student_email, percentage, topic_id)
    try:
        store.insert(db_path, "quiz_attempts", {
            "student_email": student_email,
            "topic_id": topic_id,
            "score": percentage,
            "history": dict(history),
        })
    except StoreError as e:
        logger.warning("Attempt by %s on %s not logged: %s", student_email, topic_id, e)
    return row


def list_attempts(db_path: str, student_email: str, topic_id: str) -> list[dict]:
    return store.select(
        db_path, "quiz_attempts",
        filters={"student_email": student_email, "topic_id": topic_id},
        order_by="taken_at",
    )


def start_quiz(db_path: str, student_email: str, topic_id: str,
               rng: Optional[random.Random] = None) -> QuizSession:
    """Load a topic's questions and start a session that saves itself on finish."""
    def persist(session: QuizSession) -> None:
        record_quiz_result(db_path, student_email, topic_id, session.percentage, session.history)

    session = QuizSession(load_questions(db_path, topic_id), rng=rng, on_finish=persist)
    session.start()
    return session
