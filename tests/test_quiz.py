# tests/test_quiz.py
import random
from unittest.mock import patch

import pytest

from tutor_portal import store
from tutor_portal.errors import MutationError, StoreError
from tutor_portal.models import QuizQuestion
from tutor_portal.progress import ProgressBoard
from tutor_portal.quiz import (
    FINISHED, IN_PROGRESS, LOADING, NO_QUESTIONS, PASS_THRESHOLD, QuizSession,
    list_attempts, load_questions, record_quiz_result, score_percentage, start_quiz,
)


def make_questions(n):
    return [
        QuizQuestion(
            id=f"q{i}", topic_id="1.5", question=f"Q{i}?",
            option_a="A", option_b="B", option_c="C", option_d="D",
            correct_answer="abcd"[i % 4],
        )
        for i in range(n)
    ]


def wrong_answer(question):
    return "b" if question.correct_answer != "b" else "c"


def play(session, correct_count):
    """Answer the first ``correct_count`` questions correctly and the rest wrong."""
    for i in range(session.total):
        q = session.current
        session.answer(q.correct_answer if i < correct_count else wrong_answer(q))
        session.next()


def progress_row(db_path, email, topic_id):
    rows = store.select(db_path, "progress", filters={"student_email": email, "topic_id": topic_id})
    return rows[0] if rows else None


def test_pass_threshold_is_seventy():
    assert PASS_THRESHOLD == 70


def test_score_percentage():
    assert score_percentage(3, 4) == 75
    assert score_percentage(2, 3) == 67
    assert score_percentage(1, 8) == 13
    assert score_percentage(0, 0) == 0


def test_new_session_is_loading():
    session = QuizSession(make_questions(2))
    assert session.state == LOADING
    assert session.current is None


def test_start_without_questions():
    session = QuizSession([])
    assert session.start() == NO_QUESTIONS
    assert session.next() == NO_QUESTIONS
    assert session.answer("a") is None


def test_start_shuffles_but_keeps_every_question():
    questions = make_questions(10)
    session = QuizSession(questions, rng=random.Random(3))
    session.start()
    assert session.state == IN_PROGRESS
    assert sorted(q.id for q in session.questions) == sorted(q.id for q in questions)
    assert session.index == 0
    assert session.score == 0
    assert session.answered is False


def test_answer_scores_and_records_history():
    session = QuizSession(make_questions(2), rng=random.Random(1))
    session.start()
    q = session.current
    assert session.answer(q.correct_answer) is True
    assert session.score == 1
    assert session.answered is True
    assert session.selected == q.correct_answer
    assert session.history == {q.id: q.correct_answer}


def test_second_answer_is_ignored():
    session = QuizSession(make_questions(2), rng=random.Random(1))
    session.start()
    q = session.current
    session.answer(wrong_answer(q))
    assert session.answer(q.correct_answer) is None
    assert session.score == 0
    assert session.history == {q.id: wrong_answer(q)}


def test_answer_is_normalized_and_validated():
    session = QuizSession(make_questions(1))
    session.start()
    q = session.current
    assert session.answer(f"  {q.correct_answer.upper()} ") is True
    fresh = QuizSession(make_questions(1))
    fresh.start()
    with pytest.raises(ValueError):
        fresh.answer("e")


def test_bad_letter_after_answering_is_ignored():
    session = QuizSession(make_questions(2), rng=random.Random(1))
    session.start()
    session.answer("a")
    assert session.answer("x") is None
    assert session.selected == "a"


def test_answer_before_start_is_ignored():
    assert QuizSession(make_questions(1)).answer("e") is None


def test_next_before_answering_is_ignored():
    session = QuizSession(make_questions(2), rng=random.Random(1))
    session.start()
    assert session.next() == IN_PROGRESS
    assert session.index == 0


def test_next_advances_and_clears_selection():
    session = QuizSession(make_questions(2), rng=random.Random(1))
    session.start()
    first = session.current
    session.answer("a")
    session.next()
    assert session.index == 1
    assert session.answered is False
    assert session.selected is None
    assert first.id in session.history


def test_finish_computes_percentage_and_calls_back_once():
    finished = []
    session = QuizSession(make_questions(4), rng=random.Random(2), on_finish=finished.append)
    session.start()
    play(session, 3)
    assert session.state == FINISHED
    assert session.percentage == 75
    assert session.passed is True
    assert len(session.history) == 4
    assert finished == [session]
    session.next()
    assert finished == [session]


def test_failing_session():
    session = QuizSession(make_questions(3), rng=random.Random(2))
    session.start()
    play(session, 2)
    assert session.percentage == 67
    assert session.passed is False


def test_load_questions_in_creation_order(curriculum_db):
    questions = load_questions(curriculum_db, "1.5")
    assert [q.id for q in questions] == ["q1", "q2", "q3", "q4"]
    assert load_questions(curriculum_db, "1.2") == []


def test_quiz_end_to_end_pass(curriculum_db):
    session = start_quiz(curriculum_db, "s@x.com", "1.5", rng=random.Random(11))
    assert session.total == 4
    play(session, 3)
    assert session.percentage == 75
    row = progress_row(curriculum_db, "s@x.com", "1.5")
    assert row["status"] == "complete"
    assert row["score"] == 75
    assert len(row["history"]) == 4
    assert set(row["history"]) == {"q1", "q2", "q3", "q4"}


def test_quiz_without_questions_saves_nothing(curriculum_db):
    session = start_quiz(curriculum_db, "s@x.com", "1.2")
    assert session.state == NO_QUESTIONS
    assert progress_row(curriculum_db, "s@x.com", "1.2") is None


def test_passing_clears_assignment(curriculum_db):
    board = ProgressBoard(curriculum_db, "s@x.com")
    board.refresh()
    board.toggle_assignment("1.5")
    play(start_quiz(curriculum_db, "s@x.com", "1.5"), 4)
    row = progress_row(curriculum_db, "s@x.com", "1.5")
    assert row["is_assigned"] is False
    assert row["score"] == 100
    board.refresh()
    assert board.homework == []


def test_failing_keeps_assignment(curriculum_db):
    board = ProgressBoard(curriculum_db, "s@x.com")
    board.refresh()
    board.toggle_assignment("1.5")
    play(start_quiz(curriculum_db, "s@x.com", "1.5"), 1)
    row = progress_row(curriculum_db, "s@x.com", "1.5")
    assert row["status"] == "review"
    assert row["score"] == 25
    assert row["is_assigned"] is True
    board.refresh()
    assert [t.id for t in board.homework] == ["1.5"]


def test_retake_overwrites_progress_and_logs_attempts(curriculum_db):
    record_quiz_result(curriculum_db, "s@x.com", "1.5", 50, {"q1": "a"})
    record_quiz_result(curriculum_db, "s@x.com", "1.5", 100, {"q1": "a", "q2": "b"})
    row = progress_row(curriculum_db, "s@x.com", "1.5")
    assert row["score"] == 100
    assert row["history"] == {"q1": "a", "q2": "b"}
    attempts = list_attempts(curriculum_db, "s@x.com", "1.5")
    assert [a["score"] for a in attempts] == [50, 100]


def test_save_failure_is_reported(curriculum_db):
    with patch("tutor_portal.store.upsert", side_effect=StoreError("offline")):
        with pytest.raises(MutationError):
            record_quiz_result(curriculum_db, "s@x.com", "1.5", 80, {})


def test_attempt_log_failure_keeps_saved_score(curriculum_db):
    real_insert = store.insert

    def insert(db_path, table, row):
        if table == "quiz_attempts":
            raise StoreError("disk full")
        return real_insert(db_path, table, row)

    with patch("tutor_portal.quiz.store.insert", side_effect=insert):
        row = record_quiz_result(curriculum_db, "s@x.com", "1.5", 80, {"q1": "a"})
    assert row["score"] == 80
    saved = progress_row(curriculum_db, "s@x.com", "1.5")
    assert saved["status"] == "complete"
    assert saved["history"] == {"q1": "a"}
    assert list_attempts(curriculum_db, "s@x.com", "1.5") == []
