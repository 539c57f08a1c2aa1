"""Tests for data model classes."""
from dataclasses import FrozenInstanceError

import pytest

from tutor_portal.models import (
    Module, ProgressRecord, QuizQuestion, Topic, TopicView,
    module_from_row, progress_from_row, question_from_row, topic_from_row,
)


def test_module_defaults_to_chemistry():
    m = Module(id=1, title="Atomic Structure", order_index=1)
    assert m.subject == "chemistry"


def test_topic_defaults():
    t = Topic(id="1.1", module_id=1, title="Atoms")
    assert t.has_video is False
    assert t.has_questions is False
    assert t.learning_objectives is None


def test_progress_record_defaults():
    p = ProgressRecord(student_email="s@x.com", topic_id="1.1")
    assert p.status == "todo"
    assert p.confidence == 0
    assert p.is_assigned is False
    assert p.score is None
    assert p.history == {}


def test_quiz_question_option_lookup():
    q = QuizQuestion(
        id="q1", topic_id="1.1", question="2 + 2?",
        option_a="3", option_b="4", option_c="5", option_d="22", correct_answer="b",
    )
    assert q.option("b") == "4"
    assert q.image_url is None
    assert q.explanation is None


def test_from_row_ignores_extra_columns():
    m = module_from_row({"id": 1, "title": "M", "order_index": 1, "subject": "physics",
                         "created_at": "2024-01-01"})
    assert m == Module(id=1, title="M", order_index=1, subject="physics")
    t = topic_from_row({"id": "1.1", "module_id": 1, "title": "T", "created_at": "x"})
    assert t.id == "1.1"
    q = question_from_row({
        "id": "q1", "topic_id": "1.1", "question": "?", "option_a": "a", "option_b": "b",
        "option_c": "c", "option_d": "d", "correct_answer": "a", "created_at": "x",
    })
    assert q.correct_answer == "a"


def test_progress_from_row_with_null_history():
    p = progress_from_row({"id": 3, "student_email": "s@x.com", "topic_id": "1.1",
                           "status": "review", "confidence": 1, "is_assigned": True,
                           "score": 40, "history": None, "updated_at": "x"})
    assert p.history == {}
    assert p.score == 40


def test_topic_view_is_immutable():
    view = TopicView(
        id="1.1", module_id=1, title="T", has_video=False, has_questions=False,
        learning_objectives=None, status="todo", confidence=0, is_assigned=False, score=0,
    )
    with pytest.raises(FrozenInstanceError):
        view.status = "complete"
