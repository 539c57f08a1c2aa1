import pytest

from tutor_portal import store
from tutor_portal.db import init_db


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_portal.db")
    return db_path


@pytest.fixture
def curriculum_db(tmp_db):
    """A small known curriculum: two chemistry modules, one physics module.

    Module ids are 1 (Atomic Structure), 2 (Bonding), 3 (Energy). Topic 1.5
    has four questions q1-q4 whose answers are a, b, c, d in that order.
    """
    init_db(tmp_db)
    for order_index, (title, subject) in enumerate(
        [("Atomic Structure", "chemistry"), ("Bonding", "chemistry"), ("Energy", "physics")], 1
    ):
        store.insert(tmp_db, "modules", {"title": title, "order_index": order_index, "subject": subject})
    for topic_id, module_id, title in [
        ("1.10", 1, "Periodic table"),
        ("1.2", 1, "Isotopes"),
        ("1.5", 1, "Ions"),
        ("1.9", 1, "Electron configuration"),
        ("2.3", 2, "Metallic bonding"),
        ("2.1", 2, "Ionic bonding"),
        ("6.1", 3, "Energy stores"),
    ]:
        store.insert(tmp_db, "topics", {
            "id": topic_id, "module_id": module_id, "title": title,
            "has_video": True, "has_questions": topic_id == "1.5",
        })
    for i, letter in enumerate("abcd", 1):
        store.insert(tmp_db, "quiz_questions", {
            "id": f"q{i}", "topic_id": "1.5", "question": f"Question {i}?",
            "option_a": "A", "option_b": "B", "option_c": "C", "option_d": "D",
            "correct_answer": letter, "explanation": f"Because {letter}.",
            "created_at": f"2024-01-01T00:00:0{i}",
        })
    return tmp_db
