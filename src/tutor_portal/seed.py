"""Seed the database with the sample curriculum and question bank."""
import json
from pathlib import Path

from tutor_portal import store
from tutor_portal.admin import add_question

CONTENT_DIR = Path(__file__).parent / "content"


def is_seeded(db_path: str) -> bool:
    """Check whether the database already has a curriculum."""
    return bool(store.select(db_path, "modules", columns=["id"], limit=1))


def load_content() -> dict:
    return json.loads((CONTENT_DIR / "curriculum.json").read_text())


def seed_curriculum(db_path: str, data: dict | None = None) -> None:
    """Insert modules, topics and questions from curriculum.json."""
    data = data or load_content()
    for order_index, module in enumerate(data["modules"], 1):
        module_row = store.insert(db_path, "modules", {
            "title": module["title"],
            "order_index": order_index,
            "subject": module["subject"],
        })
        for topic in module.get("topics", []):
            questions = topic.get("questions", [])
            store.insert(db_path, "topics", {
                "id": topic["id"],
                "module_id": module_row["id"],
                "title": topic["title"],
                "has_video": topic.get("has_video", False),
                "has_questions": bool(questions),
                "learning_objectives": topic.get("learning_objectives"),
            })
            for q in questions:
                add_question(
                    db_path, topic["id"], q["question"],
                    {letter: q[f"option_{letter}"] for letter in "abcd"},
                    q["correct_answer"],
                    image_url=q.get("image_url"),
                    explanation=q.get("explanation"),
                )


def seed_all(db_path: str) -> None:
    """Seed once; later calls leave the data alone."""
    if is_seeded(db_path):
        return
    seed_curriculum(db_path)
