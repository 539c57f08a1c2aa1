"""Teacher tools: curriculum editor, question factory and student list."""
import logging
import re
import uuid
from typing import Optional

from tutor_portal import store
from tutor_portal.curriculum import topic_sort_key
from tutor_portal.errors import ValidationError
from tutor_portal.models import OPTIONS, SUBJECTS

logger = logging.getLogger(__name__)

TOPIC_ID_PATTERN = re.compile(r"^\d+(\.\d+)*$")


def list_modules(db_path: str, subject: Optional[str] = None) -> list[dict]:
    filters = {"subject": subject} if subject else None
    return store.select(db_path, "modules", filters=filters, order_by="order_index")


def add_module(db_path: str, title: str, subject: str = "chemistry") -> dict:
    """Append a module after the existing ones."""
    title = title.strip()
    if not title:
        raise ValidationError("Module title is required")
    if subject not in SUBJECTS:
        raise ValidationError(f"Subject must be one of {', '.join(SUBJECTS)}")
    existing = store.select(db_path, "modules", columns=["id"])
    row = store.insert(db_path, "modules", {
        "title": title,
        "order_index": len(existing) + 1,
        "subject": subject,
    })
    logger.info("Added module %s (%s)", row["id"], title)
    return row


def list_topics(db_path: str, module_id: Optional[int] = None) -> list[dict]:
    filters = {"module_id": module_id} if module_id is not None else None
    rows = store.select(db_path, "topics", filters=filters)
    return sorted(rows, key=lambda row: topic_sort_key(row["id"]))


def add_topic(db_path: str, topic_id: str, module_id: int, title: str,
              has_video: bool = True, has_questions: bool = True,
              learning_objectives: Optional[list[str]] = None) -> dict:
    topic_id = topic_id.strip()
    title = title.strip()
    if not TOPIC_ID_PATTERN.match(topic_id):
        raise ValidationError(f"Topic code must look like 1.2 or 4.10, got {topic_id!r}")
    if not title:
        raise ValidationError("Topic title is required")
    if not store.select(db_path, "modules", columns=["id"], filters={"id": module_id}):
        raise ValidationError(f"Unknown module: {module_id}")
    objectives = [o.strip() for o in learning_objectives or [] if o.strip()] or None
    row = store.insert(db_path, "topics", {
        "id": topic_id,
        "module_id": module_id,
        "title": title,
        "has_video": has_video,
        "has_questions": has_questions,
        "learning_objectives": objectives,
    })
    logger.info("Added topic %s to module %s", topic_id, module_id)
    return row


def list_questions(db_path: str, topic_id: str) -> list[dict]:
    return store.select(
        db_path, "quiz_questions", filters={"topic_id": topic_id}, order_by="created_at"
    )


def recent_questions(db_path: str, limit: int = 10) -> list[dict]:
    return store.select(
        db_path, "quiz_questions",
        columns=["id", "topic_id", "question", "image_url", "created_at"],
        order_by="created_at", descending=True, limit=limit,
    )


def add_question(db_path: str, topic_id: Optional[str], question: str, options: dict,
                 correct_answer: str, image_url: Optional[str] = None,
                 explanation: Optional[str] = None) -> dict:
    """Validate and store a multiple-choice question.

    ``options`` maps each letter a-d to its text.
    """
    if not topic_id:
        raise ValidationError("Please select a topic first.")
    if not question or not question.strip():
        raise ValidationError("Question text is required")
    missing = [letter for letter in OPTIONS if not (options.get(letter) or "").strip()]
    if missing:
        raise ValidationError(f"Missing option(s): {', '.join(missing)}")
    correct_answer = (correct_answer or "").strip().lower()
    if correct_answer not in OPTIONS:
        raise ValidationError("Correct answer must be a, b, c or d")
    if not store.select(db_path, "topics", columns=["id"], filters={"id": topic_id}):
        raise ValidationError(f"Unknown topic: {topic_id}")
    row = store.insert(db_path, "quiz_questions", {
        "id": uuid.uuid4().hex,
        "topic_id": topic_id,
        "question": question.strip(),
        "image_url": (image_url or "").strip() or None,
        "option_a": options["a"].strip(),
        "option_b": options["b"].strip(),
        "option_c": options["c"].strip(),
        "option_d": options["d"].strip(),
        "correct_answer": correct_answer,
        "explanation": (explanation or "").strip() or None,
    })
    logger.info("Added question %s to topic %s", row["id"], topic_id)
    return row


def delete_question(db_path: str, question_id: str) -> bool:
    deleted = store.delete(db_path, "quiz_questions", {"id": question_id})
    if deleted:
        logger.info("Deleted question %s", question_id)
    return deleted > 0


def list_students(db_path: str) -> list[str]:
    """Every student with at least one progress record."""
    rows = store.select(db_path, "progress", columns=["student_email"])
    return sorted({row["student_email"] for row in rows})
