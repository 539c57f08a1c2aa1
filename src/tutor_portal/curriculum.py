"""Curriculum merge: modules x topics x one student's progress, plus derived stats."""
import logging
from functools import cmp_to_key
from typing import Iterable, Optional

from tutor_portal.errors import DataFetchError, StoreError
from tutor_portal.models import (
    Module, ModuleView, ProgressRecord, Topic, TopicView,
    module_from_row, progress_from_row, topic_from_row,
)
from tutor_portal import store

logger = logging.getLogger(__name__)


def topic_sort_key(topic_id: str) -> tuple:
    """Sort key for dotted topic codes, so "1.9" < "1.10" < "2.1".

    Numeric segments compare as integers and come before any non-numeric
    segment; a code that is a prefix of another sorts first.
    """
    key = []
    for segment in topic_id.split("."):
        if segment.isdigit():
            key.append((0, int(segment), ""))
        else:
            key.append((1, 0, segment))
    return tuple(key)


def compare_topic_ids(a: str, b: str) -> int:
    ka, kb = topic_sort_key(a), topic_sort_key(b)
    return (ka > kb) - (ka < kb)


def sort_topic_ids(topic_ids: Iterable[str]) -> list[str]:
    return sorted(topic_ids, key=cmp_to_key(compare_topic_ids))


def materialize_topic_view(topic: Topic, record: Optional[ProgressRecord]) -> TopicView:
    """Build a TopicView, filling in the defaults when the student has no record."""
    objectives = tuple(topic.learning_objectives) if topic.learning_objectives else None
    if record is None:
        status, confidence, is_assigned, score = "todo", 0, False, 0
    else:
        status = record.status or "todo"
        confidence = record.confidence or 0
        is_assigned = bool(record.is_assigned)
        score = record.score or 0
    return TopicView(
        id=topic.id,
        module_id=topic.module_id,
        title=topic.title,
        has_video=bool(topic.has_video),
        has_questions=bool(topic.has_questions),
        learning_objectives=objectives,
        status=status,
        confidence=confidence,
        is_assigned=is_assigned,
        score=score,
    )


def merge_curriculum(
    modules: list[Module], topics: list[Topic], progress: list[ProgressRecord]
) -> list[ModuleView]:
    """Join modules, topics and progress into ModuleViews.

    Modules keep their input order. Topics whose module is not in ``modules``
    are dropped.
    """
    by_topic = {record.topic_id: record for record in progress}
    merged = []
    for module in modules:
        views = [
            materialize_topic_view(topic, by_topic.get(topic.id))
            for topic in topics
            if topic.module_id == module.id
        ]
        views.sort(key=lambda view: topic_sort_key(view.id))
        merged.append(ModuleView(
            id=module.id,
            title=module.title,
            order_index=module.order_index,
            subject=module.subject,
            topics=tuple(views),
        ))
    return merged


def fetch_curriculum(db_path: str, student_email: Optional[str]) -> list[ModuleView]:
    """Read modules, topics and the student's progress, then merge them.

    All three reads must succeed; a failure in any raises DataFetchError.
    With no student identity every topic shows its defaults.
    """
    try:
        module_rows = store.select(db_path, "modules", order_by="order_index")
        topic_rows = store.select(db_path, "topics")
        progress_rows = []
        if student_email:
            progress_rows = store.select(
                db_path, "progress", filters={"student_email": student_email}
            )
    except StoreError as e:
        logger.error("Could not load curriculum for %s: %s", student_email, e)
        raise DataFetchError(f"Could not load curriculum: {e}") from e
    return merge_curriculum(
        [module_from_row(row) for row in module_rows],
        [topic_from_row(row) for row in topic_rows],
        [progress_from_row(row) for row in progress_rows],
    )


def flatten_topics(modules: list[ModuleView]) -> list[TopicView]:
    return [topic for module in modules for topic in module.topics]


def modules_for_subject(modules: list[ModuleView], subject: Optional[str]) -> list[ModuleView]:
    if subject is None:
        return list(modules)
    return [module for module in modules if module.subject == subject]


def derive_homework(modules: list[ModuleView]) -> list[TopicView]:
    """Topics assigned by the teacher and not yet complete."""
    return [
        topic for topic in flatten_topics(modules)
        if topic.is_assigned and topic.status != "complete"
    ]


def _percent(part: int, whole: int) -> int:
    if whole == 0:
        return 0
    return int(100 * part / whole + 0.5)


def module_completion(module: ModuleView) -> int:
    done = sum(1 for topic in module.topics if topic.status == "complete")
    return _percent(done, len(module.topics))


def completion_percent(modules: list[ModuleView], subject: Optional[str] = None) -> int:
    topics = flatten_topics(modules_for_subject(modules, subject))
    done = sum(1 for topic in topics if topic.status == "complete")
    return _percent(done, len(topics))


def graded_topics(modules: list[ModuleView], subject: Optional[str] = None) -> list[TopicView]:
    return [
        topic for topic in flatten_topics(modules_for_subject(modules, subject))
        if topic.score > 0
    ]


def average_score(modules: list[ModuleView], subject: Optional[str] = None) -> int:
    """Mean quiz score over topics with a score above zero; 0 when there are none."""
    graded = graded_topics(modules, subject)
    if not graded:
        return 0
    return int(sum(topic.score for topic in graded) / len(graded) + 0.5)


def grade_summary(modules: list[ModuleView]) -> dict:
    return {
        "overall": average_score(modules),
        "chemistry": average_score(modules, "chemistry"),
        "physics": average_score(modules, "physics"),
        "graded": graded_topics(modules),
    }
