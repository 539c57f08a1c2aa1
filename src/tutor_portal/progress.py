"""Progress changes: update the local view first, then save, and undo if the save fails."""
import logging
from dataclasses import replace
from typing import Optional

from tutor_portal import store
from tutor_portal.curriculum import derive_homework, fetch_curriculum
from tutor_portal.errors import MutationError, StoreError, ValidationError
from tutor_portal.models import STATUSES, ModuleView, TopicView

logger = logging.getLogger(__name__)

PROGRESS_KEY = ("student_email", "topic_id")


def find_topic(modules: list[ModuleView], topic_id: str) -> Optional[TopicView]:
    for module in modules:
        for topic in module.topics:
            if topic.id == topic_id:
                return topic
    return None


def replace_topic(modules: list[ModuleView], topic_id: str, **changes) -> list[ModuleView]:
    """Return a copy of ``modules`` with one topic's fields changed."""
    return [
        replace(module, topics=tuple(
            replace(topic, **changes) if topic.id == topic_id else topic
            for topic in module.topics
        ))
        if any(topic.id == topic_id for topic in module.topics) else module
        for module in modules
    ]


def save_progress(db_path: str, student_email: str, topic_id: str, **fields) -> dict:
    """Upsert one progress row keyed on (student_email, topic_id)."""
    row = {"student_email": student_email, "topic_id": topic_id, **fields}
    return store.upsert(db_path, "progress", row, on_conflict=PROGRESS_KEY)


class ProgressBoard:
    """One student's curriculum view plus the changes made to it.

    The board is a cache; ``refresh()`` re-reads the store and replaces it.
    """

    def __init__(self, db_path: str, student_email: Optional[str],
                 modules: Optional[list[ModuleView]] = None):
        self.db_path = db_path
        self.student_email = student_email
        self.modules = list(modules) if modules is not None else []
        self.homework = derive_homework(self.modules)

    def refresh(self) -> list[ModuleView]:
        self.modules = fetch_curriculum(self.db_path, self.student_email)
        self.homework = derive_homework(self.modules)
        return self.modules

    def topic(self, topic_id: str) -> TopicView:
        topic = find_topic(self.modules, topic_id)
        if topic is None:
            raise ValidationError(f"Unknown topic: {topic_id}")
        return topic

    def _apply(self, topic_id: str, field: str, local: dict, persisted: dict) -> TopicView:
        if not self.student_email:
            raise ValidationError("No student selected")
        previous_modules = self.modules
        previous_homework = self.homework
        self.modules = replace_topic(self.modules, topic_id, **local)
        self.homework = derive_homework(self.modules)
        try:
            save_progress(self.db_path, self.student_email, topic_id, **persisted)
        except StoreError as e:
            logger.warning("Reverting %s on %s for %s: %s",
                           field, topic_id, self.student_email, e)
            self.modules = previous_modules
            self.homework = previous_homework
            raise MutationError(topic_id, field, str(e)) from e
        return find_topic(self.modules, topic_id)

    def toggle_status(self, topic_id: str) -> TopicView:
        current = self.topic(topic_id)
        new_status = "todo" if current.status == "complete" else "complete"
        return self._apply(topic_id, "status", {"status": new_status}, {"status": new_status})

    def set_status(self, topic_id: str, status: str) -> TopicView:
        self.topic(topic_id)
        if status not in STATUSES:
            raise ValidationError(f"Unknown status: {status}")
        return self._apply(topic_id, "status", {"status": status}, {"status": status})

    def set_confidence(self, topic_id: str, level: int) -> TopicView:
        current = self.topic(topic_id)
        if not 0 <= level <= 3:
            raise ValidationError("Confidence must be between 0 and 3")
        # Status goes along so a first write doesn't lose what the board shows.
        return self._apply(
            topic_id, "confidence",
            {"confidence": level},
            {"confidence": level, "status": current.status or "todo"},
        )

    def toggle_assignment(self, topic_id: str) -> TopicView:
        current = self.topic(topic_id)
        assigned = not current.is_assigned
        return self._apply(
            topic_id, "is_assigned",
            {"is_assigned": assigned},
            {"is_assigned": assigned, "status": current.status or "todo"},
        )
