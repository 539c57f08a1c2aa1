"""Data classes for the curriculum and progress model."""
from dataclasses import dataclass, field
from typing import Optional

SUBJECTS = ("chemistry", "physics")
STATUSES = ("todo", "review", "complete", "locked")
OPTIONS = ("a", "b", "c", "d")


@dataclass
class Module:
    id: int
    title: str
    order_index: int
    subject: str = "chemistry"


@dataclass
class Topic:
    id: str
    module_id: int
    title: str
    has_video: bool = False
    has_questions: bool = False
    learning_objectives: Optional[list[str]] = None


@dataclass
class QuizQuestion:
    id: str
    topic_id: str
    question: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    correct_answer: str
    image_url: Optional[str] = None
    explanation: Optional[str] = None

    def option(self, letter: str) -> str:
        return getattr(self, f"option_{letter}")


@dataclass
class ProgressRecord:
    student_email: str
    topic_id: str
    status: str = "todo"
    confidence: int = 0
    is_assigned: bool = False
    score: Optional[int] = None
    history: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class TopicView:
    """A topic merged with one student's progress. Never persisted."""
    id: str
    module_id: int
    title: str
    has_video: bool
    has_questions: bool
    learning_objectives: Optional[tuple[str, ...]]
    status: str
    confidence: int
    is_assigned: bool
    score: int


@dataclass(frozen=True)
class ModuleView:
    id: int
    title: str
    order_index: int
    subject: str
    topics: tuple[TopicView, ...]


def _pick(cls, row: dict) -> dict:
    names = cls.__dataclass_fields__
    return {key: value for key, value in row.items() if key in names}


def module_from_row(row: dict) -> Module:
    return Module(**_pick(Module, row))


def topic_from_row(row: dict) -> Topic:
    return Topic(**_pick(Topic, row))


def question_from_row(row: dict) -> QuizQuestion:
    return QuizQuestion(**_pick(QuizQuestion, row))


def progress_from_row(row: dict) -> ProgressRecord:
    values = _pick(ProgressRecord, row)
    if values.get("history") is None:
        values["history"] = {}
    return ProgressRecord(**values)
