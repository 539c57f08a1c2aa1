"""Database initialization and connection management."""
import sqlite3
from pathlib import Path

from tutor_portal.config import DEFAULT_DB_PATH

SCHEMA = """
CREATE TABLE IF NOT EXISTS modules (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    order_index INTEGER NOT NULL,
    subject TEXT NOT NULL DEFAULT 'chemistry' CHECK (subject IN ('chemistry', 'physics')),
    created_at TEXT
);

-- module_id is a soft reference: topics pointing at a missing module are
-- hidden by the curriculum merge rather than rejected here.
CREATE TABLE IF NOT EXISTS topics (
    id TEXT PRIMARY KEY,
    module_id INTEGER NOT NULL,
    title TEXT NOT NULL,
    has_video INTEGER DEFAULT 0,
    has_questions INTEGER DEFAULT 0,
    learning_objectives TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS quiz_questions (
    id TEXT PRIMARY KEY,
    topic_id TEXT NOT NULL,
    question TEXT NOT NULL,
    image_url TEXT,
    option_a TEXT NOT NULL,
    option_b TEXT NOT NULL,
    option_c TEXT NOT NULL,
    option_d TEXT NOT NULL,
    correct_answer TEXT NOT NULL CHECK (correct_answer IN ('a', 'b', 'c', 'd')),
    explanation TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS progress (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    student_email TEXT NOT NULL,
    topic_id TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'todo' CHECK (status IN ('todo', 'review', 'complete', 'locked')),
    confidence INTEGER NOT NULL DEFAULT 0 CHECK (confidence BETWEEN 0 AND 3),
    is_assigned INTEGER NOT NULL DEFAULT 0,
    score INTEGER CHECK (score IS NULL OR score BETWEEN 0 AND 100),
    history TEXT,
    updated_at TEXT,
    UNIQUE(student_email, topic_id)
);

CREATE TABLE IF NOT EXISTS quiz_attempts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    student_email TEXT NOT NULL,
    topic_id TEXT NOT NULL,
    score INTEGER NOT NULL,
    history TEXT,
    taken_at TEXT
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
