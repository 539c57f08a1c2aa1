"""Tests for database initialization and connection management."""
import sqlite3

import pytest

from tutor_portal.db import init_db, get_connection


def test_init_db_creates_tables(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    )
    tables = {row[0] for row in cursor.fetchall()}
    expected = {"modules", "topics", "quiz_questions", "progress", "quiz_attempts"}
    assert expected.issubset(tables)
    conn.close()


def test_init_db_is_idempotent(tmp_db):
    init_db(tmp_db)
    init_db(tmp_db)  # should not raise
    conn = get_connection(tmp_db)
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    assert len(cursor.fetchall()) > 0
    conn.close()


def test_init_db_creates_parent_directory(tmp_path):
    db_path = str(tmp_path / "nested" / "portal.db")
    init_db(db_path)
    assert (tmp_path / "nested" / "portal.db").exists()


def test_get_connection_returns_row_factory(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    conn.execute("INSERT INTO modules (title, order_index, subject) VALUES ('M', 1, 'physics')")
    row = conn.execute("SELECT title, subject FROM modules").fetchone()
    assert row["title"] == "M"
    assert row["subject"] == "physics"
    conn.close()


def test_progress_defaults(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    conn.execute("INSERT INTO progress (student_email, topic_id) VALUES ('s@x.com', '1.1')")
    row = conn.execute("SELECT * FROM progress").fetchone()
    assert row["status"] == "todo"
    assert row["confidence"] == 0
    assert row["is_assigned"] == 0
    assert row["score"] is None
    conn.close()


def test_progress_student_topic_is_unique(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    conn.execute("INSERT INTO progress (student_email, topic_id) VALUES ('s@x.com', '1.1')")
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute("INSERT INTO progress (student_email, topic_id) VALUES ('s@x.com', '1.1')")
    conn.close()


def test_subject_is_constrained(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute("INSERT INTO modules (title, order_index, subject) VALUES ('M', 1, 'biology')")
    conn.close()
