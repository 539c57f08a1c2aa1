"""Tabular data store: select, insert, upsert and delete against the portal tables.

Every call opens its own connection, the same way the rest of the package
talks to SQLite. Table and column names are checked against the live schema
before any SQL is built, so callers can pass names straight through from
their own code without quoting concerns.
"""
import json
import logging
import sqlite3
from datetime import datetime

from tutor_portal.db import get_connection
from tutor_portal.errors import StoreError

logger = logging.getLogger(__name__)

TABLES = ("modules", "topics", "quiz_questions", "progress", "quiz_attempts")

JSON_COLUMNS = {
    "topics": {"learning_objectives"},
    "progress": {"history"},
    "quiz_attempts": {"history"},
}

BOOL_COLUMNS = {
    "topics": {"has_video", "has_questions"},
    "progress": {"is_assigned"},
}

# Column stamped with the current time on insert (and on every upsert for progress).
TIMESTAMP_COLUMNS = {
    "modules": "created_at",
    "topics": "created_at",
    "quiz_questions": "created_at",
    "progress": "updated_at",
    "quiz_attempts": "taken_at",
}


def _table_columns(conn: sqlite3.Connection, table: str) -> list[str]:
    if table not in TABLES:
        raise StoreError(f"Unknown table: {table}")
    return [row["name"] for row in conn.execute(f"PRAGMA table_info({table})")]


def _check_columns(known: list[str], table: str, names) -> None:
    unknown = [name for name in names if name not in known]
    if unknown:
        raise StoreError(f"Unknown column(s) for {table}: {', '.join(unknown)}")


def _encode(table: str, row: dict) -> dict:
    encoded = {}
    for key, value in row.items():
        if key in JSON_COLUMNS.get(table, ()) and value is not None:
            value = json.dumps(value)
        elif key in BOOL_COLUMNS.get(table, ()) and value is not None:
            value = int(bool(value))
        encoded[key] = value
    return encoded


def _decode(table: str, row: sqlite3.Row) -> dict:
    decoded = dict(row)
    for key in JSON_COLUMNS.get(table, ()):
        if decoded.get(key) is not None:
            decoded[key] = json.loads(decoded[key])
    for key in BOOL_COLUMNS.get(table, ()):
        if key in decoded and decoded[key] is not None:
            decoded[key] = bool(decoded[key])
    return decoded


def _where(filters: dict) -> tuple[str, list]:
    if not filters:
        return "", []
    clauses = []
    params = []
    for key, value in filters.items():
        if value is None:
            clauses.append(f"{key} IS NULL")
        else:
            clauses.append(f"{key} = ?")
            params.append(value)
    return " WHERE " + " AND ".join(clauses), params


def _stamp(table: str, row: dict) -> dict:
    column = TIMESTAMP_COLUMNS.get(table)
    if column and (table == "progress" or row.get(column) is None):
        row = {**row, column: datetime.now().isoformat()}
    return row


def select(
    db_path: str,
    table: str,
    columns="*",
    filters: dict | None = None,
    order_by=None,
    descending: bool = False,
    limit: int | None = None,
) -> list[dict]:
    """Read rows matching equality ``filters``.

    ``order_by`` is a column name or a sequence of names. Ties are broken by
    insertion order so repeated reads return rows in a stable order.
    """
    filters = filters or {}
    conn = get_connection(db_path)
    try:
        known = _table_columns(conn, table)
        if columns == "*":
            column_sql = "*"
        else:
            _check_columns(known, table, columns)
            column_sql = ", ".join(columns)
        _check_columns(known, table, filters)
        where, params = _where(filters)
        sql = f"SELECT {column_sql} FROM {table}{where}"
        if order_by:
            order_cols = [order_by] if isinstance(order_by, str) else list(order_by)
            _check_columns(known, table, order_cols)
            direction = " DESC" if descending else ""
            sql += " ORDER BY " + ", ".join(f"{c}{direction}" for c in order_cols)
            sql += f", rowid{direction}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        rows = conn.execute(sql, params).fetchall()
    except sqlite3.Error as e:
        logger.error("select from %s failed: %s", table, e)
        raise StoreError(f"Could not read {table}: {e}") from e
    finally:
        conn.close()
    return [_decode(table, row) for row in rows]


def insert(db_path: str, table: str, row: dict) -> dict:
    """Insert one row and return it as stored."""
    conn = get_connection(db_path)
    try:
        known = _table_columns(conn, table)
        row = _stamp(table, row)
        _check_columns(known, table, row)
        encoded = _encode(table, row)
        names = ", ".join(encoded)
        marks = ", ".join("?" for _ in encoded)
        cursor = conn.execute(
            f"INSERT INTO {table} ({names}) VALUES ({marks})", list(encoded.values())
        )
        conn.commit()
        stored = conn.execute(
            f"SELECT * FROM {table} WHERE rowid = ?", (cursor.lastrowid,)
        ).fetchone()
    except sqlite3.Error as e:
        logger.error("insert into %s failed: %s", table, e)
        raise StoreError(f"Could not insert into {table}: {e}") from e
    finally:
        conn.close()
    return _decode(table, stored)


def upsert(db_path: str, table: str, row: dict, on_conflict) -> dict:
    """Insert ``row`` or, when the ``on_conflict`` key already exists, update it.

    Only the columns present in ``row`` are written on update; every other
    column keeps its stored value (or its default on first insert).
    """
    conflict = [on_conflict] if isinstance(on_conflict, str) else list(on_conflict)
    missing = [key for key in conflict if key not in row]
    if missing:
        raise StoreError(f"Upsert on {table} is missing key column(s): {', '.join(missing)}")
    conn = get_connection(db_path)
    try:
        known = _table_columns(conn, table)
        row = _stamp(table, row)
        _check_columns(known, table, row)
        encoded = _encode(table, row)
        names = ", ".join(encoded)
        marks = ", ".join("?" for _ in encoded)
        updates = [key for key in encoded if key not in conflict]
        if updates:
            action = "DO UPDATE SET " + ", ".join(f"{key} = excluded.{key}" for key in updates)
        else:
            action = "DO NOTHING"
        conn.execute(
            f"INSERT INTO {table} ({names}) VALUES ({marks}) "
            f"ON CONFLICT({', '.join(conflict)}) {action}",
            list(encoded.values()),
        )
        conn.commit()
        where, params = _where({key: row[key] for key in conflict})
        stored = conn.execute(f"SELECT * FROM {table}{where}", params).fetchone()
    except sqlite3.Error as e:
        logger.error("upsert into %s failed: %s", table, e)
        raise StoreError(f"Could not save to {table}: {e}") from e
    finally:
        conn.close()
    return _decode(table, stored)


def delete(db_path: str, table: str, filters: dict) -> int:
    """Delete rows matching ``filters`` and return how many went."""
    if not filters:
        raise StoreError(f"Refusing to delete from {table} without a filter")
    conn = get_connection(db_path)
    try:
        known = _table_columns(conn, table)
        _check_columns(known, table, filters)
        where, params = _where(filters)
        cursor = conn.execute(f"DELETE FROM {table}{where}", params)
        conn.commit()
    except sqlite3.Error as e:
        logger.error("delete from %s failed: %s", table, e)
        raise StoreError(f"Could not delete from {table}: {e}") from e
    finally:
        conn.close()
    return cursor.rowcount
