"""
database.py - SQLite Database Schema and Connection Management
Snippet Catalog

Provides database initialization and connection context manager.
All SQL uses parameterized queries for security.
"""

import sqlite3
from contextlib import contextmanager
import os

from flask import current_app, has_app_context

# Default database path - can be overridden via environment variable
DATABASE_PATH = os.environ.get('SNIPPETS_DB_PATH', 'snippets.db')


def resolve_db_path(db_path: str = None) -> str:
    """
    Pick the database file to use.

    Explicit path wins, then the active Flask app's DATABASE setting,
    then the SNIPPETS_DB_PATH default.
    """
    if db_path is not None:
        return db_path
    if has_app_context() and current_app.config.get('DATABASE'):
        return current_app.config['DATABASE']
    return DATABASE_PATH


def init_db(db_path: str = None) -> None:
    """
    Initialize the database with required tables.

    Creates the following tables:
    - users: Author accounts with bcrypt password hashes
    - categories: Catalog sections (unique name and slug)
    - snippets: Catalog entries with their HTML/CSS/JavaScript triple

    Args:
        db_path: Optional path to database file. Resolved via resolve_db_path().
    """
    conn = sqlite3.connect(resolve_db_path(db_path))
    cursor = conn.cursor()

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS categories (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT UNIQUE NOT NULL,
            slug TEXT UNIQUE NOT NULL
        )
    ''')

    # tags holds a JSON array of strings
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS snippets (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            description TEXT NOT NULL,
            html TEXT DEFAULT '',
            css TEXT DEFAULT '',
            javascript TEXT DEFAULT '',
            installation TEXT DEFAULT '',
            how_it_works TEXT DEFAULT '',
            category_id INTEGER NOT NULL,
            tags TEXT NOT NULL DEFAULT '[]',
            compatibility TEXT NOT NULL,
            updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            view_count INTEGER NOT NULL DEFAULT 0,
            FOREIGN KEY (category_id) REFERENCES categories (id)
        )
    ''')

    cursor.execute('''
        CREATE INDEX IF NOT EXISTS idx_snippets_category ON snippets (category_id)
    ''')

    conn.commit()
    conn.close()


@contextmanager
def get_db(db_path: str = None):
    """
    Context manager for database connections.

    Usage:
        with get_db() as db:
            db.execute("SELECT * FROM snippets WHERE id = ?", (snippet_id,))
            result = db.fetchone()

    Args:
        db_path: Optional path to database file. Resolved via resolve_db_path().

    Yields:
        sqlite3.Cursor: Database cursor for executing queries.
    """
    conn = sqlite3.connect(resolve_db_path(db_path))
    # Enable foreign key support
    conn.execute("PRAGMA foreign_keys = ON")
    # Return rows as sqlite3.Row for dict-like access
    conn.row_factory = sqlite3.Row
    cursor = conn.cursor()

    try:
        yield cursor
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def row_to_dict(row: sqlite3.Row) -> dict:
    """
    Convert a sqlite3.Row to a regular dictionary.

    Args:
        row: sqlite3.Row object from query result

    Returns:
        dict: Dictionary representation of the row
    """
    if row is None:
        return None
    return {key: row[key] for key in row.keys()}
