"""
SQLite persistence for the CMMS backend.

Usage:
    - Set DATABASE_PATH to choose the database file (defaults to data/cmms.db)
    - Inside a request, use get_db(); the connection is closed on teardown
    - Outside a request (scripts, seeding), use get_db_connection()

Rows are sqlite3.Row objects, so columns can be accessed by name.
"""

import os
import sqlite3
import logging
from contextlib import contextmanager
from typing import Optional

from flask import current_app, g, has_app_context

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

_default_db_path = os.path.join(
    os.path.dirname(os.path.abspath(__file__)),
    'data', 'cmms.db'
)

DATABASE_PATH = os.environ.get('DATABASE_PATH', _default_db_path)

SCHEMA_PATH = os.path.join(
    os.path.dirname(os.path.abspath(__file__)),
    'data', 'schema.sql'
)


def get_database_path() -> str:
    """Database file for the current app, falling back to DATABASE_PATH."""
    if has_app_context():
        return current_app.config.get('DATABASE_PATH') or DATABASE_PATH
    return DATABASE_PATH


def _connect(path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    return conn


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def get_db() -> sqlite3.Connection:
    """Get a database connection for the current request context."""
    db = getattr(g, '_database', None)
    if db is None:
        path = get_database_path()
        db = g._database = _connect(path)
        logger.debug(f"Opened SQLite connection: {path}")
    return db


def close_db(e=None):
    """Close the database connection for the current request context."""
    db = getattr(g, '_database', None)
    if db is not None:
        db.close()
        g._database = None


@contextmanager
def get_db_connection(path: Optional[str] = None):
    """
    Context manager for database connections outside Flask request context.

    Usage:
        with get_db_connection() as conn:
            conn.execute("INSERT INTO assets (id, name) VALUES (?, ?)", ...)
    """
    conn = _connect(path or get_database_path())
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(path: Optional[str] = None):
    """Initialize the database with the schema."""
    path = path or get_database_path()
    directory = os.path.dirname(path)
    if directory and not os.path.exists(directory):
        os.makedirs(directory)

    with sqlite3.connect(path) as db:
        with open(SCHEMA_PATH, mode='r') as f:
            db.cursor().executescript(f.read())
        db.commit()
    logger.info(f"SQLite database initialized at {path}")


def get_database_info() -> dict:
    """Return information about the current database configuration."""
    return {
        'type': 'sqlite',
        'path': get_database_path(),
    }
