"""
Store schema initialization.

Each namespace is a two-column key/value table. A meta table records the
schema version.
"""

from __future__ import annotations

import re
import sqlite3


# Schema version - increment when changing table structure
SCHEMA_VERSION = 1

_NAMESPACE_RE = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


def validate_namespace(name: str) -> str:
    """
    Validate a namespace name for use as a table name.

    Raises:
        ValueError: if the name is not a plain identifier
    """
    if not isinstance(name, str) or not _NAMESPACE_RE.match(name) or name == 'meta':
        raise ValueError(f"invalid namespace name: {name!r}")
    return name


def initialize_schema(conn: sqlite3.Connection) -> None:
    """
    Create the meta table and record the schema version.

    Args:
        conn: Active database connection
    """
    conn.execute("""
        CREATE TABLE IF NOT EXISTS meta (
            key TEXT PRIMARY KEY,
            value TEXT
        )
    """)

    conn.execute(
        "INSERT OR REPLACE INTO meta (key, value) VALUES ('schema_version', ?)",
        (str(SCHEMA_VERSION),)
    )


def namespace_exists(conn: sqlite3.Connection, name: str) -> bool:
    """Check whether the table backing a namespace exists."""
    row = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
        (validate_namespace(name),)
    ).fetchone()
    return row is not None


def initialize_namespace(conn: sqlite3.Connection, name: str) -> bool:
    """
    Create the key/value table for a namespace.

    Args:
        conn: Active database connection
        name: Namespace name

    Returns:
        True if the namespace was created, False if it already existed
    """
    name = validate_namespace(name)
    if namespace_exists(conn, name):
        return False

    conn.execute(f"""
        CREATE TABLE "{name}" (
            key TEXT PRIMARY KEY,
            value BLOB NOT NULL
        )
    """)
    return True


__all__ = [
    'SCHEMA_VERSION',
    'validate_namespace',
    'initialize_schema',
    'namespace_exists',
    'initialize_namespace',
]
