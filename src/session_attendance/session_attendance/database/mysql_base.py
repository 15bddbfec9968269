from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import DuplicateKeyError, StorageError, StorageUnavailableError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

# MySQL 8 reports "for key 'table.key'", 5.7 reports "for key 'key'".
_DUP_KEY_RE = re.compile(r"for key '(?:[^'.]+\.)?([^']+)'")


def duplicate_key_name(message: str) -> Optional[str]:
    m = _DUP_KEY_RE.search(message or "")
    return m.group(1) if m else None


@contextmanager
def translate_mysql_errors() -> Iterator[None]:
    """Re-raise mysql-connector errors as storage exceptions the services understand."""

    try:
        yield
    except mysql.connector.IntegrityError as e:
        if e.errno == errorcode.ER_DUP_ENTRY:
            raise DuplicateKeyError(str(e), constraint=duplicate_key_name(e.msg)) from e
        raise StorageError(str(e)) from e
    except (mysql.connector.OperationalError, mysql.connector.InterfaceError) as e:
        logger.error("Database unavailable: %s", e)
        raise StorageUnavailableError(str(e)) from e


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One connection, one transaction: commit on success, rollback on any error."""

    with translate_mysql_errors():
        conn = conn_factory.connect()
        try:
            cur = conn.cursor(dictionary=dictionary)
            try:
                yield conn, cur
                conn.commit()
            finally:
                cur.close()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()


def execute(cur, sql: str, params: Sequence[Any] = ()) -> None:
    """cur.execute() with errors translated at the statement, so callers can react inside a transaction."""

    with translate_mysql_errors():
        cur.execute(sql, tuple(params))


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])
