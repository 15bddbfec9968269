from __future__ import annotations

from typing import Optional

from ..core.enums import NotificationKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, execute
from .sink import NotificationSink


class MySQLNotificationSink(NotificationSink):
    """Writes in-app notifications to the shared notifications table."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def notify(
        self,
        *,
        user_id: int,
        kind: NotificationKind,
        title: str,
        message: str,
        related_id: Optional[int] = None,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            execute(
                cur,
                """
                INSERT INTO notifications(user_id, type, title, message, related_id)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(user_id), kind.value, title, message, related_id),
            )
