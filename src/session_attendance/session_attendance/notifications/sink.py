from __future__ import annotations

import logging
from typing import Optional, Protocol

from ..core.enums import NotificationKind

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    def notify(
        self,
        *,
        user_id: int,
        kind: NotificationKind,
        title: str,
        message: str,
        related_id: Optional[int] = None,
    ) -> None:
        raise NotImplementedError


class SafeNotifier:
    """Fire-and-forget wrapper: a failed notification is logged and dropped, never raised."""

    def __init__(self, sink: NotificationSink):
        self._sink = sink

    def notify(
        self,
        *,
        user_id: int,
        kind: NotificationKind,
        title: str,
        message: str,
        related_id: Optional[int] = None,
    ) -> bool:
        try:
            self._sink.notify(user_id=user_id, kind=kind, title=title, message=message, related_id=related_id)
        except Exception:
            logger.warning("Failed to notify user %s (%s)", user_id, kind.value, exc_info=True)
            return False
        return True
