# src/taskflow_portal/notify/feed.py

from __future__ import annotations

import asyncio
import logging

from ..core import actions as a
from ..core.ids import create_id, now_iso
from ..core.models import Notification, Severity, Toast
from ..core.store import PortalStore

logger = logging.getLogger(__name__)


class NotificationFeed:
    """
    Two independent channels on top of the store:

    - notifications: persistent read/unread feed, newest first, capped
    - toast: at most one live ephemeral notice with an auto-dismiss timer

    The timer runs on the current asyncio loop (call_later). A new toast,
    an explicit dismiss, or an undo cancels the pending timer. Without a
    running loop the toast simply stays until dismissed.
    """

    def __init__(
        self,
        store: PortalStore,
        *,
        limit: int = 150,
        toast_timeout_seconds: float = 5.5,
    ) -> None:
        self._store = store
        self._limit = max(1, int(limit))
        self._toast_timeout = max(0.0, float(toast_timeout_seconds))
        self._toast_timer: asyncio.TimerHandle | None = None

    # ---- notifications ----

    def push_notification(self, message: str, severity: Severity | str = Severity.INFO) -> Notification:
        notification = Notification(
            id=create_id("notif"),
            message=message,
            severity=Severity.from_raw(severity),
            read=False,
            created_at=now_iso(),
        )
        self._store.dispatch(a.PushNotification(notification, limit=self._limit))
        return notification

    def mark_read(self, notification_id: str) -> None:
        self._store.dispatch(a.MarkNotificationRead(notification_id))

    def mark_all_read(self) -> None:
        self._store.dispatch(a.MarkAllNotificationsRead())

    def remove(self, notification_id: str) -> None:
        self._store.dispatch(a.RemoveNotification(notification_id))

    def unread_count(self) -> int:
        return sum(1 for n in self._store.state.notifications if not n.read)

    # ---- toast ----

    def push_toast(self, message: str, undoable: bool = True) -> Toast:
        """Replace the live toast (if any) and restart the auto-dismiss timer."""
        self._cancel_timer()
        toast = Toast(id=create_id("toast"), message=message, undoable=undoable)
        self._store.dispatch(a.SetToast(toast))

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop; toast %s stays until dismissed", toast.id)
            return toast

        self._toast_timer = loop.call_later(self._toast_timeout, self._expire, toast.id)
        return toast

    def dismiss_toast(self) -> None:
        self._cancel_timer()
        self._store.dispatch(a.ClearToast())

    def _expire(self, toast_id: str) -> None:
        self._toast_timer = None
        # Only clears if this toast is still the live one.
        self._store.dispatch(a.ClearToast(toast_id))

    def _cancel_timer(self) -> None:
        if self._toast_timer is not None:
            self._toast_timer.cancel()
            self._toast_timer = None
