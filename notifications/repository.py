"""
Notification repository.

Stores notification records in memory. Notifications are not part of the
JSON fixtures: they are produced while the manager runs. Preferences, which
users edit rarely, stay with the data store and are only read through here.
"""

import itertools
import logging
import threading
from datetime import datetime
from typing import Optional

from core.data_store import DataStore, get_data_store
from core.search import PagingBean, SearchResults, page_of
from notifications.models import (
    NotificationEntity,
    NotificationPreferenceEntity,
    NotificationStatus,
)

logger = logging.getLogger("notification_repository")


class NotificationRepository:

    def __init__(self, data_store: Optional[DataStore] = None):
        self.data_store = data_store or get_data_store()
        self._notifications: dict[int, NotificationEntity] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def create(self, entity: NotificationEntity) -> NotificationEntity:
        """Store a notification, assigning its id and timestamps."""
        now = datetime.utcnow()
        with self._lock:
            entity.id = next(self._ids)
            entity.created_on = entity.created_on or now
            entity.modified_on = now
            self._notifications[entity.id] = entity
        return entity

    def get_notification(self, notification_id: int) -> Optional[NotificationEntity]:
        return self._notifications.get(notification_id)

    def count_unread_notifications_by_user_id(self, user_id: str) -> int:
        with self._lock:
            return sum(
                1 for n in self._notifications.values()
                if n.recipient == user_id and n.status == NotificationStatus.OPEN
            )

    def get_unread_notifications_by_recipient_id(
        self,
        recipient_id: str,
        paging: PagingBean,
    ) -> SearchResults[NotificationEntity]:
        """Get a page of a recipient's open notifications, newest first."""
        with self._lock:
            unread = [
                n for n in self._notifications.values()
                if n.recipient == recipient_id and n.status == NotificationStatus.OPEN
            ]
        unread.sort(key=lambda n: (n.created_on, n.id), reverse=True)
        return page_of(unread, paging)

    def mark_notifications_read_by_id(
        self,
        recipient_id: str,
        notification_ids: list[int],
        status: NotificationStatus,
    ) -> int:
        """
        Set the status of the listed notifications owned by the recipient.

        Ids that don't exist or belong to somebody else are ignored.

        Returns:
            Number of notifications updated
        """
        now = datetime.utcnow()
        updated = 0
        with self._lock:
            for notification_id in notification_ids:
                entity = self._notifications.get(notification_id)
                if entity is None or entity.recipient != recipient_id:
                    continue
                entity.status = status
                entity.modified_on = now
                updated += 1
        logger.debug(f"Marked {updated} of {len(notification_ids)} notifications as {status.value}")
        return updated

    def get_notification_preference_by_user_id_and_type(
        self,
        user_id: str,
        notification_type: str,
    ) -> Optional[NotificationPreferenceEntity]:
        return self.data_store.get_notification_preference(user_id, notification_type)


_default_repository: Optional[NotificationRepository] = None


def get_notification_repository() -> NotificationRepository:
    """Get the default notification repository singleton."""
    global _default_repository
    if _default_repository is None:
        _default_repository = NotificationRepository()
    return _default_repository
