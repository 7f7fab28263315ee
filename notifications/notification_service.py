"""
Notification service.

Notifications tell users useful things. Once a notification has been created
with send_notification, it is stored for each recipient and fired onto the
event bus. Delivery handlers (such as email) subscribe to the bus and do
something sensible with the notifications they know how to handle.

Flow of send_notification:
1. Expand the requested recipients into users (a role becomes its members)
2. Build one OPEN NotificationEntity per user
3. Store it in the notification repository
4. Publish its NotificationDto under EventTypes.NOTIFICATION
"""

import logging
from typing import Optional

from pydantic import BaseModel

from core.config import get_settings
from core.data_store import DataStore, get_data_store
from core.exceptions import try_action
from core.models import UserDto
from core.search import PagingBean, SearchResults, validate_paging
from core.security import SecurityContext
from notifications.event_bus import Event, EventBus, get_event_bus
from notifications.events import EventTypes
from notifications.models import (
    CreateNotificationDto,
    NotificationDto,
    NotificationEntity,
    NotificationPreferenceEntity,
    NotificationStatus,
    RecipientDto,
    RecipientType,
)
from notifications.repository import NotificationRepository, get_notification_repository

logger = logging.getLogger("notification_service")

NOTIFICATION_SOURCE = "notification-service"


class NotificationMapper:
    """Turns stored entities into the DTOs handlers receive."""

    def __init__(self, data_store: Optional[DataStore] = None):
        self.data_store = data_store or get_data_store()

    def entity_to_dto(self, entity: NotificationEntity) -> NotificationDto:
        user = self.data_store.get_user(entity.recipient)
        recipient = UserDto.from_user(user) if user else UserDto(username=entity.recipient)
        return NotificationDto(
            id=entity.id,
            category=entity.category,
            reason=entity.reason,
            reason_message=entity.reason_message,
            status=entity.status,
            recipient=recipient,
            source=entity.source,
            payload=entity.payload,
            created_on=entity.created_on,
            modified_on=entity.modified_on,
        )


def _to_json_tree(payload):
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json")
    return payload


class NotificationService:
    """
    Creates, stores and dispatches notifications; answers inbox queries.

    Example:
        service = NotificationService(event_bus=bus, data_store=store)
        service.send_notification(CreateNotificationDto(
            recipient=[RecipientDto(recipient="approver", recipient_type=RecipientType.ROLE)],
            reason="apiman.account.approval.request",
            reason_message="A new account needs approval",
        ))
    """

    def __init__(
        self,
        event_bus: Optional[EventBus] = None,
        data_store: Optional[DataStore] = None,
        repository: Optional[NotificationRepository] = None,
        security_context: Optional[SecurityContext] = None,
        mapper: Optional[NotificationMapper] = None,
    ):
        """
        Initialize the notification service.

        Args:
            event_bus: Bus notifications are dispatched on (defaults to singleton)
            data_store: Store used to resolve individual recipients (defaults to singleton)
            repository: Where notifications are kept (defaults to singleton)
            security_context: Resolves role recipients (defaults to an anonymous context)
            mapper: Entity to DTO mapper
        """
        self.event_bus = event_bus or get_event_bus()
        self.data_store = data_store or get_data_store()
        self.repository = repository or get_notification_repository()
        self.security_context = security_context or SecurityContext(self.data_store)
        self.mapper = mapper or NotificationMapper(self.data_store)

    # =========================================================================
    # Inbox queries
    # =========================================================================

    def unread_notifications(self, user_id: str) -> int:
        return try_action(lambda: self.repository.count_unread_notifications_by_user_id(user_id))

    def get_latest_notifications(
        self,
        recipient_id: str,
        paging: Optional[PagingBean] = None,
    ) -> SearchResults[NotificationEntity]:
        """
        Get the latest unread notifications for a recipient.

        Args:
            recipient_id: Intended recipient of the notifications
            paging: Which page to return (defaults to the first page)

        Returns:
            One page of notifications, newest first, with the total count
        """
        settings = get_settings()
        if paging is None:
            paging = PagingBean(page=1, page_size=settings.DEFAULT_PAGE_SIZE)
        validate_paging(paging, settings.MAX_PAGE_SIZE)
        return try_action(
            lambda: self.repository.get_unread_notifications_by_recipient_id(recipient_id, paging)
        )

    def get_notification_preference(
        self,
        user_id: str,
        notification_type: str,
    ) -> Optional[NotificationPreferenceEntity]:
        return try_action(
            lambda: self.repository.get_notification_preference_by_user_id_and_type(
                user_id, notification_type
            )
        )

    # =========================================================================
    # Creating and dispatching
    # =========================================================================

    def send_notification(self, new_notification: CreateNotificationDto) -> list[NotificationDto]:
        """
        Send a notification to every user the request's recipients resolve to.

        Returns:
            The dispatched notifications, one per resolved user

        Raises:
            SystemErrorException: If a notification cannot be stored
        """
        logger.debug(f"Creating new notification(s): {new_notification}")

        resolved_recipients = self._calculate_recipients(new_notification.recipient)
        if not resolved_recipients:
            logger.info(f"No recipients resolved for '{new_notification.reason}'")

        payload = _to_json_tree(new_notification.payload)
        dispatched = []

        for recipient in resolved_recipients:
            entity = NotificationEntity(
                category=new_notification.category,
                reason=new_notification.reason,
                reason_message=new_notification.reason_message,
                status=NotificationStatus.OPEN,
                recipient=recipient.username,
                source=new_notification.source,
                payload=payload,
            )
            dispatched.append(try_action(lambda: self._store_and_fire(entity)))

        return dispatched

    def _store_and_fire(self, entity: NotificationEntity) -> NotificationDto:
        logger.debug(f"Creating notification entity in repository layer: {entity}")
        self.repository.create(entity)

        dto = self.mapper.entity_to_dto(entity)
        logger.debug(f"Firing notification event: {dto}")
        self.event_bus.publish(Event(
            event_type=EventTypes.NOTIFICATION,
            source=NOTIFICATION_SOURCE,
            payload=dto.model_dump(mode="json"),
        ))
        return dto

    def mark_notifications_as_read(
        self,
        recipient_id: str,
        notification_ids: list[int],
        status: NotificationStatus,
    ) -> int:
        """
        Mark a list of notifications as read. They must be owned by the recipient.

        Notifications that don't belong to the recipient are silently left
        alone, so take recipient_id from the security context when acting on
        behalf of an external caller.

        Raises:
            ValueError: If status is OPEN

        Returns:
            Number of notifications updated
        """
        if not notification_ids:
            return 0

        if status == NotificationStatus.OPEN:
            raise ValueError(
                f"When marking a notification as read a non-OPEN status must be provided: {status.value}"
            )

        logger.debug(f"Marking recipient {recipient_id} notifications {notification_ids} as read {status.value}")

        return try_action(
            lambda: self.repository.mark_notifications_read_by_id(recipient_id, notification_ids, status)
        )

    # =========================================================================
    # Recipient resolution
    # =========================================================================

    def _calculate_recipients(self, recipients: list[RecipientDto]) -> list[UserDto]:
        resolved: list[UserDto] = []
        for recipient in recipients:
            resolved.extend(self._calculate_recipient(recipient))
        return resolved

    def _calculate_recipient(self, single_recipient: RecipientDto) -> list[UserDto]:
        if single_recipient.recipient_type == RecipientType.INDIVIDUAL:
            user = try_action(lambda: self.data_store.get_user(single_recipient.recipient))
            if user is None:
                logger.warning(f"Notification recipient not found: {single_recipient.recipient}")
                return []
            return [UserDto.from_user(user)]

        if single_recipient.recipient_type == RecipientType.ROLE:
            return try_action(
                lambda: self.security_context.get_remote_users_with_role(single_recipient.recipient)
            )

        raise ValueError(f"Unexpected recipient type: {single_recipient.recipient_type}")
