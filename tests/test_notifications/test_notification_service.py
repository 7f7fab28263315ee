"""
Tests for the NotificationService.

These tests verify recipient resolution, storage, dispatch on the bus and
the inbox queries.
"""

import pytest

from core.exceptions import InvalidSearchCriteriaException, StorageException, SystemErrorException
from core.search import PagingBean
from notifications.event_bus import EventBus
from notifications.events import EventTypes
from notifications.models import (
    CreateNotificationDto,
    NotificationCategory,
    NotificationEntity,
    NotificationStatus,
    RecipientDto,
    RecipientType,
)
from notifications.notification_service import NotificationMapper, NotificationService
from notifications.repository import NotificationRepository


def to_user(username: str) -> RecipientDto:
    return RecipientDto(recipient=username, recipient_type=RecipientType.INDIVIDUAL)


def to_role(role: str) -> RecipientDto:
    return RecipientDto(recipient=role, recipient_type=RecipientType.ROLE)


def new_notification(*recipients: RecipientDto, reason: str = "test.reason") -> CreateNotificationDto:
    return CreateNotificationDto(
        recipient=list(recipients),
        reason=reason,
        reason_message="Something happened",
        category=NotificationCategory.SYSTEM,
        source="http://test",
        payload={"answer": 42},
    )


class TestSendNotification:

    def test_individual_recipient(self, notification_service: NotificationService, alice_user_id):
        dispatched = notification_service.send_notification(new_notification(to_user(alice_user_id)))

        assert len(dispatched) == 1
        dto = dispatched[0]
        assert dto.id is not None
        assert dto.status == NotificationStatus.OPEN
        assert dto.recipient.username == alice_user_id
        assert dto.recipient.email == "alice@example.com"
        assert dto.payload == {"answer": 42}

    def test_notification_is_stored(
        self,
        notification_service: NotificationService,
        repository: NotificationRepository,
        alice_user_id,
    ):
        dto = notification_service.send_notification(new_notification(to_user(alice_user_id)))[0]

        stored = repository.get_notification(dto.id)
        assert stored.recipient == alice_user_id
        assert stored.reason == "test.reason"
        assert stored.category == NotificationCategory.SYSTEM
        assert stored.source == "http://test"

    def test_notification_is_published(self, notification_service: NotificationService, bus: EventBus, alice_user_id):
        received = []
        bus.subscribe(EventTypes.NOTIFICATION, received.append)

        notification_service.send_notification(new_notification(to_user(alice_user_id)))

        assert len(received) == 1
        assert received[0].payload["recipient"]["username"] == alice_user_id
        assert received[0].payload["reason"] == "test.reason"

    def test_role_recipient(self, notification_service: NotificationService):
        dispatched = notification_service.send_notification(new_notification(to_role("approver")))

        assert [d.recipient.username for d in dispatched] == ["alice", "carol", "dave"]

    def test_unknown_user_yields_nobody(self, notification_service: NotificationService, bus: EventBus):
        dispatched = notification_service.send_notification(new_notification(to_user("nobody")))

        assert dispatched == []
        assert bus.get_event_log(EventTypes.NOTIFICATION) == []

    def test_recipients_are_not_deduplicated(self, notification_service: NotificationService, alice_user_id):
        """A user named individually and through a role is notified twice."""
        dispatched = notification_service.send_notification(
            new_notification(to_user(alice_user_id), to_role("approver"))
        )

        usernames = [d.recipient.username for d in dispatched]
        assert usernames.count(alice_user_id) == 2
        assert len(usernames) == 4

    def test_model_payload_becomes_json_tree(self, notification_service: NotificationService, alice_user_id):
        dto = new_notification(to_user(alice_user_id))
        dto.payload = PagingBean(page=3, page_size=7)

        dispatched = notification_service.send_notification(dto)

        assert dispatched[0].payload == {"page": 3, "page_size": 7}

    def test_storage_failure(self, bus: EventBus, data_store, alice_user_id):
        class BrokenRepository(NotificationRepository):
            def create(self, entity):
                raise StorageException("store is read-only")

        service = NotificationService(
            event_bus=bus,
            data_store=data_store,
            repository=BrokenRepository(data_store),
        )

        with pytest.raises(SystemErrorException):
            service.send_notification(new_notification(to_user(alice_user_id)))

        assert bus.get_event_log(EventTypes.NOTIFICATION) == []


class TestInbox:

    def test_unread_count(self, notification_service: NotificationService, alice_user_id, bob_user_id):
        notification_service.send_notification(new_notification(to_user(alice_user_id)))
        notification_service.send_notification(new_notification(to_user(alice_user_id)))

        assert notification_service.unread_notifications(alice_user_id) == 2
        assert notification_service.unread_notifications(bob_user_id) == 0

    def test_latest_notifications_newest_first(self, notification_service: NotificationService, alice_user_id):
        first = notification_service.send_notification(new_notification(to_user(alice_user_id), reason="first"))
        second = notification_service.send_notification(new_notification(to_user(alice_user_id), reason="second"))

        results = notification_service.get_latest_notifications(alice_user_id)

        assert results.total_size == 2
        assert [n.id for n in results.beans] == [second[0].id, first[0].id]

    def test_latest_notifications_paging(self, notification_service: NotificationService, alice_user_id):
        for _ in range(5):
            notification_service.send_notification(new_notification(to_user(alice_user_id)))

        results = notification_service.get_latest_notifications(
            alice_user_id, PagingBean(page=2, page_size=2)
        )

        assert len(results.beans) == 2
        assert results.total_size == 5

    def test_invalid_paging(self, notification_service: NotificationService, alice_user_id):
        with pytest.raises(InvalidSearchCriteriaException):
            notification_service.get_latest_notifications(alice_user_id, PagingBean(page=1, page_size=0))

    def test_preference(self, notification_service: NotificationService, carol_user_id, alice_user_id):
        assert notification_service.get_notification_preference(carol_user_id, "EMAIL").rules == ["apiman.account.*"]
        assert notification_service.get_notification_preference(alice_user_id, "EMAIL") is None


class TestMarkAsRead:

    def test_mark_as_read(self, notification_service: NotificationService, alice_user_id):
        dto = notification_service.send_notification(new_notification(to_user(alice_user_id)))[0]

        updated = notification_service.mark_notifications_as_read(
            alice_user_id, [dto.id], NotificationStatus.USER_DISMISSED
        )

        assert updated == 1
        assert notification_service.unread_notifications(alice_user_id) == 0
        assert notification_service.get_latest_notifications(alice_user_id).total_size == 0

    def test_open_status_rejected(self, notification_service: NotificationService, alice_user_id):
        dto = notification_service.send_notification(new_notification(to_user(alice_user_id)))[0]

        with pytest.raises(ValueError, match="non-OPEN"):
            notification_service.mark_notifications_as_read(alice_user_id, [dto.id], NotificationStatus.OPEN)

    def test_empty_list_is_a_no_op(self, notification_service: NotificationService, alice_user_id):
        assert notification_service.mark_notifications_as_read(
            alice_user_id, [], NotificationStatus.OPEN
        ) == 0

    def test_cannot_mark_other_users_notifications(
        self,
        notification_service: NotificationService,
        alice_user_id,
        bob_user_id,
    ):
        dto = notification_service.send_notification(new_notification(to_user(alice_user_id)))[0]

        updated = notification_service.mark_notifications_as_read(
            bob_user_id, [dto.id], NotificationStatus.USER_DISMISSED
        )

        assert updated == 0
        assert notification_service.unread_notifications(alice_user_id) == 1


class TestNotificationMapper:

    def test_unknown_recipient_falls_back_to_username(self, data_store):
        entity = NotificationEntity(
            id=7,
            category=NotificationCategory.OTHER,
            reason="r",
            reason_message="m",
            recipient="departed-user",
        )

        dto = NotificationMapper(data_store).entity_to_dto(entity)

        assert dto.recipient.username == "departed-user"
        assert dto.recipient.email is None
        assert dto.id == 7
