"""
Notification producers.

A producer listens for domain events and decides whether they deserve a
notification, and for whom. The services that raise the events know nothing
about notifications; all of the "when to notify" logic lives here.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from core.config import get_settings
from notifications.event_bus import Event, EventBus
from notifications.events import (
    AccountSignupEvent,
    ApiSignupEvent,
    DomainEvent,
    EventTypes,
    from_bus_event,
)
from notifications.models import (
    CreateNotificationDto,
    NotificationCategory,
    RecipientDto,
    RecipientType,
)
from notifications.notification_service import NotificationService

logger = logging.getLogger("notification_producers")

APIMAN_ACCOUNT_APPROVAL_REQUEST = "apiman.account.approval.request"
APIMAN_API_APPROVAL_REQUEST = "apiman.client.signup.approval.request"


class NotificationProducer(ABC):
    """
    Base class for producers.

    Subclasses list the event types they want in ``event_types`` and implement
    ``process_event``. ``start`` and ``stop`` attach them to the bus.
    """

    event_types: tuple[str, ...] = ()

    def __init__(
        self,
        notification_service: NotificationService,
        event_bus: Optional[EventBus] = None,
    ):
        self.notification_service = notification_service
        self.event_bus = event_bus or notification_service.event_bus
        self._started = False

    def start(self) -> None:
        if self._started:
            logger.warning(f"{type(self).__name__} already started")
            return
        for event_type in self.event_types:
            self.event_bus.subscribe(event_type, self._on_event)
        self._started = True
        logger.info(f"{type(self).__name__} listening for {', '.join(self.event_types)}")

    def stop(self) -> None:
        if not self._started:
            return
        for event_type in self.event_types:
            self.event_bus.unsubscribe(event_type, self._on_event)
        self._started = False

    def _on_event(self, event: Event) -> None:
        domain_event = from_bus_event(event)
        if domain_event is not None:
            self.process_event(domain_event)

    @abstractmethod
    def process_event(self, event: DomainEvent) -> None:
        raise NotImplementedError


class NewAccountNotificationProducer(NotificationProducer):
    """Asks approvers to look at new accounts that need approval."""

    event_types = (EventTypes.ACCOUNT_SIGNUP,)

    def __init__(
        self,
        notification_service: NotificationService,
        event_bus: Optional[EventBus] = None,
        approver_role: Optional[str] = None,
    ):
        super().__init__(notification_service, event_bus)
        self.approver_role = approver_role or get_settings().APPROVER_ROLE

    def process_event(self, event: DomainEvent) -> None:
        if not isinstance(event, AccountSignupEvent):
            logger.debug(f"NewAccountNotificationProducer not interested in {type(event).__name__}")
            return

        if not event.approval_required:
            return

        approvers = RecipientDto(recipient=self.approver_role, recipient_type=RecipientType.ROLE)

        self.notification_service.send_notification(CreateNotificationDto(
            recipient=[approvers],
            reason=APIMAN_ACCOUNT_APPROVAL_REQUEST,
            reason_message=f"A new account needs approval to gain access {event.username}",
            category=NotificationCategory.USER_ADMINISTRATION,
            source=event.headers.source,
            payload=event,
        ))


class ApiSignupNotificationProducer(NotificationProducer):
    """Asks approvers to review client signups to plans that require approval."""

    event_types = (EventTypes.API_SIGNUP,)

    def __init__(
        self,
        notification_service: NotificationService,
        event_bus: Optional[EventBus] = None,
        approver_role: Optional[str] = None,
    ):
        super().__init__(notification_service, event_bus)
        self.approver_role = approver_role or get_settings().APPROVER_ROLE

    def process_event(self, event: DomainEvent) -> None:
        if not isinstance(event, ApiSignupEvent):
            logger.debug(f"ApiSignupNotificationProducer not interested in {type(event).__name__}")
            return

        if not event.approval_required:
            return

        approvers = RecipientDto(recipient=self.approver_role, recipient_type=RecipientType.ROLE)

        self.notification_service.send_notification(CreateNotificationDto(
            recipient=[approvers],
            reason=APIMAN_API_APPROVAL_REQUEST,
            reason_message=(
                f"Client {event.client_org_id}/{event.client_id} {event.client_version} "
                f"requests access to API {event.api_org_id}/{event.api_id} {event.api_version} "
                f"on plan {event.plan_id} {event.plan_version}"
            ),
            category=NotificationCategory.API_ADMINISTRATION,
            source=event.headers.source,
            payload=event,
        ))
