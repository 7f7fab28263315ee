"""
Wiring for the REST layer.

Module-level instances are created lazily and handed to the routes through
FastAPI's Depends. Tests swap them with reset_api_state before starting a
client; everything built per request (security context, services) picks up
whatever is installed at that moment.
"""

import logging
from typing import Optional

from fastapi import Depends, Header

from core.channels import EmailChannel, get_email_channel
from core.data_store import DataStore, get_data_store
from core.security import SecurityContext
from notifications.event_bus import EventBus, get_event_bus
from notifications.handlers import EmailNotificationDispatcher
from notifications.notification_service import NotificationService
from notifications.producers import (
    ApiSignupNotificationProducer,
    NewAccountNotificationProducer,
)
from notifications.repository import NotificationRepository, get_notification_repository
from services.api_service import ApiService
from services.dev_portal import DevPortalService
from services.organizations import OrganizationService
from services.sso_events import SsoEventService

logger = logging.getLogger("api")

USER_HEADER = "X-Apiman-User"

_data_store: Optional[DataStore] = None
_event_bus: Optional[EventBus] = None
_repository: Optional[NotificationRepository] = None
_channel: Optional[EmailChannel] = None


def get_store() -> DataStore:
    global _data_store
    if _data_store is None:
        _data_store = get_data_store()
    return _data_store


def get_bus() -> EventBus:
    global _event_bus
    if _event_bus is None:
        _event_bus = get_event_bus()
    return _event_bus


def get_repository() -> NotificationRepository:
    global _repository
    if _repository is None:
        _repository = get_notification_repository()
    return _repository


def get_channel() -> EmailChannel:
    global _channel
    if _channel is None:
        _channel = get_email_channel()
    return _channel


def reset_api_state(
    data_store: Optional[DataStore] = None,
    event_bus: Optional[EventBus] = None,
    repository: Optional[NotificationRepository] = None,
    channel: Optional[EmailChannel] = None,
) -> None:
    """Install the instances the API uses (for testing). None restores the defaults."""
    global _data_store, _event_bus, _repository, _channel
    _data_store = data_store
    _event_bus = event_bus
    _repository = repository
    _channel = channel


# =============================================================================
# Per-request dependencies
# =============================================================================

def get_security_context(
    x_apiman_user: Optional[str] = Header(default=None),
    data_store: DataStore = Depends(get_store),
) -> SecurityContext:
    """The caller is whoever the authenticating proxy put in the X-Apiman-User header."""
    return SecurityContext(data_store=data_store, current_user=x_apiman_user)


def get_notification_service(
    data_store: DataStore = Depends(get_store),
    event_bus: EventBus = Depends(get_bus),
    repository: NotificationRepository = Depends(get_repository),
) -> NotificationService:
    return NotificationService(
        event_bus=event_bus,
        data_store=data_store,
        repository=repository,
    )


def get_api_service(data_store: DataStore = Depends(get_store)) -> ApiService:
    return ApiService(data_store)


def get_dev_portal_service(
    data_store: DataStore = Depends(get_store),
    api_service: ApiService = Depends(get_api_service),
) -> DevPortalService:
    return DevPortalService(data_store, api_service)


def get_organization_service(data_store: DataStore = Depends(get_store)) -> OrganizationService:
    return OrganizationService(data_store)


def get_sso_event_service(
    data_store: DataStore = Depends(get_store),
    event_bus: EventBus = Depends(get_bus),
) -> SsoEventService:
    return SsoEventService(event_bus=event_bus, data_store=data_store)


# =============================================================================
# Notification pipeline
# =============================================================================

class NotificationPipeline:
    """The producers and delivery handlers attached to the bus while the app runs."""

    def __init__(
        self,
        data_store: DataStore,
        event_bus: EventBus,
        repository: NotificationRepository,
        channel: EmailChannel,
    ):
        self.notification_service = NotificationService(
            event_bus=event_bus,
            data_store=data_store,
            repository=repository,
        )
        self.components = [
            NewAccountNotificationProducer(self.notification_service),
            ApiSignupNotificationProducer(self.notification_service),
            EmailNotificationDispatcher(self.notification_service, channel=channel),
        ]

    def start(self) -> None:
        for component in self.components:
            component.start()

    def stop(self) -> None:
        for component in reversed(self.components):
            component.stop()


def build_notification_pipeline() -> NotificationPipeline:
    return NotificationPipeline(
        data_store=get_store(),
        event_bus=get_bus(),
        repository=get_repository(),
        channel=get_channel(),
    )
