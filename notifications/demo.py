"""
Demonstration scripts for the notification pipeline.

These functions wire the pipeline together in-process, raise a domain event
and show what was stored and emailed as a result.
"""

import logging

from core.channels import EmailChannel
from core.data_store import DataStore
from notifications.event_bus import reset_event_bus
from notifications.events import ApimanEventHeaders, ApiSignupEvent, to_bus_event
from notifications.handlers import EmailNotificationDispatcher
from notifications.notification_service import NotificationService
from notifications.producers import (
    ApiSignupNotificationProducer,
    NewAccountNotificationProducer,
)
from notifications.repository import NotificationRepository
from services.sso_events import NewAccountCreatedDto, SsoEventService

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)-24s | %(levelname)-5s | %(message)s",
    datefmt="%H:%M:%S",
)


def _setup():
    event_bus = reset_event_bus()
    data_store = DataStore()
    repository = NotificationRepository(data_store)
    channel = EmailChannel()

    notification_service = NotificationService(
        event_bus=event_bus,
        data_store=data_store,
        repository=repository,
    )
    components = [
        NewAccountNotificationProducer(notification_service),
        ApiSignupNotificationProducer(notification_service),
        EmailNotificationDispatcher(notification_service, channel=channel),
    ]
    for component in components:
        component.start()

    return event_bus, data_store, repository, channel, components


def _report(data_store: DataStore, notification_service: NotificationService, channel: EmailChannel):
    print("\nOpen notifications per user:")
    for user in data_store.get_users():
        count = notification_service.unread_notifications(user.username)
        if count:
            print(f"  {user.username}: {count}")

    print("\nEmails sent:")
    for msg in channel.outbox:
        print(f"  {msg}")


def run_account_signup_demo():
    """
    A user registers with the SSO provider.

    1. SsoEventService publishes an AccountSignupEvent
    2. NewAccountNotificationProducer asks every approver to review it
    3. EmailNotificationDispatcher emails approvers with an email address
    """
    print("\n" + "=" * 70)
    print("DEMO: New account needs approval")
    print("=" * 70 + "\n")

    event_bus, data_store, repository, channel, components = _setup()
    sso_events = SsoEventService(event_bus=event_bus, data_store=data_store, approval_required=True)

    sso_events.new_account_created(NewAccountCreatedDto(
        user_id="6f1c2a9e",
        username="newdev",
        email_address="newdev@example.com",
        first_name="New",
        surname="Developer",
    ))

    _report(data_store, components[0].notification_service, channel)

    for component in components:
        component.stop()

    return channel.outbox


def run_api_signup_demo():
    """
    A client application signs up to a plan that requires approval.
    """
    print("\n" + "=" * 70)
    print("DEMO: API signup needs approval")
    print("=" * 70 + "\n")

    event_bus, data_store, repository, channel, components = _setup()

    signup = ApiSignupEvent(
        headers=ApimanEventHeaders(id="contract-demo-1", source="http://localhost:8080/apiman"),
        client_org_id="bob",
        client_id="mobile-app",
        client_version="1.0",
        api_org_id="Acme",
        api_id="weather",
        api_version="2.0",
        plan_id="gold",
        plan_version="1.0",
        approval_required=True,
        requested_by="bob",
    )
    event_bus.publish(to_bus_event(signup, source="contract-service"))

    _report(data_store, components[0].notification_service, channel)

    for component in components:
        component.stop()

    return channel.outbox
