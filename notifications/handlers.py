"""
Notification handlers.

Handlers consume notifications after the NotificationService has stored and
dispatched them. Each handler says which notifications it wants (by reason)
and performs one side effect for them. Email delivery is the only kind here:
the EmailNotificationDispatcher listens on the bus, applies the recipient's
EMAIL preference and hands each notification to the handlers that want it.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from core.channels import EmailChannel, get_email_channel
from notifications.event_bus import Event, EventBus
from notifications.events import AccountSignupEvent, ApiSignupEvent, EventTypes
from notifications.models import NotificationDto
from notifications.notification_service import NotificationService
from notifications.producers import (
    APIMAN_ACCOUNT_APPROVAL_REQUEST,
    APIMAN_API_APPROVAL_REQUEST,
)
from notifications.templates import render_email

logger = logging.getLogger("notification_handlers")

EMAIL_PREFERENCE_TYPE = "EMAIL"


class NotificationHandler(ABC):
    """A side effect to run for the notifications it wants."""

    @abstractmethod
    def wants(self, notification: NotificationDto) -> bool:
        raise NotImplementedError

    @abstractmethod
    def handle(self, notification: NotificationDto) -> None:
        raise NotImplementedError


class EmailNotificationHandler(NotificationHandler):
    """Emails the recipient of every notification carrying ``reason``."""

    reason: str = ""

    def __init__(self, channel: Optional[EmailChannel] = None):
        self.channel = channel or get_email_channel()

    def wants(self, notification: NotificationDto) -> bool:
        return notification.reason == self.reason

    def template_context(self, notification: NotificationDto) -> dict:
        """Variables available to the template, besides the recipient and message."""
        if isinstance(notification.payload, dict):
            return dict(notification.payload)
        return {}

    def handle(self, notification: NotificationDto) -> None:
        recipient = notification.recipient
        context = {
            key: "-" if value is None else value
            for key, value in self.template_context(notification).items()
        }
        context["recipient_name"] = recipient.full_name or recipient.username
        context["reason_message"] = notification.reason_message

        subject, body = render_email(notification.reason, **context)
        self.channel.send(recipient.email, subject, body)


class AccountSignupApproval(EmailNotificationHandler):
    reason = APIMAN_ACCOUNT_APPROVAL_REQUEST

    def template_context(self, notification: NotificationDto) -> dict:
        signup = AccountSignupEvent.model_validate(notification.payload)
        return signup.model_dump(exclude={"headers"})


class ApiSignupApproval(EmailNotificationHandler):
    reason = APIMAN_API_APPROVAL_REQUEST

    def template_context(self, notification: NotificationDto) -> dict:
        signup = ApiSignupEvent.model_validate(notification.payload)
        return signup.model_dump(exclude={"headers"})


class EmailNotificationDispatcher:
    """
    Routes dispatched notifications to the email handlers.

    A notification is skipped when its recipient has no email address or when
    the recipient's EMAIL preference does not allow its reason. Users without
    an EMAIL preference receive everything.
    """

    def __init__(
        self,
        notification_service: NotificationService,
        handlers: Optional[list[NotificationHandler]] = None,
        event_bus: Optional[EventBus] = None,
        channel: Optional[EmailChannel] = None,
    ):
        self.notification_service = notification_service
        self.event_bus = event_bus or notification_service.event_bus
        if handlers is None:
            channel = channel or get_email_channel()
            handlers = [AccountSignupApproval(channel), ApiSignupApproval(channel)]
        self.handlers = handlers
        self._started = False

    def start(self) -> None:
        if self._started:
            logger.warning("EmailNotificationDispatcher already started")
            return
        self.event_bus.subscribe(EventTypes.NOTIFICATION, self._on_notification)
        self._started = True
        logger.info("EmailNotificationDispatcher started - subscribed to notifications")

    def stop(self) -> None:
        if not self._started:
            return
        self.event_bus.unsubscribe(EventTypes.NOTIFICATION, self._on_notification)
        self._started = False

    def _on_notification(self, event: Event) -> None:
        self.dispatch(NotificationDto.model_validate(event.payload))

    def dispatch(self, notification: NotificationDto) -> int:
        """
        Run every handler that wants the notification.

        A handler that raises is logged and the remaining handlers still run.

        Returns:
            Number of handlers that handled it
        """
        recipient = notification.recipient

        if not recipient.email:
            logger.warning(f"No email address for {recipient.username}, skipping '{notification.reason}'")
            return 0

        pref = self.notification_service.get_notification_preference(
            recipient.username, EMAIL_PREFERENCE_TYPE
        )
        if pref is not None and not pref.allows(notification.reason):
            logger.info(f"{recipient.username} has opted out of '{notification.reason}' emails")
            return 0

        handled = 0
        for handler in self.handlers:
            if not handler.wants(notification):
                continue
            try:
                handler.handle(notification)
            except Exception as e:
                logger.exception(
                    f"{type(handler).__name__} failed on notification {notification.id} "
                    f"for {recipient.username}: {e}"
                )
                continue
            handled += 1

        if handled == 0:
            logger.debug(f"No email handler wants '{notification.reason}'")
        return handled
