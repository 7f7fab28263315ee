"""
Events received from the SSO provider.

The identity provider tells the manager about things that happened on its
side, such as a user registering. This service translates those callbacks
into domain events on the bus; whether they lead to notifications is up to
the producers listening there.
"""

import logging
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from core.config import get_settings
from core.data_store import DataStore, get_data_store
from core.exceptions import try_action
from core.models import User
from notifications.event_bus import EventBus, get_event_bus
from notifications.events import AccountSignupEvent, ApimanEventHeaders, to_bus_event

logger = logging.getLogger("sso_event_service")

SSO_NEW_ACCOUNT_SUBJECT = "SsoNewAccount"


class NewAccountCreatedDto(BaseModel):
    """Callback body sent by the SSO provider when an account is created."""
    user_id: str
    username: str
    email_address: Optional[str] = None
    first_name: Optional[str] = None
    surname: Optional[str] = None
    time: datetime = Field(default_factory=datetime.utcnow, description="When the account was created")


def event_key(user_id: str, created_on: datetime) -> str:
    return "-".join((user_id, created_on.isoformat()))


class SsoEventService:

    def __init__(
        self,
        event_bus: Optional[EventBus] = None,
        data_store: Optional[DataStore] = None,
        source: Optional[str] = None,
        approval_required: Optional[bool] = None,
    ):
        settings = get_settings()
        self.event_bus = event_bus or get_event_bus()
        self.data_store = data_store or get_data_store()
        self.source = source or settings.EVENT_SOURCE_URI
        if approval_required is None:
            approval_required = settings.ACCOUNT_APPROVAL_REQUIRED
        self.approval_required = approval_required

    def new_account_created(self, new_account: NewAccountCreatedDto) -> AccountSignupEvent:
        """
        Record an externally created account and publish an AccountSignupEvent.

        Users already known to the manager are left as they are.
        """
        logger.debug(f"Received an account creation event (externally): {new_account}")

        full_name = " ".join(
            part for part in (new_account.first_name, new_account.surname) if part
        )
        _, created = try_action(lambda: self.data_store.get_or_create_user(User(
            username=new_account.username,
            full_name=full_name or None,
            email=new_account.email_address,
            joined_on=new_account.time,
        )))
        if not created:
            logger.debug(f"User {new_account.username} already known, leaving the record as is")

        headers = ApimanEventHeaders(
            id=event_key(new_account.user_id, new_account.time),
            source=self.source,
            subject=SSO_NEW_ACCOUNT_SUBJECT,
            time=new_account.time,
        )

        signup = AccountSignupEvent(
            headers=headers,
            user_id=new_account.user_id,
            username=new_account.username,
            email_address=new_account.email_address,
            first_name=new_account.first_name,
            surname=new_account.surname,
            approval_required=self.approval_required,
        )

        self.event_bus.publish(to_bus_event(signup, source="sso-event-service"))
        return signup
