"""
Domain events raised inside the API manager.

Events are facts about something that already happened: an account was
created, a client signed up to an API plan. They are versioned pydantic
models; on the bus they travel as their JSON form inside an Event so that
subscribers never share mutable objects with the publisher.

Design decisions:
- Named in past tense / as the thing that happened (AccountSignupEvent)
- Carry everything a producer needs to decide on a notification
- Every event has ApimanEventHeaders identifying it
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field

from notifications.event_bus import Event


class EventTypes:
    """Routing keys used on the event bus."""
    ACCOUNT_SIGNUP = "AccountSignupEvent"
    API_SIGNUP = "ApiSignupEvent"

    # A notification has been stored and is ready for delivery
    NOTIFICATION = "Notification"


class ApimanEventHeaders(BaseModel):
    """Envelope metadata shared by every domain event."""
    id: str = Field(..., description="Unique and stable id of this occurrence")
    source: str = Field(..., description="URI of the component that raised it")
    subject: Optional[str] = None
    type: Optional[str] = Field(default=None, description="Event type, filled in from the event class")
    time: datetime = Field(default_factory=datetime.utcnow)
    event_version: int = 1


class AccountSignupEvent(BaseModel):
    """A new user account was created (usually by the SSO provider)."""
    headers: ApimanEventHeaders
    user_id: str
    username: str
    email_address: Optional[str] = None
    first_name: Optional[str] = None
    surname: Optional[str] = None
    approval_required: bool = False

    def model_post_init(self, __context) -> None:
        if self.headers.type is None:
            self.headers.type = EventTypes.ACCOUNT_SIGNUP


class ApiSignupEvent(BaseModel):
    """A client application asked for a contract on an API plan."""
    headers: ApimanEventHeaders
    client_org_id: str
    client_id: str
    client_version: str
    api_org_id: str
    api_id: str
    api_version: str
    plan_id: str
    plan_version: str
    approval_required: bool = False
    requested_by: Optional[str] = Field(default=None, description="Username that made the request")

    def model_post_init(self, __context) -> None:
        if self.headers.type is None:
            self.headers.type = EventTypes.API_SIGNUP


DomainEvent = Union[AccountSignupEvent, ApiSignupEvent]

_EVENT_TYPES = {
    AccountSignupEvent: EventTypes.ACCOUNT_SIGNUP,
    ApiSignupEvent: EventTypes.API_SIGNUP,
}


def to_bus_event(event: DomainEvent, source: str) -> Event:
    """
    Wrap a domain event for publishing.

    Raises:
        ValueError: If the event class has no routing key
    """
    event_type = _EVENT_TYPES.get(type(event))
    if event_type is None:
        raise ValueError(f"Unknown domain event: {type(event).__name__}")
    return Event(
        event_type=event_type,
        source=source,
        payload=event.model_dump(mode="json"),
    )


def from_bus_event(event: Event) -> Optional[DomainEvent]:
    """Rebuild the domain event carried by a bus event, or None if it carries none."""
    for model, event_type in _EVENT_TYPES.items():
        if event.event_type == event_type:
            return model.model_validate(event.payload)
    return None
