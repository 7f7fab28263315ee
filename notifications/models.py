"""
Notification records and the DTOs that move them around.

A CreateNotificationDto names its recipients indirectly (a user, or everyone
holding a role). The NotificationService expands that into one
NotificationEntity per user, and what goes out on the bus is the
NotificationDto, whose recipient is a full user view so delivery handlers
never need to look the user up again.
"""

from datetime import datetime
from enum import Enum
from fnmatch import fnmatchcase
from typing import Any, Optional

from pydantic import BaseModel, Field

from core.models import UserDto


class NotificationStatus(str, Enum):
    OPEN = "OPEN"
    USER_DISMISSED = "USER_DISMISSED"
    SYSTEM_DISMISSED = "SYSTEM_DISMISSED"


class NotificationCategory(str, Enum):
    USER_ADMINISTRATION = "USER_ADMINISTRATION"
    API_ADMINISTRATION = "API_ADMINISTRATION"
    API_LIFECYCLE = "API_LIFECYCLE"
    SYSTEM = "SYSTEM"
    OTHER = "OTHER"


class RecipientType(str, Enum):
    INDIVIDUAL = "INDIVIDUAL"
    ROLE = "ROLE"


class RecipientDto(BaseModel):
    """Either a single username or a role name, depending on the type."""
    recipient: str
    recipient_type: RecipientType = RecipientType.INDIVIDUAL


class CreateNotificationDto(BaseModel):
    """Request to notify one or more recipients about something."""
    recipient: list[RecipientDto] = Field(default_factory=list)
    reason: str = Field(..., description="Machine-readable tag handlers match on")
    reason_message: str = Field(..., description="Human-readable summary")
    category: NotificationCategory = NotificationCategory.OTHER
    source: Optional[str] = Field(default=None, description="URI of whatever raised it")
    payload: Optional[Any] = Field(default=None, description="Event or data behind the notification")


class NotificationEntity(BaseModel):
    """A stored notification for exactly one recipient."""
    id: Optional[int] = None
    category: NotificationCategory
    reason: str
    reason_message: str
    status: NotificationStatus = NotificationStatus.OPEN
    recipient: str = Field(..., description="Username of the recipient")
    source: Optional[str] = None
    payload: Optional[Any] = Field(default=None, description="JSON tree of the payload")
    created_on: Optional[datetime] = None
    modified_on: Optional[datetime] = None


class NotificationDto(BaseModel):
    """The shape of a notification once dispatched onto the bus."""
    id: Optional[int] = None
    category: NotificationCategory
    reason: str
    reason_message: str
    status: NotificationStatus
    recipient: UserDto
    source: Optional[str] = None
    payload: Optional[Any] = None
    created_on: Optional[datetime] = None
    modified_on: Optional[datetime] = None


class NotificationPreferenceEntity(BaseModel):
    """
    A user's opt-in for one delivery type (e.g. EMAIL).

    Rules are glob patterns over notification reasons. No rules means every
    reason is allowed.
    """
    user_id: str
    type: str = "EMAIL"
    enabled: bool = True
    rules: list[str] = Field(default_factory=list)

    def allows(self, reason: str) -> bool:
        if not self.enabled:
            return False
        if not self.rules:
            return True
        return any(fnmatchcase(reason, rule) for rule in self.rules)


class MarkNotificationsReadDto(BaseModel):
    notification_ids: list[int] = Field(default_factory=list)
    status: NotificationStatus = NotificationStatus.USER_DISMISSED
