"""
Notification inbox resource.

Callers only ever see and change their own notifications: the recipient is
always taken from the security context, never from the request.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from api.dependencies import get_notification_service, get_security_context
from core.config import get_settings
from core.exceptions import invalid_parameter, not_authorized
from core.search import PagingBean, SearchResults
from core.security import SecurityContext
from notifications.models import MarkNotificationsReadDto, NotificationEntity
from notifications.notification_service import NotificationService

logger = logging.getLogger("inbox")

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def _current_user(security_context: SecurityContext) -> str:
    user = security_context.get_current_user()
    if user is None:
        raise not_authorized()
    return user


@router.get("", response_model=SearchResults[NotificationEntity])
def get_latest_notifications(
    page: int = Query(default=1),
    count: Optional[int] = Query(default=None),
    security_context: SecurityContext = Depends(get_security_context),
    notification_service: NotificationService = Depends(get_notification_service),
):
    """Latest unread notifications of the caller, newest first."""
    user = _current_user(security_context)
    if count is None:
        count = get_settings().DEFAULT_PAGE_SIZE
    return notification_service.get_latest_notifications(
        user, PagingBean(page=page, page_size=count)
    )


@router.get("/count", response_model=int)
def get_unread_count(
    security_context: SecurityContext = Depends(get_security_context),
    notification_service: NotificationService = Depends(get_notification_service),
):
    return notification_service.unread_notifications(_current_user(security_context))


@router.put("", status_code=204)
def mark_notifications(
    request: MarkNotificationsReadDto,
    security_context: SecurityContext = Depends(get_security_context),
    notification_service: NotificationService = Depends(get_notification_service),
):
    """Mark some of the caller's notifications as read (dismissed)."""
    user = _current_user(security_context)
    try:
        notification_service.mark_notifications_as_read(user, request.notification_ids, request.status)
    except ValueError as e:
        raise invalid_parameter(str(e)) from e
    return Response(status_code=204)
