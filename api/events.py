"""
Inbound event callbacks from external systems.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_sso_event_service
from notifications.events import AccountSignupEvent
from services.sso_events import NewAccountCreatedDto, SsoEventService

router = APIRouter(prefix="/events", tags=["Events"])


@router.post("/sso/users", response_model=AccountSignupEvent, status_code=202)
def new_account_created(
    new_account: NewAccountCreatedDto,
    sso_event_service: SsoEventService = Depends(get_sso_event_service),
):
    """The SSO provider reports a newly created account."""
    return sso_event_service.new_account_created(new_account)
