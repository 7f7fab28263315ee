"""
Services behind the REST resources.

- ApiService: APIs, versions and their definitions
- DevPortalService: what the developer portal exposes
- OrganizationService: organization creation
- SsoEventService: turns SSO provider callbacks into domain events
"""

from services.api_service import ApiDefinitionStream, ApiService
from services.dev_portal import DevPortalService
from services.organizations import OrganizationService
from services.sso_events import NewAccountCreatedDto, SsoEventService

__all__ = [
    "ApiDefinitionStream",
    "ApiService",
    "DevPortalService",
    "OrganizationService",
    "NewAccountCreatedDto",
    "SsoEventService",
]
