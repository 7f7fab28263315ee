"""
Developer portal resource.

Pure delegation to the services, plus the visibility and authorization checks
the portal needs: versions that are not exposed in the portal do not exist as
far as portal callers are concerned.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from api.dependencies import (
    get_api_service,
    get_dev_portal_service,
    get_organization_service,
    get_security_context,
)
from core.exceptions import api_version_not_found, not_authorized
from core.models import (
    ApiSummary,
    ApiVersion,
    ApiVersionPolicySummary,
    ApiVersionSummary,
    DeveloperApiPlanSummary,
    NewOrganization,
    Organization,
)
from core.search import SearchCriteria, SearchResults
from core.security import SecurityContext
from services.api_service import ApiService
from services.dev_portal import DevPortalService
from services.organizations import OrganizationService

logger = logging.getLogger("developer_portal")

router = APIRouter(prefix="/devportal", tags=["Developer Portal"])

VERSION_PATH = "/organizations/{org_id}/apis/{api_id}/versions/{version}"


def _api_version_must_be_exposed(api_service: ApiService, org_id: str, api_id: str, version: str) -> ApiVersion:
    retrieved = api_service.get_api_version(org_id, api_id, version)
    if not retrieved.expose_in_portal:
        raise api_version_not_found(api_id, version)
    return retrieved


def _must_be_logged_in(security_context: SecurityContext) -> str:
    user = security_context.get_current_user()
    if user is None:
        raise not_authorized()
    return user


@router.post("/search/apis", response_model=SearchResults[ApiSummary])
def search_exposed_apis(
    criteria: SearchCriteria,
    portal_service: DevPortalService = Depends(get_dev_portal_service),
):
    """Search the APIs that have at least one version exposed in the portal."""
    logger.debug(f"Searching for APIs by criteria {criteria}")
    return portal_service.find_exposed_apis(criteria)


@router.get("/apis/featured", response_model=list[ApiSummary])
def get_featured_apis(api_service: ApiService = Depends(get_api_service)):
    return api_service.get_featured_apis()


@router.get("/organizations/{org_id}/apis/{api_id}/versions", response_model=list[ApiVersionSummary])
def list_api_versions(
    org_id: str,
    api_id: str,
    api_service: ApiService = Depends(get_api_service),
):
    """List the versions of an API that are exposed in the portal."""
    return [
        v for v in api_service.list_api_versions(org_id, api_id)
        if v.expose_in_portal
    ]


@router.get(VERSION_PATH, response_model=ApiVersion)
def get_api_version(
    org_id: str,
    api_id: str,
    version: str,
    api_service: ApiService = Depends(get_api_service),
):
    return _api_version_must_be_exposed(api_service, org_id, api_id, version)


@router.get(VERSION_PATH + "/plans", response_model=list[DeveloperApiPlanSummary])
def get_api_version_plans(
    org_id: str,
    api_id: str,
    version: str,
    portal_service: DevPortalService = Depends(get_dev_portal_service),
):
    return portal_service.get_api_version_plans(org_id, api_id, version)


@router.get(VERSION_PATH + "/policies", response_model=list[ApiVersionPolicySummary])
def list_api_policies(
    org_id: str,
    api_id: str,
    version: str,
    api_service: ApiService = Depends(get_api_service),
    portal_service: DevPortalService = Depends(get_dev_portal_service),
):
    _api_version_must_be_exposed(api_service, org_id, api_id, version)
    return portal_service.get_api_version_policies(org_id, api_id, version)


@router.get(VERSION_PATH + "/definition")
def get_api_definition(
    org_id: str,
    api_id: str,
    version: str,
    api_service: ApiService = Depends(get_api_service),
):
    """Return the raw definition document with its own media type."""
    _api_version_must_be_exposed(api_service, org_id, api_id, version)
    api_def = api_service.get_api_definition(org_id, api_id, version)
    return Response(content=api_def.definition, media_type=api_def.media_type)


@router.post("/organizations", response_model=Organization)
def create_home_org_for_developer(
    new_org: NewOrganization,
    security_context: SecurityContext = Depends(get_security_context),
    org_service: OrganizationService = Depends(get_organization_service),
):
    """Create the developer's home organization, which must be named after them."""
    current_user = _must_be_logged_in(security_context)
    if new_org.name != current_user:
        raise not_authorized(
            "A developer's default org must be the same as their username. "
            "This restriction may be lifted later."
        )
    return org_service.create_org(new_org, created_by=current_user)
