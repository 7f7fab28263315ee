"""
Developer portal service.

The portal only shows what API providers chose to expose: an API appears in
searches when at least one of its versions is exposed in the portal.
"""

import logging
from typing import Optional

from core.config import get_settings
from core.data_store import DataStore, get_data_store
from core.exceptions import try_action
from core.models import (
    ApiSummary,
    ApiVersionPolicySummary,
    DeveloperApiPlanSummary,
)
from core.search import (
    OrderBy,
    PagingBean,
    SearchCriteria,
    SearchResults,
    apply_search_criteria,
    validate_search_criteria,
)
from services.api_service import ApiService

logger = logging.getLogger("dev_portal_service")

SEARCHABLE_API_FIELDS = ("name", "description", "organization_id", "organization_name", "created_on")


class DevPortalService:

    def __init__(
        self,
        data_store: Optional[DataStore] = None,
        api_service: Optional[ApiService] = None,
    ):
        self.data_store = data_store or get_data_store()
        self.api_service = api_service or ApiService(self.data_store)

    def _is_exposed(self, org_id: str, api_id: str) -> bool:
        return any(
            v.expose_in_portal
            for v in self.data_store.get_api_versions(org_id, api_id)
        )

    def find_exposed_apis(self, criteria: SearchCriteria) -> SearchResults[ApiSummary]:
        """
        Search the APIs visible in the portal.

        Filters and ordering may use the fields in SEARCHABLE_API_FIELDS.
        Results are ordered by name unless the criteria say otherwise.

        Raises:
            InvalidSearchCriteriaException: If the criteria cannot be applied
        """
        settings = get_settings()
        if criteria.paging is None:
            criteria = criteria.model_copy(
                update={"paging": PagingBean(page=1, page_size=settings.DEFAULT_PAGE_SIZE)}
            )
        validate_search_criteria(criteria, SEARCHABLE_API_FIELDS, settings.MAX_PAGE_SIZE)
        if criteria.order_by is None:
            criteria = criteria.model_copy(update={"order_by": OrderBy(name="name")})

        def search():
            exposed = [
                self.api_service.to_summary(api)
                for api in self.data_store.get_apis()
                if self._is_exposed(api.organization_id, api.id)
            ]
            return apply_search_criteria(exposed, criteria)

        return try_action(search)

    def get_api_version_plans(
        self,
        org_id: str,
        api_id: str,
        version: str,
    ) -> list[DeveloperApiPlanSummary]:
        """
        List the plans developers can sign up to on an API version.

        Raises:
            ApiVersionNotFoundException: If the version does not exist
        """
        api_version = self.api_service.get_api_version(org_id, api_id, version)
        summaries = []
        for api_plan in api_version.plans:
            plan = self.data_store.get_plan(org_id, api_plan.plan_id)
            summaries.append(DeveloperApiPlanSummary(
                plan_id=api_plan.plan_id,
                plan_name=plan.name if plan else api_plan.plan_id,
                plan_description=plan.description if plan else None,
                version=api_plan.version,
                requires_approval=api_plan.requires_approval,
            ))
        return summaries

    def get_api_version_policies(
        self,
        org_id: str,
        api_id: str,
        version: str,
    ) -> list[ApiVersionPolicySummary]:
        """
        List the policies applied to an API version, in execution order.

        Raises:
            ApiVersionNotFoundException: If the version does not exist
        """
        api_version = self.api_service.get_api_version(org_id, api_id, version)
        summaries = []
        for policy in sorted(api_version.policies, key=lambda p: p.order_index):
            definition = self.data_store.get_policy_definition(policy.definition_id)
            if definition is None:
                logger.warning(f"Unknown policy definition {policy.definition_id} on {api_id} {version}")
                continue
            summaries.append(ApiVersionPolicySummary(
                policy_definition_id=definition.id,
                name=definition.name,
                description=definition.description,
                icon=definition.icon,
            ))
        return summaries
