"""
API catalogue service.

Read access to APIs and their versions as the developer portal needs it.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from core.data_store import DataStore, get_data_store
from core.exceptions import api_not_found, api_version_not_found, try_action
from core.models import (
    Api,
    ApiDefinitionType,
    ApiSummary,
    ApiVersion,
    ApiVersionSummary,
)

logger = logging.getLogger("api_service")


@dataclass
class ApiDefinitionStream:
    """The raw definition document of an API version and what kind it is."""
    definition: str
    definition_type: ApiDefinitionType

    @property
    def media_type(self) -> str:
        return self.definition_type.media_type


class ApiService:

    def __init__(self, data_store: Optional[DataStore] = None):
        self.data_store = data_store or get_data_store()

    def _organization_name(self, org_id: str) -> str:
        org = self.data_store.get_organization(org_id)
        return org.name if org else org_id

    def to_summary(self, api: Api) -> ApiSummary:
        return ApiSummary(
            organization_id=api.organization_id,
            organization_name=self._organization_name(api.organization_id),
            id=api.id,
            name=api.name,
            description=api.description,
            created_on=api.created_on,
        )

    def get_featured_apis(self) -> list[ApiSummary]:
        apis = try_action(self.data_store.get_apis)
        return [self.to_summary(api) for api in apis if api.featured]

    def get_api(self, org_id: str, api_id: str) -> Api:
        """
        Raises:
            ApiNotFoundException: If the API does not exist
        """
        api = try_action(lambda: self.data_store.get_api(org_id, api_id))
        if api is None:
            raise api_not_found(api_id)
        return api

    def list_api_versions(self, org_id: str, api_id: str) -> list[ApiVersionSummary]:
        """
        List every version of an API, newest first.

        Raises:
            ApiNotFoundException: If the API does not exist
        """
        api = self.get_api(org_id, api_id)
        org_name = self._organization_name(org_id)
        versions = try_action(lambda: self.data_store.get_api_versions(org_id, api_id))
        return [
            ApiVersionSummary(
                organization_id=org_id,
                organization_name=org_name,
                id=api.id,
                name=api.name,
                description=api.description,
                status=v.status,
                version=v.version,
                expose_in_portal=v.expose_in_portal,
            )
            for v in versions
        ]

    def get_api_version(self, org_id: str, api_id: str, version: str) -> ApiVersion:
        """
        Raises:
            ApiVersionNotFoundException: If the version does not exist
        """
        api_version = try_action(lambda: self.data_store.get_api_version(org_id, api_id, version))
        if api_version is None:
            raise api_version_not_found(api_id, version)
        return api_version

    def get_api_definition(self, org_id: str, api_id: str, version: str) -> ApiDefinitionStream:
        """
        Get the definition document of an API version.

        Raises:
            ApiVersionNotFoundException: If the version does not exist or has no definition
        """
        api_version = self.get_api_version(org_id, api_id, version)
        if api_version.definition is None or \
                api_version.definition_type == ApiDefinitionType.NO_DEFINITION:
            logger.info(f"API {org_id}/{api_id} {version} has no definition")
            raise api_version_not_found(api_id, version)
        return ApiDefinitionStream(
            definition=api_version.definition,
            definition_type=api_version.definition_type,
        )
