"""
Organization service.
"""

import logging
import re
from typing import Optional

from core.data_store import DataStore, get_data_store
from core.exceptions import (
    invalid_name,
    organization_already_exists,
    organization_not_found,
    try_action,
)
from core.models import NewOrganization, Organization, RoleMembership

logger = logging.getLogger("organization_service")

ORGANIZATION_OWNER_ROLE = "Organization Owner"

_ID_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def id_from_name(name: str) -> str:
    """Derive an identifier by dropping every character that isn't URL safe."""
    return _ID_UNSAFE_CHARS.sub("", name)


class OrganizationService:

    def __init__(self, data_store: Optional[DataStore] = None):
        self.data_store = data_store or get_data_store()

    def get_org(self, org_id: str) -> Organization:
        org = try_action(lambda: self.data_store.get_organization(org_id))
        if org is None:
            raise organization_not_found(org_id)
        return org

    def create_org(self, new_org: NewOrganization, created_by: Optional[str] = None) -> Organization:
        """
        Create an organization; its creator becomes its owner.

        Raises:
            InvalidNameException: If no identifier can be derived from the name
            OrganizationAlreadyExistsException: If the identifier is taken
        """
        org_id = id_from_name(new_org.name)
        if not org_id:
            raise invalid_name(new_org.name)

        if try_action(lambda: self.data_store.get_organization(org_id)) is not None:
            raise organization_already_exists(new_org.name)

        org = Organization(
            id=org_id,
            name=new_org.name,
            description=new_org.description,
            created_by=created_by,
        )
        try_action(lambda: self.data_store.create_organization(org))

        if created_by:
            try_action(lambda: self.data_store.create_membership(RoleMembership(
                user_id=created_by,
                role_id=ORGANIZATION_OWNER_ROLE,
                organization_id=org_id,
            )))

        logger.info(f"Created organization {org_id} for {created_by}")
        return org
