"""
JSON-backed data store for the API manager.

This module provides the storage layer the services read from: users and role
memberships, organizations, APIs, API versions, plans, policy definitions and
notification preferences.

Design decisions:
- Fixtures in the data directory are the initial state
- Write operations update in-memory state only
- Each collection is loaded lazily the first time it is needed
- Unreadable fixtures raise StorageException so callers can wrap them
"""

import json
import logging
import threading
from pathlib import Path
from typing import Optional

from core.config import get_settings
from core.exceptions import StorageException
from core.models import (
    Api,
    ApiVersion,
    Organization,
    Plan,
    PolicyDefinition,
    RoleMembership,
    User,
)
from notifications.models import NotificationPreferenceEntity

logger = logging.getLogger("data_store")


class DataStore:
    """
    Central data store that loads and manages JSON fixtures.

    Plays the part of the manager's storage: the services only ever see this
    object, never the files behind it.
    """

    def __init__(self, data_dir: Optional[Path] = None):
        """
        Initialize the data store.

        Args:
            data_dir: Path to the directory containing JSON fixtures.
                     Defaults to the configured data directory.
        """
        if data_dir is None:
            data_dir = get_settings().data_dir

        self.data_dir = Path(data_dir)
        if not self.data_dir.is_dir():
            logger.warning(f"Data directory {self.data_dir} does not exist, starting with no data")

        # Guards check-then-write sequences; REST handlers run in a threadpool
        self._write_lock = threading.RLock()

        self._users: Optional[dict[str, User]] = None
        self._memberships: Optional[list[RoleMembership]] = None
        self._organizations: Optional[dict[str, Organization]] = None
        self._apis: Optional[dict[tuple[str, str], Api]] = None
        self._api_versions: Optional[dict[tuple[str, str, str], ApiVersion]] = None
        self._plans: Optional[dict[tuple[str, str], Plan]] = None
        self._policy_definitions: Optional[dict[str, PolicyDefinition]] = None
        self._preferences: Optional[list[NotificationPreferenceEntity]] = None

    # =========================================================================
    # Data Loading (lazy)
    # =========================================================================

    def _load_json(self, filename: str) -> list[dict]:
        """Load a JSON fixture file; a missing file is an empty collection."""
        filepath = self.data_dir / filename
        if not filepath.exists():
            return []
        try:
            with open(filepath, "r") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageException(f"Unable to read {filepath}: {e}") from e

    def _load_models(self, filename: str, model):
        try:
            return [model(**item) for item in self._load_json(filename)]
        except (TypeError, ValueError) as e:
            raise StorageException(f"Invalid record in {filename}: {e}") from e

    def _ensure_users_loaded(self):
        if self._users is None:
            self._users = {u.username: u for u in self._load_models("users.json", User)}

    def _ensure_memberships_loaded(self):
        if self._memberships is None:
            self._memberships = self._load_models("memberships.json", RoleMembership)

    def _ensure_organizations_loaded(self):
        if self._organizations is None:
            self._organizations = {
                o.id: o for o in self._load_models("organizations.json", Organization)
            }

    def _ensure_apis_loaded(self):
        if self._apis is None:
            self._apis = {
                (a.organization_id, a.id): a for a in self._load_models("apis.json", Api)
            }

    def _ensure_api_versions_loaded(self):
        if self._api_versions is None:
            self._api_versions = {
                (v.organization_id, v.api_id, v.version): v
                for v in self._load_models("api_versions.json", ApiVersion)
            }

    def _ensure_plans_loaded(self):
        if self._plans is None:
            self._plans = {
                (p.organization_id, p.id): p for p in self._load_models("plans.json", Plan)
            }

    def _ensure_policy_definitions_loaded(self):
        if self._policy_definitions is None:
            self._policy_definitions = {
                d.id: d for d in self._load_models("policy_definitions.json", PolicyDefinition)
            }

    def _ensure_preferences_loaded(self):
        if self._preferences is None:
            self._preferences = self._load_models(
                "notification_preferences.json", NotificationPreferenceEntity
            )

    # =========================================================================
    # User Operations
    # =========================================================================

    def get_user(self, username: str) -> Optional[User]:
        """Get a user by username."""
        self._ensure_users_loaded()
        return self._users.get(username)

    def get_users(self) -> list[User]:
        self._ensure_users_loaded()
        return list(self._users.values())

    def create_user(self, user: User) -> User:
        """Record a new user (in-memory only)."""
        with self._write_lock:
            self._ensure_users_loaded()
            if user.username in self._users:
                raise StorageException(f"User already exists: {user.username}")
            self._users[user.username] = user
        return user

    def get_or_create_user(self, user: User) -> tuple[User, bool]:
        """
        Return the stored user with this username, recording ``user`` if there is none.

        Returns:
            The stored user and whether it was created by this call
        """
        with self._write_lock:
            self._ensure_users_loaded()
            existing = self._users.get(user.username)
            if existing is not None:
                return existing, False
            self._users[user.username] = user
        return user, True

    def get_memberships(
        self,
        role_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> list[RoleMembership]:
        """Get role memberships, optionally narrowed by role and/or user."""
        self._ensure_memberships_loaded()
        return [
            m for m in self._memberships
            if (role_id is None or m.role_id == role_id)
            and (user_id is None or m.user_id == user_id)
        ]

    def create_membership(self, membership: RoleMembership) -> RoleMembership:
        with self._write_lock:
            self._ensure_memberships_loaded()
            self._memberships.append(membership)
        return membership

    # =========================================================================
    # Organization Operations
    # =========================================================================

    def get_organization(self, org_id: str) -> Optional[Organization]:
        self._ensure_organizations_loaded()
        return self._organizations.get(org_id)

    def get_organizations(self) -> list[Organization]:
        self._ensure_organizations_loaded()
        return list(self._organizations.values())

    def create_organization(self, org: Organization) -> Organization:
        """Record a new organization (in-memory only)."""
        with self._write_lock:
            self._ensure_organizations_loaded()
            if org.id in self._organizations:
                raise StorageException(f"Organization already exists: {org.id}")
            self._organizations[org.id] = org
        return org

    # =========================================================================
    # API Operations
    # =========================================================================

    def get_api(self, org_id: str, api_id: str) -> Optional[Api]:
        self._ensure_apis_loaded()
        return self._apis.get((org_id, api_id))

    def get_apis(self) -> list[Api]:
        self._ensure_apis_loaded()
        return list(self._apis.values())

    def get_api_versions(self, org_id: str, api_id: str) -> list[ApiVersion]:
        """Get every version of an API, newest first."""
        self._ensure_api_versions_loaded()
        versions = [
            v for (o, a, _), v in self._api_versions.items()
            if o == org_id and a == api_id
        ]
        return sorted(versions, key=lambda v: v.created_on, reverse=True)

    def get_api_version(self, org_id: str, api_id: str, version: str) -> Optional[ApiVersion]:
        self._ensure_api_versions_loaded()
        return self._api_versions.get((org_id, api_id, version))

    def get_plan(self, org_id: str, plan_id: str) -> Optional[Plan]:
        self._ensure_plans_loaded()
        return self._plans.get((org_id, plan_id))

    def get_policy_definition(self, definition_id: str) -> Optional[PolicyDefinition]:
        self._ensure_policy_definitions_loaded()
        return self._policy_definitions.get(definition_id)

    # =========================================================================
    # Notification Preference Operations
    # =========================================================================

    def get_notification_preference(
        self,
        user_id: str,
        notification_type: str,
    ) -> Optional[NotificationPreferenceEntity]:
        """Get a user's preference for one kind of notification delivery (e.g. EMAIL)."""
        self._ensure_preferences_loaded()
        for pref in self._preferences:
            if pref.user_id == user_id and pref.type == notification_type:
                return pref
        return None

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def reload(self):
        """Drop in-memory state so the next access re-reads the fixtures."""
        self._users = None
        self._memberships = None
        self._organizations = None
        self._apis = None
        self._api_versions = None
        self._plans = None
        self._policy_definitions = None
        self._preferences = None


# Module-level singleton for convenience
# In tests, create a new DataStore instance with test fixtures
_default_store: Optional[DataStore] = None


def get_data_store() -> DataStore:
    """Get the default data store singleton."""
    global _default_store
    if _default_store is None:
        _default_store = DataStore()
    return _default_store
