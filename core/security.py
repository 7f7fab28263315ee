"""
Security context for a single request.

Authentication itself happens upstream (an SSO proxy in front of the manager);
by the time a request reaches us the authenticated username is just a value.
The context answers who the caller is and which users hold a given role.
"""

import logging
from typing import Optional

from core.data_store import DataStore, get_data_store
from core.models import UserDto

logger = logging.getLogger("security")


class SecurityContext:
    """
    Identity of the current caller plus role lookups.

    A context with no current user represents an anonymous caller, which is
    also what background work (event producers) runs as.
    """

    def __init__(
        self,
        data_store: Optional[DataStore] = None,
        current_user: Optional[str] = None,
    ):
        self.data_store = data_store or get_data_store()
        self._current_user = current_user or None

    def get_current_user(self) -> Optional[str]:
        return self._current_user

    def is_logged_in(self) -> bool:
        return self._current_user is not None

    def is_admin(self) -> bool:
        if not self._current_user:
            return False
        user = self.data_store.get_user(self._current_user)
        return bool(user and user.admin)

    def get_remote_users_with_role(self, role_name: str) -> list[UserDto]:
        """
        Get every user holding a role, in any organization.

        Each user appears once even if they hold the role in several
        organizations. Memberships pointing at unknown users are skipped.
        """
        users: list[UserDto] = []
        seen: set[str] = set()

        for membership in self.data_store.get_memberships(role_id=role_name):
            if membership.user_id in seen:
                continue
            seen.add(membership.user_id)

            user = self.data_store.get_user(membership.user_id)
            if user is None:
                logger.warning(f"Role '{role_name}' granted to unknown user {membership.user_id}")
                continue
            users.append(UserDto.from_user(user))

        return users
