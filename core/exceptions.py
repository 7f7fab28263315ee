"""
Manager exceptions and the helpers that raise them.

Each exception carries the HTTP status the REST layer answers with, so the
services can raise them without knowing anything about FastAPI. Storage
failures are wrapped by ``try_action`` into a ``SystemErrorException``.
"""

from typing import Callable, TypeVar

T = TypeVar("T")


class ManagerError(Exception):
    """Base class for errors reported to REST clients."""
    http_code: int = 500
    error_code: int = 1000

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class NotAuthorizedException(ManagerError):
    http_code = 403
    error_code = 1001


class OrganizationNotFoundException(ManagerError):
    http_code = 404
    error_code = 2002


class OrganizationAlreadyExistsException(ManagerError):
    http_code = 409
    error_code = 2001


class ApiNotFoundException(ManagerError):
    http_code = 404
    error_code = 5002


class ApiVersionNotFoundException(ManagerError):
    http_code = 404
    error_code = 5003


class InvalidSearchCriteriaException(ManagerError):
    http_code = 400
    error_code = 8001


class InvalidNameException(ManagerError):
    http_code = 400
    error_code = 8002


class InvalidParameterException(ManagerError):
    http_code = 400
    error_code = 8003


class SystemErrorException(ManagerError):
    http_code = 500
    error_code = 9999


class StorageException(Exception):
    """Raised by the storage layer when data cannot be read or written."""


def try_action(action: Callable[[], T]) -> T:
    """
    Run a data access action, turning storage failures into a system error.

    Manager errors raised inside the action are passed through unchanged.
    """
    try:
        return action()
    except StorageException as e:
        raise SystemErrorException(str(e)) from e


# =============================================================================
# Factory helpers
# =============================================================================

def not_authorized(message: str = "Not authorized to perform this action.") -> NotAuthorizedException:
    return NotAuthorizedException(message)


def organization_not_found(org_id: str) -> OrganizationNotFoundException:
    return OrganizationNotFoundException(f"Organization not found: {org_id}")


def organization_already_exists(org_name: str) -> OrganizationAlreadyExistsException:
    return OrganizationAlreadyExistsException(f"Organization already exists: {org_name}")


def api_not_found(api_id: str) -> ApiNotFoundException:
    return ApiNotFoundException(f"API not found: {api_id}")


def api_version_not_found(api_id: str, version: str) -> ApiVersionNotFoundException:
    return ApiVersionNotFoundException(f"API version not found: {api_id} {version}")


def invalid_name(name: str) -> InvalidNameException:
    return InvalidNameException(f"Invalid name: {name!r}")


def invalid_search_criteria(message: str) -> InvalidSearchCriteriaException:
    return InvalidSearchCriteriaException(message)


def invalid_parameter(message: str) -> InvalidParameterException:
    return InvalidParameterException(message)
