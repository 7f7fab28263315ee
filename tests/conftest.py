"""
Shared pytest fixtures for the API manager tests.

These fixtures provide consistent test data and reset state between tests.
"""

import pytest
from pathlib import Path

from fastapi.testclient import TestClient

from api.dependencies import reset_api_state
from api.main import app
from core.channels import EmailChannel
from core.data_store import DataStore
from core.security import SecurityContext
from notifications.event_bus import EventBus
from notifications.events import AccountSignupEvent, ApimanEventHeaders, ApiSignupEvent
from notifications.notification_service import NotificationService
from notifications.repository import NotificationRepository


@pytest.fixture
def data_dir() -> Path:
    """Path to the fixture data directory."""
    return Path(__file__).parent.parent / "data"


@pytest.fixture
def data_store(data_dir: Path) -> DataStore:
    """
    Fresh DataStore instance for each test.

    Uses the real JSON fixtures but creates a new instance
    so writes made by one test never leak into another.
    """
    return DataStore(data_dir=data_dir)


@pytest.fixture
def bus() -> EventBus:
    """Fresh event bus for each test."""
    return EventBus()


@pytest.fixture
def channel() -> EmailChannel:
    """Fresh EmailChannel for each test."""
    return EmailChannel(from_addr="apiman@test.local")


@pytest.fixture
def repository(data_store: DataStore) -> NotificationRepository:
    return NotificationRepository(data_store)


@pytest.fixture
def security_context(data_store: DataStore) -> SecurityContext:
    """Anonymous security context over the fixture data."""
    return SecurityContext(data_store=data_store)


@pytest.fixture
def notification_service(
    bus: EventBus,
    data_store: DataStore,
    repository: NotificationRepository,
) -> NotificationService:
    return NotificationService(event_bus=bus, data_store=data_store, repository=repository)


# =============================================================================
# User Fixtures
# =============================================================================

@pytest.fixture
def admin_user_id() -> str:
    """Administrator; has EMAIL notifications disabled."""
    return "admin"


@pytest.fixture
def alice_user_id() -> str:
    """Approver with an email address and no preferences (receives everything)."""
    return "alice"


@pytest.fixture
def bob_user_id() -> str:
    """Plain developer with no roles and no organization of his own yet."""
    return "bob"


@pytest.fixture
def carol_user_id() -> str:
    """Approver whose EMAIL preference only allows apiman.account.* reasons."""
    return "carol"


@pytest.fixture
def dave_user_id() -> str:
    """Approver without an email address."""
    return "dave"


# =============================================================================
# API Fixtures
# =============================================================================

@pytest.fixture
def weather_api() -> tuple[str, str]:
    """
    Acme's featured Weather API.

    Versions 1.0 (SwaggerJSON) and 2.0 (SwaggerYAML) are exposed in the
    portal, 0.9 is retired and hidden.
    """
    return "Acme", "weather"


@pytest.fixture
def hidden_api() -> tuple[str, str]:
    """Acme's Billing API; its only version is not exposed in the portal."""
    return "Acme", "billing"


# =============================================================================
# Domain Event Fixtures
# =============================================================================

@pytest.fixture
def account_signup_event() -> AccountSignupEvent:
    """A new account (erin) that must be approved before use."""
    return AccountSignupEvent(
        headers=ApimanEventHeaders(id="u-42", source="http://sso.test"),
        user_id="u-42",
        username="erin",
        email_address="erin@example.com",
        first_name="Erin",
        surname="Example",
        approval_required=True,
    )


@pytest.fixture
def api_signup_event() -> ApiSignupEvent:
    """Bob's mobile app asking for the Gold plan on Weather 1.0, which requires approval."""
    return ApiSignupEvent(
        headers=ApimanEventHeaders(id="contract-1", source="http://manager.test"),
        client_org_id="bob",
        client_id="mobile-app",
        client_version="1.0",
        api_org_id="Acme",
        api_id="weather",
        api_version="1.0",
        plan_id="gold",
        plan_version="1.0",
        approval_required=True,
        requested_by="bob",
    )


# =============================================================================
# REST Fixtures
# =============================================================================

@pytest.fixture
def api_client(data_store, bus, repository, channel):
    """Test client over fresh state, with the notification pipeline running."""
    reset_api_state(data_store=data_store, event_bus=bus, repository=repository, channel=channel)
    with TestClient(app) as client:
        yield client
    reset_api_state()
