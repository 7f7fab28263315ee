"""
Tests for SSO event handling.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

import pytest

from core.data_store import DataStore
from notifications.event_bus import EventBus
from notifications.events import AccountSignupEvent, EventTypes, from_bus_event
from services.sso_events import (
    SSO_NEW_ACCOUNT_SUBJECT,
    NewAccountCreatedDto,
    SsoEventService,
    event_key,
)

CREATED = datetime(2024, 5, 1, 12, 30)


@pytest.fixture
def sso_events(bus: EventBus, data_store: DataStore) -> SsoEventService:
    return SsoEventService(
        event_bus=bus,
        data_store=data_store,
        source="http://manager.test",
        approval_required=True,
    )


@pytest.fixture
def new_account() -> NewAccountCreatedDto:
    return NewAccountCreatedDto(
        user_id="kc-123",
        username="erin",
        email_address="erin@example.com",
        first_name="Erin",
        surname="Example",
        time=CREATED,
    )


class TestSsoEventService:

    def test_event_key(self):
        assert event_key("kc-123", CREATED) == "kc-123-2024-05-01T12:30:00"

    def test_publishes_account_signup(self, sso_events: SsoEventService, new_account, bus: EventBus):
        sso_events.new_account_created(new_account)

        published = bus.get_event_log(EventTypes.ACCOUNT_SIGNUP)
        assert len(published) == 1

        signup = from_bus_event(published[0])
        assert isinstance(signup, AccountSignupEvent)
        assert signup.username == "erin"
        assert signup.approval_required is True

    def test_headers(self, sso_events: SsoEventService, new_account):
        signup = sso_events.new_account_created(new_account)

        assert signup.headers.id == "kc-123-2024-05-01T12:30:00"
        assert signup.headers.source == "http://manager.test"
        assert signup.headers.subject == SSO_NEW_ACCOUNT_SUBJECT
        assert signup.headers.type == EventTypes.ACCOUNT_SIGNUP
        assert signup.headers.time == CREATED

    def test_records_new_user(self, sso_events: SsoEventService, new_account, data_store: DataStore):
        sso_events.new_account_created(new_account)

        user = data_store.get_user("erin")
        assert user.full_name == "Erin Example"
        assert user.email == "erin@example.com"
        assert user.joined_on == CREATED

    def test_known_user_left_alone(self, sso_events: SsoEventService, data_store: DataStore, bob_user_id):
        sso_events.new_account_created(NewAccountCreatedDto(
            user_id="kc-bob",
            username=bob_user_id,
            email_address="other@example.com",
        ))

        assert data_store.get_user(bob_user_id).email == "bob@example.com"

    def test_concurrent_callbacks_for_same_account(self, sso_events: SsoEventService, new_account, bus: EventBus, data_store: DataStore):
        """Repeated SSO callbacks racing for one new user all succeed."""
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: sso_events.new_account_created(new_account), range(8)))

        assert all(r.username == "erin" for r in results)
        assert len([u for u in data_store.get_users() if u.username == "erin"]) == 1
        assert len(bus.get_event_log(EventTypes.ACCOUNT_SIGNUP)) == 8

    def test_approval_not_required(self, bus: EventBus, data_store: DataStore, new_account):
        service = SsoEventService(event_bus=bus, data_store=data_store, approval_required=False)

        assert service.new_account_created(new_account).approval_required is False
