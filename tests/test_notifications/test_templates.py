"""
Tests for email templates.
"""

import pytest

from notifications.producers import APIMAN_ACCOUNT_APPROVAL_REQUEST, APIMAN_API_APPROVAL_REQUEST
from notifications.templates import TEMPLATES, get_template, render_email


class TestTemplates:

    def test_templates_exist_for_approval_reasons(self):
        assert APIMAN_ACCOUNT_APPROVAL_REQUEST in TEMPLATES
        assert APIMAN_API_APPROVAL_REQUEST in TEMPLATES

    def test_render_account_approval(self):
        subject, body = render_email(
            APIMAN_ACCOUNT_APPROVAL_REQUEST,
            recipient_name="Alice",
            reason_message="A new account needs approval to gain access erin",
            username="erin",
            first_name="Erin",
            surname="Example",
            email_address="erin@example.com",
        )

        assert subject == "Account approval needed: erin"
        assert "Hi Alice" in body
        assert "erin@example.com" in body

    def test_missing_variable(self):
        with pytest.raises(KeyError):
            render_email(APIMAN_ACCOUNT_APPROVAL_REQUEST, recipient_name="Alice")

    def test_unknown_reason(self):
        assert get_template("nope") is None
        with pytest.raises(ValueError):
            render_email("nope")
