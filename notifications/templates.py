"""
Email templates for dispatched notifications.

Templates are keyed by notification reason and use Python's string formatting
for variable substitution. Every template receives the recipient's display
name, the notification's reason message and the fields of its payload.
"""

from dataclasses import dataclass
from typing import Optional

from notifications.producers import (
    APIMAN_ACCOUNT_APPROVAL_REQUEST,
    APIMAN_API_APPROVAL_REQUEST,
)


@dataclass
class EmailTemplate:
    reason: str
    subject: str
    body: str

    def render(self, **kwargs) -> tuple[str, str]:
        """
        Render the template with provided variables.

        Returns:
            Tuple of (subject, body)
        """
        return (
            self.subject.format(**kwargs),
            self.body.format(**kwargs),
        )


TEMPLATES: dict[str, EmailTemplate] = {

    APIMAN_ACCOUNT_APPROVAL_REQUEST: EmailTemplate(
        reason=APIMAN_ACCOUNT_APPROVAL_REQUEST,
        subject="Account approval needed: {username}",
        body="""Hi {recipient_name},

{reason_message}.

Username: {username}
Name: {first_name} {surname}
Email: {email_address}

Please review the request in the API Manager and approve or reject the account.
""",
    ),

    APIMAN_API_APPROVAL_REQUEST: EmailTemplate(
        reason=APIMAN_API_APPROVAL_REQUEST,
        subject="API signup approval needed: {api_id} {api_version}",
        body="""Hi {recipient_name},

{reason_message}.

Client: {client_org_id} / {client_id} ({client_version})
API: {api_org_id} / {api_id} ({api_version})
Plan: {plan_id} ({plan_version})
Requested by: {requested_by}

Please review the contract request in the API Manager.
""",
    ),
}


def get_template(reason: str) -> Optional[EmailTemplate]:
    return TEMPLATES.get(reason)


def render_email(reason: str, **context) -> tuple[str, str]:
    """
    Render the email for a notification reason.

    Raises:
        ValueError: If no template exists for the reason
        KeyError: If the context lacks a variable the template uses
    """
    template = get_template(reason)
    if not template:
        raise ValueError(f"No email template for notification reason: {reason}")
    return template.render(**context)
