"""
Outgoing email for the API manager.

Nothing here talks SMTP: messages are logged and kept in an outbox, which is
what the demo prints and what tests assert against. Addresses listed as
undeliverable bounce, so delivery failures can be exercised without luck.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from core.config import get_settings

logger = logging.getLogger("email")


@dataclass
class EmailMessage:
    """One email as it left the manager, and whether it got through."""
    to: str
    subject: str
    body: str
    from_addr: str
    sent_on: datetime = field(default_factory=datetime.utcnow)
    delivered: bool = True
    error: Optional[str] = None

    def __str__(self) -> str:
        mark = "✓" if self.delivered else "✗"
        return f"{mark} EMAIL to {self.to}: {self.subject}"


class EmailChannel:

    def __init__(self, from_addr: Optional[str] = None, undeliverable: Iterable[str] = ()):
        """
        Args:
            from_addr: Sender address, defaults to the configured MAIL_FROM.
            undeliverable: Recipient addresses whose mail bounces.
        """
        self.from_addr = from_addr or get_settings().MAIL_FROM
        self.undeliverable = {address.lower() for address in undeliverable}
        self.outbox: list[EmailMessage] = []

    def send(self, to: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage(to=to, subject=subject, body=body, from_addr=self.from_addr)

        if to.lower() in self.undeliverable:
            message.delivered = False
            message.error = f"Mailbox unavailable: {to}"
            logger.error(f"[EMAIL BOUNCED] To: {to} | Subject: {subject} | {message.error}")
        else:
            logger.info(f"[EMAIL] From: {self.from_addr} | To: {to} | Subject: {subject}")
            logger.debug(f"[EMAIL BODY] {body}")

        self.outbox.append(message)
        return message

    def delivered(self) -> list[EmailMessage]:
        return [m for m in self.outbox if m.delivered]

    def messages_to(self, address: str) -> list[EmailMessage]:
        """Every message sent to an address, oldest first."""
        return [m for m in self.outbox if m.to == address]

    def clear(self) -> None:
        self.outbox.clear()


_default_channel: Optional[EmailChannel] = None


def get_email_channel() -> EmailChannel:
    """Get the default email channel singleton."""
    global _default_channel
    if _default_channel is None:
        _default_channel = EmailChannel()
    return _default_channel
