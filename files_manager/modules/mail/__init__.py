"""
Mail Module - Black Box Interface

Purpose: Hand outbound HTML email to a transport
Interface: send(to_address, subject, html_body)
Hidden: MIME construction, SMTP session, credentials

Replaceable with any implementation of the MailSender protocol
(transactional email API, Gmail API, local spool).
"""

import logging
from email.message import EmailMessage
from typing import Optional, Protocol

import aiosmtplib

from files_manager.errors import TransientIOError, ValidationError

logger = logging.getLogger(__name__)


class MailSender(Protocol):
    """Protocol for outbound mail transports."""

    async def send(self, to_address: str, subject: str, html_body: str) -> None:
        ...


def build_message(sender: Optional[str], to_address: str, subject: str, html_body: str) -> EmailMessage:
    """
    Build an HTML email message.

    Raises:
        ValidationError: If the sender or recipient is missing
    """
    if not sender:
        raise ValidationError(f"Invalid sender: {sender}")
    if not to_address:
        raise ValidationError("Missing recipient")

    message = EmailMessage()
    message["From"] = sender
    message["To"] = to_address
    message["Subject"] = subject
    message.set_content(html_body, subtype="html", charset="utf-8")
    return message


class SmtpMailSender:
    """Sends mail through an SMTP relay with aiosmtplib."""

    def __init__(
        self,
        sender: Optional[str],
        hostname: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30,
    ):
        self.sender = sender
        self.hostname = hostname
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout

    async def send(self, to_address: str, subject: str, html_body: str) -> None:
        message = build_message(self.sender, to_address, subject, html_body)
        try:
            await aiosmtplib.send(
                message,
                hostname=self.hostname,
                port=self.port,
                username=self.username,
                password=self.password,
                start_tls=self.port == 587,
                timeout=self.timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            raise TransientIOError(f"Mail delivery to relay failed: {e}") from e

        logger.info(f"Message sent to {to_address}")


class LogMailSender:
    """Logs messages instead of sending them. Used when no SMTP relay is configured."""

    def __init__(self, sender: Optional[str] = "no-reply@localhost"):
        self.sender = sender

    async def send(self, to_address: str, subject: str, html_body: str) -> None:
        build_message(self.sender, to_address, subject, html_body)
        logger.info(f"Mail transport not configured; would send {subject!r} to {to_address}")


__all__ = ["MailSender", "SmtpMailSender", "LogMailSender", "build_message"]
