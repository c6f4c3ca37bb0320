"""
Email client utilities.

Responsibilities:
  - Hold SMTP configuration taken from Settings (built once at startup).
  - Provide a single send_email(...) method for services to use.
  - Support both TLS (STARTTLS) and SSL connections.

Typical .env configuration (ukr.net / Gmail style SSL on 465):

    SMTP_HOST=smtp.ukr.net
    SMTP_PORT=465
    SMTP_USERNAME=contacts-app@ukr.net
    SMTP_PASSWORD=<app password>
    SMTP_FROM_EMAIL=contacts-app@ukr.net
    SMTP_FROM_NAME=Contacts API
    SMTP_USE_TLS=false
    SMTP_USE_SSL=true
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from app.core.config import Settings

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 30


class EmailClient:
    """
    Thin SMTP sender.

    A fresh connection is opened for each message; nothing is shared
    between requests.
    """

    def __init__(self, settings: Settings):
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.username = settings.SMTP_USERNAME
        self.password = settings.SMTP_PASSWORD
        # Fallback: if FROM_EMAIL is not set, default to username
        self.from_email = settings.SMTP_FROM_EMAIL or settings.SMTP_USERNAME or ""
        self.from_name = settings.SMTP_FROM_NAME
        self.use_tls = settings.SMTP_USE_TLS
        self.use_ssl = settings.SMTP_USE_SSL

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.username and self.password)

    def _create_smtp_client(self) -> smtplib.SMTP:
        """
        Create and return an SMTP client configured for TLS or SSL.

        Priority:
          - If use_ssl → smtplib.SMTP_SSL (e.g. port 465).
          - Else → smtplib.SMTP + optional STARTTLS if use_tls (e.g. port 587).
        """
        if self.use_ssl:
            server: smtplib.SMTP = smtplib.SMTP_SSL(
                self.host, self.port, timeout=SMTP_TIMEOUT_SECONDS
            )
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=SMTP_TIMEOUT_SECONDS)
            if self.use_tls:
                server.starttls()

        return server

    def build_message(
        self,
        to_email: str,
        subject: str,
        text_body: str,
        html_body: str | None = None,
    ) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = (
            f"{self.from_name} <{self.from_email}>" if self.from_email else self.username
        )
        msg["To"] = to_email
        msg["Subject"] = subject

        # Always add a plain-text part
        msg.set_content(text_body)

        if html_body:
            msg.add_alternative(html_body, subtype="html")
        return msg

    def send_email(
        self,
        to_email: str,
        subject: str,
        text_body: str,
        html_body: str | None = None,
    ) -> None:
        """
        Send an email to a single recipient.

        Raises
        ------
        RuntimeError:
            If required SMTP configuration is missing.
        smtplib.SMTPException:
            If the underlying SMTP connection or send fails.
        """
        if not self.is_configured:
            raise RuntimeError(
                "SMTP is not configured correctly. "
                "Please set SMTP_HOST, SMTP_USERNAME, and SMTP_PASSWORD in .env."
            )

        msg = self.build_message(to_email, subject, text_body, html_body)

        server = self._create_smtp_client()
        try:
            server.login(self.username, self.password)  # type: ignore[arg-type]
            server.send_message(msg)
        finally:
            try:
                server.quit()
            except (smtplib.SMTPException, OSError):
                # Connection is being torn down anyway.
                pass

        logger.info("Sent email %r to %s", subject, to_email)
