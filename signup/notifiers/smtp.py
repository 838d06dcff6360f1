"""SMTP verification email notifier."""

from __future__ import annotations

import asyncio
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage

from signup.services.errors import TransportError


@dataclass(frozen=True)
class SmtpEmailNotifier:
    """Send verification links as plaintext email over SMTP."""

    host: str
    port: int
    email_from: str
    subject: str
    verification_url: str

    async def send(self, destination: str, code: str) -> None:
        """Email a verification link embedding ``code`` to ``destination``."""
        body = f"Open this link to verify your account: {self.verification_link(code)}"
        try:
            await asyncio.to_thread(
                self._send_blocking,
                to_email=destination,
                subject=self.subject,
                body=body,
            )
        except (OSError, smtplib.SMTPException) as exc:
            raise TransportError("Verification email could not be sent.") from exc

    def verification_link(self, code: str) -> str:
        """Build the absolute verification URL for ``code``."""
        return f"{self.verification_url.rstrip('/')}/{code}"

    def _send_blocking(self, to_email: str, subject: str, body: str) -> None:
        """Send plaintext email using stdlib SMTP client."""
        message = EmailMessage()
        message["From"] = self.email_from
        message["To"] = to_email
        message["Subject"] = subject
        message.set_content(body)

        with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
            smtp.send_message(message)
