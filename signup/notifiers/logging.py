"""Notifiers that log or capture codes instead of delivering them."""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LoggingNotifier:
    """Development notifier: writes the code to the structured log."""

    channel: str
    message: str = "Your verification code is"

    async def send(self, destination: str, code: str) -> None:
        """Log the outgoing message."""
        logger.info(
            "verification_code_logged",
            channel=self.channel,
            destination=destination,
            message=f"{self.message} {code}",
        )


@dataclass
class CapturingNotifier:
    """Keep sent codes in memory."""

    sent: list[tuple[str, str]] = field(default_factory=list)

    async def send(self, destination: str, code: str) -> None:
        """Record the destination and code."""
        self.sent.append((destination, code))
