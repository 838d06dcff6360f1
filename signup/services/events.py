"""Signup event observers."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Literal

import structlog

from signup.models.user import User
from signup.services.errors import SignupError

SignupAction = Literal["create", "resend", "verify"]

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SignupEvent:
    """Outcome of one signup flow operation."""

    name: str
    action: SignupAction
    outcome: str
    user: User | None = None
    error: SignupError | None = None

    @property
    def success(self) -> bool:
        """Return True when the operation did not fail."""
        return self.error is None


SignupObserver = Callable[[SignupEvent], Awaitable[None] | None]


async def notify_observers(observers: list[SignupObserver], event: SignupEvent) -> None:
    """Deliver ``event`` to each observer; observer failures are logged only."""
    for observer in observers:
        try:
            result = observer(event)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(
                "signup_observer_failed",
                observer=getattr(observer, "__name__", type(observer).__name__),
                action=event.action,
                outcome=event.outcome,
            )


def log_signup_event(event: SignupEvent) -> None:
    """Write one structured log entry per signup event."""
    user_id = str(event.user.id) if event.user is not None and event.user.id else None
    if event.error is None:
        logger.info(
            f"{event.name}_{event.action}",
            outcome=event.outcome,
            user_id=user_id,
            success=True,
        )
        return
    logger.warning(
        f"{event.name}_{event.action}",
        outcome=event.outcome,
        user_id=user_id,
        success=False,
        code=event.error.code,
        detail=event.error.detail,
    )
