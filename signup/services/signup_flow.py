"""Signup orchestration: account creation, verification resend and token verification."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Literal, TypeVar

import structlog

from signup.core.durations import expires_at, is_expired, utcnow
from signup.core.tokens import TokenSource
from signup.models.user import User
from signup.notifiers.base import Notifier
from signup.services.errors import (
    ConflictError,
    DeactivatedAccountError,
    ExpiredError,
    NotFoundError,
    SignupError,
    StorageError,
    TransportError,
)
from signup.services.events import SignupAction, SignupEvent, SignupObserver, notify_observers
from signup.services.validation import (
    normalize_phone,
    validate_resend_email,
    validate_signup_fields,
)
from signup.stores.base import LookupField, UserStore

SignupOutcome = Literal["created", "sent", "sms_sent", "verified"]
T = TypeVar("T")

logger = structlog.get_logger(__name__)

_INVALID_LINK = "Verification link is invalid or has expired."


@dataclass(frozen=True)
class SignupResult:
    """Successful flow outcome."""

    outcome: SignupOutcome
    user: User | None = None


class SignupFlow:
    """Drive users from unregistered through pending verification to verified."""

    def __init__(
        self,
        store: UserStore,
        email_notifier: Notifier,
        token_lifetime: timedelta,
        token_source: TokenSource | None = None,
        sms_notifier: Notifier | None = None,
        observers: Sequence[SignupObserver] = (),
        event_name: str = "signup",
        use_login: bool = False,
        phone_region: str = "US",
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._email_notifier = email_notifier
        self._sms_notifier = sms_notifier
        self._token_lifetime = token_lifetime
        self._tokens = token_source or TokenSource()
        self._observers: list[SignupObserver] = list(observers)
        self._event_name = event_name
        self._use_login = use_login
        self._phone_region = phone_region
        self._clock = clock

    def subscribe(self, observer: SignupObserver) -> None:
        """Register an additional event observer."""
        self._observers.append(observer)

    async def create(
        self,
        name: str | None,
        email: str | None,
        password: str | None,
    ) -> SignupResult:
        """Validate, check uniqueness, persist and send the first verification code."""
        return await self._run("create", self._create(name, email, password))

    async def resend(
        self,
        email: str | None,
        name: str | None = None,
        phone: str | None = None,
    ) -> SignupResult:
        """Issue a fresh verification code for a pending account."""
        return await self._run("resend", self._resend(email, name, phone))

    async def verify(self, token: str | None) -> SignupResult:
        """Consume a verification token and mark the account verified."""
        return await self._run("verify", self._verify(token))

    async def _create(
        self,
        name: str | None,
        email: str | None,
        password: str | None,
    ) -> SignupResult:
        validate_signup_fields(name=name, email=email, password=password)
        assert password is not None

        checks: list[tuple[LookupField, str]] = []
        if email:
            checks.append(("email", email))
        if name:
            checks.append(("name", name))
        existing_users = await self._find_all(checks)
        for (field, _), existing in zip(checks, existing_users, strict=True):
            if existing is not None:
                raise self._conflict(field, existing)

        user = await self._storage(self._store.save(name or None, email or None, password))
        logger.info("signup_created", user_id=str(user.id))
        if user.email:
            self._issue_token(user)
            user = await self._update(user)
            await self._deliver(self._email_notifier, "email", user.email, user)
        return SignupResult(outcome="created", user=user)

    async def _resend(
        self,
        email: str | None,
        name: str | None,
        phone: str | None,
    ) -> SignupResult:
        email = validate_resend_email(email)
        phone_number = normalize_phone(phone, self._phone_region)
        use_sms = phone_number is not None and self._sms_notifier is not None

        if name:
            user = await self._find("name", name)
        else:
            user = await self._find("email", email)
        if user is None:
            raise NotFoundError("No account is registered for that email.")
        if user.account_invalid or user.account_locked:
            raise ConflictError("That email is invalid", code="account_invalid")

        if user.email_verified and not use_sms:
            if user.phone_verified is False:
                user.phone_verified = None
            user = await self._update(user)
            return SignupResult(outcome="verified", user=user)

        self._issue_token(user)
        if not user.email_verified:
            user.email = email
        if use_sms:
            assert phone_number is not None and self._sms_notifier is not None
            user = await self._update(user)
            await self._deliver(self._sms_notifier, "sms", phone_number, user)
            user.phone_number = phone_number
            user.phone_verified = False
            user = await self._update(user)
            return SignupResult(outcome="sms_sent", user=user)

        user = await self._update(user)
        await self._deliver(self._email_notifier, "email", email, user)
        return SignupResult(outcome="sent", user=user)

    async def _verify(self, token: str | None) -> SignupResult:
        if token is None or not self._tokens.is_valid(token):
            raise NotFoundError(_INVALID_LINK, code="invalid_verify_token")

        user = await self._find("signup_token", token)
        if user is None:
            raise NotFoundError(_INVALID_LINK, code="invalid_verify_token")

        now = self._clock()
        if is_expired(user.signup_token_expires, now):
            user.clear_signup_token()
            await self._update(user)
            raise ExpiredError("Verification link has expired.")

        user.email_verified = True
        user.email_verification_timestamp = now
        if user.phone_number is not None and user.phone_verified is False:
            user.phone_verified = True
        user.clear_signup_token()
        user = await self._update(user)
        return SignupResult(outcome="verified", user=user)

    async def _run(
        self,
        action: SignupAction,
        operation: Awaitable[SignupResult],
    ) -> SignupResult:
        """Await ``operation`` and publish its outcome to observers."""
        try:
            result = await operation
        except SignupError as exc:
            await notify_observers(
                self._observers,
                SignupEvent(
                    name=self._event_name,
                    action=action,
                    outcome=type(exc).__name__,
                    error=exc,
                ),
            )
            raise
        await notify_observers(
            self._observers,
            SignupEvent(
                name=self._event_name,
                action=action,
                outcome=result.outcome,
                user=result.user,
            ),
        )
        return result

    def _conflict(self, field: LookupField, existing: User) -> ConflictError:
        """Build the error reported for an already registered field."""
        if existing.account_invalid:
            return DeactivatedAccountError(f'The {field} "{existing.email}" has been deactivated')
        if field == "email":
            detail = f'The email account "{existing.email}" is already signed up.'
        else:
            detail = f'The user "{existing.name}" is already signed up.'
        return ConflictError(detail, use_login=self._use_login)

    def _issue_token(self, user: User) -> None:
        """Attach a new token and expiry to ``user``."""
        user.signup_token = self._tokens.generate()
        user.signup_token_expires = expires_at(self._clock(), self._token_lifetime)

    async def _find(self, field: LookupField, value: str) -> User | None:
        return await self._storage(self._store.find(field, value))

    async def _find_all(self, checks: Sequence[tuple[LookupField, str]]) -> list[User | None]:
        """Run lookups concurrently; the first failure cancels the rest."""
        tasks = [asyncio.ensure_future(self._find(field, value)) for field, value in checks]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _update(self, user: User) -> User:
        return await self._storage(self._store.update(user))

    async def _storage(self, call: Awaitable[T]) -> T:
        """Await a store call, normalizing adapter failures to StorageError."""
        try:
            return await call
        except SignupError:
            raise
        except Exception as exc:
            raise StorageError("User storage failed.") from exc

    async def _deliver(self, notifier: Notifier, channel: str, destination: str, user: User) -> None:
        """Send the current token, normalizing failures to TransportError."""
        assert user.signup_token is not None
        try:
            await notifier.send(destination, user.signup_token)
        except SignupError:
            raise
        except Exception as exc:
            raise TransportError("Verification code could not be delivered.") from exc
        logger.info("verification_sent", channel=channel, user_id=str(user.id))
