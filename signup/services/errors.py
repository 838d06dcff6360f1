"""Signup flow error taxonomy."""

from __future__ import annotations


class SignupError(Exception):
    """Base class for signup flow failures."""

    default_code = "signup_failed"
    default_status_code = 400

    def __init__(self, detail: str, code: str | None = None, status_code: int | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.code = code or self.default_code
        self.status_code = status_code or self.default_status_code


class ValidationError(SignupError):
    """Submitted fields have a bad format."""

    default_code = "invalid_input"
    default_status_code = 400


class ConflictError(SignupError):
    """Account already exists or is locked."""

    default_code = "already_registered"
    default_status_code = 409

    def __init__(
        self,
        detail: str,
        code: str | None = None,
        status_code: int | None = None,
        use_login: bool = False,
    ) -> None:
        super().__init__(detail, code, status_code)
        self.use_login = use_login


class DeactivatedAccountError(ConflictError):
    """Matching account exists but has been deactivated."""

    default_code = "account_deactivated"


class NotFoundError(SignupError):
    """Unknown token, email or user name."""

    default_code = "not_found"
    default_status_code = 404


class ExpiredError(SignupError):
    """Verification token is past its expiry."""

    default_code = "token_expired"
    default_status_code = 410


class TransportError(SignupError):
    """Verification code could not be delivered."""

    default_code = "notification_failed"
    default_status_code = 502


class StorageError(SignupError):
    """User storage adapter failed."""

    default_code = "storage_unavailable"
    default_status_code = 503


REPORTED_ERRORS: tuple[type[SignupError], ...] = (
    ValidationError,
    ConflictError,
    NotFoundError,
    ExpiredError,
)
