"""Request payloads for the signup routes."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


class _FormPayload(BaseModel):
    """Shared config: unknown fields are ignored, blank strings become None."""

    model_config = ConfigDict(extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, value: object) -> object:
        """Treat empty form fields as missing."""
        if isinstance(value, str) and not value.strip():
            return None
        return value


class SignupForm(_FormPayload):
    """Account creation payload."""

    name: str | None = None
    email: str | None = None
    password: str | None = None


class ResendForm(_FormPayload):
    """Resend verification payload."""

    email: str | None = None
    name: str | None = None
    phone: str | None = None
