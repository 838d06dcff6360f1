"""Pluggable signup and email/phone verification flow for FastAPI."""

from signup.services.signup_flow import SignupFlow, SignupResult

__all__ = ["SignupFlow", "SignupResult"]
