"""ORM model exports."""

from signup.models.user import User

__all__ = ["User"]
