"""Database package exports."""

from signup.db.base import Base
from signup.db.session import (
    create_schema,
    dispose_engine,
    get_engine,
    get_session_factory,
)

__all__ = [
    "Base",
    "create_schema",
    "dispose_engine",
    "get_engine",
    "get_session_factory",
]
