"""User storage adapters."""

from signup.stores.base import LOOKUP_FIELDS, LookupField, UserStore
from signup.stores.memory import InMemoryUserStore
from signup.stores.sql import SqlUserStore

__all__ = ["LOOKUP_FIELDS", "InMemoryUserStore", "LookupField", "SqlUserStore", "UserStore"]
