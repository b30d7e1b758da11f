"""
Redirect store module.
Implements Strategy Pattern for pluggable persistence backends.
"""

from .strategies import RedirectStore, SQLAlchemyRedirectStore, InMemoryRedirectStore
from .factory import StoreFactory, StoreBackend

__all__ = [
    "RedirectStore",
    "SQLAlchemyRedirectStore",
    "InMemoryRedirectStore",
    "StoreFactory",
    "StoreBackend",
]
