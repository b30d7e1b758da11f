"""
Factory for creating redirect store instances.
"""

from enum import Enum

import structlog

from .strategies import RedirectStore, SQLAlchemyRedirectStore, InMemoryRedirectStore
from redirector_app.config import Settings
from redirector_app.database.connection import Base, build_engine, build_session_factory

logger = structlog.get_logger(__name__)


class StoreBackend(Enum):
    """Available store backends"""
    SQLALCHEMY = "sqlalchemy"
    MEMORY = "memory"


class StoreFactory:
    """
    Simple factory for creating redirect stores.

    Configuration is passed in explicitly; the caller (create_app) keeps the
    instance for the lifetime of the application.
    """

    @classmethod
    def create(cls, settings: Settings) -> RedirectStore:
        """
        Create a store for the configured backend.

        Args:
            settings: Application settings

        Returns:
            RedirectStore instance

        Raises:
            ValueError: If the backend name is unknown
        """
        backend = StoreBackend(settings.store_backend)

        if backend == StoreBackend.SQLALCHEMY:
            engine = build_engine(settings.database_url)
            # Import models so they are registered with Base
            from redirector_app.models import Redirect  # noqa: F401
            Base.metadata.create_all(bind=engine)
            logger.info("store_initialized", backend=backend.value, url=engine.url.render_as_string(hide_password=True))
            return SQLAlchemyRedirectStore(build_session_factory(engine), engine=engine)

        if backend == StoreBackend.MEMORY:
            logger.info("store_initialized", backend=backend.value)
            return InMemoryRedirectStore()

        raise ValueError(f"Unknown store backend: {backend}")
