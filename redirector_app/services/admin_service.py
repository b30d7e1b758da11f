from typing import List

import structlog

from redirector_app.exceptions import NotFoundError
from redirector_app.schemas.redirect import RedirectRecord
from redirector_app.services.issuance_service import validate_destination
from redirector_app.store.strategies import RedirectStore

logger = structlog.get_logger(__name__)


class AdminService:
    """Administrative operations: list, re-point and delete redirects."""

    def __init__(self, store: RedirectStore):
        self.store = store

    async def list_redirects(self) -> List[RedirectRecord]:
        return await self.store.get_all()

    async def update_destination(self, key: str, destination: str) -> RedirectRecord:
        """
        Point an existing redirect somewhere else.

        Only the destination changes: the key, slug and token stay the same,
        so links already handed out keep working.

        Raises:
            ValidationError: Bad destination
            NotFoundError: Unknown key
        """
        destination = validate_destination(destination)

        record = await self.store.update_destination(key, destination)
        if record is None:
            raise NotFoundError(f"No redirect for key {key}")

        logger.info("redirect_updated", key=key)
        return record

    async def delete_redirect(self, key: str) -> None:
        """Raises NotFoundError for an unknown key"""
        if not await self.store.delete(key):
            raise NotFoundError(f"No redirect for key {key}")
        logger.info("redirect_deleted", key=key)
