"""
Redirect store strategies using Strategy Pattern.

The resolution and issuance services only see the narrow RedirectStore
interface, so they run unchanged against SQLAlchemy in production and the
in-memory store in tests.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from redirector_app.exceptions import KeyCollisionError, StoreError
from redirector_app.models.redirect import Redirect
from redirector_app.schemas.redirect import RedirectRecord


class RedirectStore(ABC):
    """
    Abstract base class for redirect stores.

    All methods are async because lookups are the one potentially slow step
    of a request; each call is awaited on its own, with no global lock.

    Uniqueness of `key` and `slug` is the store's job: `add` raises
    KeyCollisionError when either is already taken.
    """

    @abstractmethod
    async def add(self, key: str, destination: str, token: str, slug: Optional[str] = None) -> RedirectRecord:
        """
        Persist a new redirect.

        Raises:
            KeyCollisionError: key or slug already exists
            StoreError: any other persistence failure
        """
        pass

    @abstractmethod
    async def get_by_key(self, key: str) -> Optional[RedirectRecord]:
        """Return the record for `key`, or None"""
        pass

    @abstractmethod
    async def get_by_slug(self, slug: str) -> Optional[RedirectRecord]:
        """Return the record for `slug`, or None"""
        pass

    @abstractmethod
    async def get_all(self) -> List[RedirectRecord]:
        """Return every record, oldest first"""
        pass

    @abstractmethod
    async def update_destination(self, key: str, destination: str) -> Optional[RedirectRecord]:
        """
        Change the destination of an existing record.

        The token is never touched. Returns the updated record, or None if
        `key` is unknown.
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a record. Returns False if `key` is unknown."""
        pass

    def close(self) -> None:
        """Release backend resources (no-op by default)"""


class SQLAlchemyRedirectStore(RedirectStore):
    """
    SQLAlchemy implementation (SQLite, PostgreSQL, ...).

    One session per operation; blocking calls run in Starlette's threadpool
    so a slow database never stalls the event loop.
    """

    def __init__(self, session_factory: sessionmaker, engine=None):
        """
        Args:
            session_factory: Factory producing SQLAlchemy sessions
            engine: Engine to dispose on close (optional)
        """
        self.session_factory = session_factory
        self.engine = engine

    @contextmanager
    def _session(self):
        """Open a session and translate driver errors into store errors"""
        session = self.session_factory()
        try:
            yield session
        except IntegrityError as exc:
            session.rollback()
            raise KeyCollisionError("Redirect key or slug already exists") from exc
        except SQLAlchemyError as exc:
            session.rollback()
            raise StoreError(f"Database error: {exc.__class__.__name__}") from exc
        finally:
            session.close()

    async def add(self, key: str, destination: str, token: str, slug: Optional[str] = None) -> RedirectRecord:
        return await run_in_threadpool(self._add, key, destination, token, slug)

    def _add(self, key, destination, token, slug):
        with self._session() as session:
            row = Redirect(key=key, slug=slug, destination=destination, token=token)
            session.add(row)
            session.commit()
            session.refresh(row)
            return RedirectRecord.model_validate(row)

    async def get_by_key(self, key: str) -> Optional[RedirectRecord]:
        return await run_in_threadpool(self._get_one, Redirect.key == key)

    async def get_by_slug(self, slug: str) -> Optional[RedirectRecord]:
        return await run_in_threadpool(self._get_one, Redirect.slug == slug)

    def _get_one(self, condition):
        with self._session() as session:
            row = session.query(Redirect).filter(condition).first()
            return RedirectRecord.model_validate(row) if row else None

    async def get_all(self) -> List[RedirectRecord]:
        return await run_in_threadpool(self._get_all)

    def _get_all(self):
        with self._session() as session:
            rows = session.query(Redirect).order_by(Redirect.id).all()
            return [RedirectRecord.model_validate(row) for row in rows]

    async def update_destination(self, key: str, destination: str) -> Optional[RedirectRecord]:
        return await run_in_threadpool(self._update_destination, key, destination)

    def _update_destination(self, key, destination):
        with self._session() as session:
            row = session.query(Redirect).filter(Redirect.key == key).first()
            if not row:
                return None
            row.destination = destination
            session.commit()
            session.refresh(row)
            return RedirectRecord.model_validate(row)

    async def delete(self, key: str) -> bool:
        return await run_in_threadpool(self._delete, key)

    def _delete(self, key):
        with self._session() as session:
            deleted = session.query(Redirect).filter(Redirect.key == key).delete()
            session.commit()
            return bool(deleted)

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()


class InMemoryRedirectStore(RedirectStore):
    """
    In-memory store using Python dicts.

    Pros:
    - No external dependencies
    - Good for development and tests

    Cons:
    - Not persistent (lost on restart)
    - Not shared between processes
    """

    def __init__(self):
        self._records: Dict[str, RedirectRecord] = {}
        self._slugs: Dict[str, str] = {}  # slug -> key

    async def add(self, key: str, destination: str, token: str, slug: Optional[str] = None) -> RedirectRecord:
        if key in self._records or (slug is not None and slug in self._slugs):
            raise KeyCollisionError("Redirect key or slug already exists")

        now = datetime.now(timezone.utc)
        record = RedirectRecord(
            key=key,
            slug=slug,
            destination=destination,
            token=token,
            created_at=now,
            updated_at=now,
        )
        self._records[key] = record
        if slug is not None:
            self._slugs[slug] = key
        return record

    async def get_by_key(self, key: str) -> Optional[RedirectRecord]:
        return self._records.get(key)

    async def get_by_slug(self, slug: str) -> Optional[RedirectRecord]:
        key = self._slugs.get(slug)
        return self._records.get(key) if key else None

    async def get_all(self) -> List[RedirectRecord]:
        return list(self._records.values())

    async def update_destination(self, key: str, destination: str) -> Optional[RedirectRecord]:
        record = self._records.get(key)
        if record is None:
            return None
        updated = record.model_copy(
            update={"destination": destination, "updated_at": datetime.now(timezone.utc)}
        )
        self._records[key] = updated
        return updated

    async def delete(self, key: str) -> bool:
        record = self._records.pop(key, None)
        if record is None:
            return False
        if record.slug is not None:
            self._slugs.pop(record.slug, None)
        return True
