import re
import secrets
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

import structlog

from redirector_app.exceptions import ValidationError
from redirector_app.schemas.redirect import RedirectRecord
from redirector_app.security.token_codec import TokenCodec
from redirector_app.store.strategies import RedirectStore

logger = structlog.get_logger(__name__)

ALLOWED_SCHEMES = ("http", "https")
SLUG_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]{2,63}$")


def validate_destination(destination: Optional[str]) -> str:
    """
    Check that `destination` is an absolute http(s) URL with a host.

    Returns the destination unchanged (it is stored verbatim).

    Raises:
        ValidationError: On anything else
    """
    if not destination or not isinstance(destination, str):
        raise ValidationError("Invalid destination URL.")

    try:
        parts = urlsplit(destination)
    except ValueError as exc:
        raise ValidationError("Invalid destination URL.") from exc

    if parts.scheme.lower() not in ALLOWED_SCHEMES or not parts.netloc:
        raise ValidationError("Invalid destination URL.")
    if any(char.isspace() for char in destination):
        raise ValidationError("Invalid destination URL.")

    return destination


def validate_slug(slug: Optional[str]) -> Optional[str]:
    if slug is None:
        return None
    if not SLUG_PATTERN.match(slug):
        raise ValidationError(
            "Invalid slug: use 3-64 lowercase letters, digits or hyphens."
        )
    return slug


@dataclass(frozen=True)
class IssuedRedirect:
    """A freshly issued link and the shareable URLs pointing at it"""
    record: RedirectRecord
    redirect_url: str
    path_redirect_url: str
    slug_redirect_url: Optional[str] = None

    @property
    def key(self) -> str:
        return self.record.key

    @property
    def token(self) -> str:
        return self.record.token


class IssuanceService:
    """
    Mints new signed redirect links.

    Key uniqueness is left to the store: a collision on the random key (or a
    taken slug) surfaces as KeyCollisionError and the caller may simply issue
    again.
    """

    def __init__(self, store: RedirectStore, codec: TokenCodec, key_bytes: int = 8):
        self.store = store
        self.codec = codec
        self.key_bytes = key_bytes

    def generate_key(self) -> str:
        """Random hex key (8 bytes -> 16 characters, ~64 bits)"""
        return secrets.token_hex(self.key_bytes)

    async def issue(
        self,
        destination: Optional[str],
        base_url: str,
        slug: Optional[str] = None,
    ) -> IssuedRedirect:
        """
        Validate, sign and persist a new redirect.

        Args:
            destination: Absolute http(s) URL
            base_url: Scheme and host the shareable URLs are anchored to
            slug: Optional human-readable alias

        Raises:
            ValidationError: Bad destination or slug
            KeyCollisionError: Key or slug already taken (retryable)
            StoreError: Persistence failure
        """
        try:
            destination = validate_destination(destination)
        except ValidationError:
            logger.info("invalid_destination", destination=destination)
            raise
        slug = validate_slug(slug)

        key = self.generate_key()
        token = self.codec.sign(key)

        record = await self.store.add(key=key, destination=destination, token=token, slug=slug)
        logger.info("redirect_issued", key=key, slug=slug)

        base = base_url.rstrip("/")
        return IssuedRedirect(
            record=record,
            redirect_url=f"{base}/{key}?token={token}",
            path_redirect_url=f"{base}/{key}/{token}",
            slug_redirect_url=f"{base}/s/{slug}/{token}" if slug else None,
        )
