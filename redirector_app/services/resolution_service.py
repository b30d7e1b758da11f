import re
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Mapping, Optional

import structlog

from redirector_app.exceptions import InvalidTokenError
from redirector_app.schemas.redirect import RedirectRecord
from redirector_app.security.bot_gate import BotGate
from redirector_app.security.token_codec import TokenCodec
from redirector_app.store.strategies import RedirectStore

logger = structlog.get_logger(__name__)

# Basic mailbox shape: something@something.tld, no whitespace
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class OutcomeKind(Enum):
    REDIRECT = "redirect"
    CHALLENGE = "challenge"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    BAD_REQUEST = "bad_request"


@dataclass(frozen=True)
class Outcome:
    """
    Result of resolving a link.

    `url` is set for REDIRECT and CHALLENGE. `reason` is set for the failure
    kinds; for FORBIDDEN it is meant for logs and must not reach the caller.
    """
    kind: OutcomeKind
    url: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def redirect(cls, url: str) -> "Outcome":
        return cls(OutcomeKind.REDIRECT, url=url)

    @classmethod
    def challenge(cls, url: str) -> "Outcome":
        return cls(OutcomeKind.CHALLENGE, url=url)

    @classmethod
    def not_found(cls) -> "Outcome":
        return cls(OutcomeKind.NOT_FOUND, reason="Redirect not found.")

    @classmethod
    def forbidden(cls, reason: str) -> "Outcome":
        return cls(OutcomeKind.FORBIDDEN, reason=reason)

    @classmethod
    def bad_request(cls, reason: str) -> "Outcome":
        return cls(OutcomeKind.BAD_REQUEST, reason=reason)


def compose_destination(destination: str, identity: Optional[str]) -> str:
    """Append `identity` as a path segment, adding "/" only when missing"""
    if not identity:
        return destination
    if destination.endswith("/"):
        return destination + identity
    return f"{destination}/{identity}"


class ResolutionService:
    """
    Resolves signed links into an Outcome.

    Pipeline for every request:
    1. Bot gate (deny -> FORBIDDEN, store never touched)
    2. Identity (email) shape check (-> BAD_REQUEST)
    3. Token signature check (-> FORBIDDEN)
    4. Record lookup (-> NOT_FOUND)
    5. Exact match of the presented token against the stored one (-> FORBIDDEN)
    6. Destination composition
    7. REDIRECT, or CHALLENGE when the challenge page is enabled

    Holds no per-request state: the same inputs against an unchanged record
    always give the same Outcome. Store failures propagate as StoreError.
    """

    def __init__(
        self,
        store: RedirectStore,
        codec: TokenCodec,
        gate: BotGate,
        challenge_mode: bool = False,
        identity_param: str = "email",
    ):
        self.store = store
        self.codec = codec
        self.gate = gate
        self.challenge_mode = challenge_mode
        self.identity_param = identity_param

    async def resolve(
        self,
        key: str,
        token: str,
        query_params: Mapping[str, str],
        headers: Mapping[str, str],
    ) -> Outcome:
        """Resolve a link addressed by its random key"""
        return await self._resolve(
            ident=key,
            token=token,
            query_params=query_params,
            headers=headers,
            lookup=self.store.get_by_key,
            expected_key=key,
        )

    async def resolve_slug(
        self,
        slug: str,
        token: str,
        query_params: Mapping[str, str],
        headers: Mapping[str, str],
    ) -> Outcome:
        """Resolve a link addressed by its human-readable slug"""
        return await self._resolve(
            ident=slug,
            token=token,
            query_params=query_params,
            headers=headers,
            lookup=self.store.get_by_slug,
            expected_key=None,
        )

    async def _resolve(
        self,
        ident: str,
        token: str,
        query_params: Mapping[str, str],
        headers: Mapping[str, str],
        lookup: Callable[[str], Awaitable[Optional[RedirectRecord]]],
        expected_key: Optional[str],
    ) -> Outcome:
        verdict = self.gate.classify(headers, query_params)
        if not verdict.allowed:
            return Outcome.forbidden(f"bot gate: {verdict.reason}")

        identity = query_params.get(self.identity_param)
        if identity and not EMAIL_PATTERN.match(identity):
            logger.info("invalid_identity", ident=ident)
            return Outcome.bad_request("Invalid email format.")

        try:
            token_key = self.codec.verify(token)
        except InvalidTokenError as exc:
            logger.info("token_rejected", ident=ident, error=str(exc))
            return Outcome.forbidden("invalid token")

        # A valid token minted for another key is not a pass for this one
        if expected_key is not None and token_key != expected_key:
            logger.info("token_key_mismatch", ident=ident)
            return Outcome.forbidden("token bound to another key")

        record = await lookup(ident)
        if record is None:
            logger.info("redirect_not_found", ident=ident)
            return Outcome.not_found()

        # Exact match against the token stored at issuance, not just a valid signature
        if record.token != token or token_key != record.key:
            logger.info("token_mismatch", ident=ident)
            return Outcome.forbidden("token does not match record")

        destination = compose_destination(record.destination, identity)

        if self.challenge_mode:
            logger.info("redirect_challenge", key=record.key)
            return Outcome.challenge(destination)

        logger.info("redirect_resolved", key=record.key)
        return Outcome.redirect(destination)
