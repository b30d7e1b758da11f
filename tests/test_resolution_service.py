"""
Tests for the resolution pipeline, run directly against the service.
"""
import asyncio

import pytest

from redirector_app.services.resolution_service import (
    OutcomeKind,
    ResolutionService,
    compose_destination,
)
from tests.conftest import BROWSER_HEADERS


def issue(issuance_service, destination="https://example.com", slug=None):
    return asyncio.run(issuance_service.issue(destination, "http://testserver", slug=slug))


class TestComposeDestination:
    """Test identity path segment composition"""

    def test_no_identity_keeps_destination(self):
        assert compose_destination("https://example.com", None) == "https://example.com"

    def test_inserts_slash_when_missing(self):
        assert compose_destination("https://example.com", "user@x.com") == "https://example.com/user@x.com"

    def test_no_double_slash(self):
        assert compose_destination("https://example.com/", "user@x.com") == "https://example.com/user@x.com"

    def test_appends_to_existing_path(self):
        assert compose_destination("https://example.com/landing", "a@b.io") == "https://example.com/landing/a@b.io"


class TestResolutionService:
    """Test the resolve() pipeline"""

    def test_resolves_to_stored_destination(self, issuance_service, resolution_service):
        issued = issue(issuance_service)

        outcome = asyncio.run(resolution_service.resolve(issued.key, issued.token, {}, BROWSER_HEADERS))

        assert outcome.kind == OutcomeKind.REDIRECT
        assert outcome.url == "https://example.com"

    def test_appends_email(self, issuance_service, resolution_service):
        issued = issue(issuance_service)

        outcome = asyncio.run(resolution_service.resolve(
            issued.key, issued.token, {"email": "user@x.com"}, BROWSER_HEADERS
        ))

        assert outcome.kind == OutcomeKind.REDIRECT
        assert outcome.url == "https://example.com/user@x.com"

    def test_empty_email_is_ignored(self, issuance_service, resolution_service):
        issued = issue(issuance_service)

        outcome = asyncio.run(resolution_service.resolve(
            issued.key, issued.token, {"email": ""}, BROWSER_HEADERS
        ))

        assert outcome.url == "https://example.com"

    @pytest.mark.parametrize("email", ["not-an-email", "user@", "user@host", "us er@x.com", "@x.com"])
    def test_malformed_email_is_bad_request(self, issuance_service, resolution_service, email):
        issued = issue(issuance_service)

        outcome = asyncio.run(resolution_service.resolve(
            issued.key, issued.token, {"email": email}, BROWSER_HEADERS
        ))

        assert outcome.kind == OutcomeKind.BAD_REQUEST
        assert outcome.reason == "Invalid email format."

    def test_invalid_token_forbidden(self, issuance_service, resolution_service):
        issued = issue(issuance_service)

        outcome = asyncio.run(resolution_service.resolve(issued.key, "garbage", {}, BROWSER_HEADERS))

        assert outcome.kind == OutcomeKind.FORBIDDEN

    def test_token_for_other_key_forbidden(self, issuance_service, resolution_service):
        first = issue(issuance_service, "https://one.example.com")
        second = issue(issuance_service, "https://two.example.com")

        outcome = asyncio.run(resolution_service.resolve(first.key, second.token, {}, BROWSER_HEADERS))

        assert outcome.kind == OutcomeKind.FORBIDDEN

    def test_valid_but_unstored_token_forbidden(self, resolution_service, store, codec):
        # Correctly signed for this key, but not the token stored with the record
        asyncio.run(store.add(key="a1b2c3d4e5f6a7b8", destination="https://example.com", token="stored-token"))
        token = codec.sign("a1b2c3d4e5f6a7b8")

        outcome = asyncio.run(resolution_service.resolve("a1b2c3d4e5f6a7b8", token, {}, BROWSER_HEADERS))

        assert outcome.kind == OutcomeKind.FORBIDDEN

    def test_unknown_key_not_found(self, resolution_service, codec):
        token = codec.sign("ffffffffffffffff")

        outcome = asyncio.run(resolution_service.resolve("ffffffffffffffff", token, {}, BROWSER_HEADERS))

        assert outcome.kind == OutcomeKind.NOT_FOUND

    def test_bot_denied_without_store_lookup(self, issuance_service, resolution_service, store):
        issued = issue(issuance_service)

        outcome = asyncio.run(resolution_service.resolve(
            issued.key, issued.token, {}, {"user-agent": "Googlebot/2.1"}
        ))

        assert outcome.kind == OutcomeKind.FORBIDDEN
        assert store.lookups == 0

    def test_honeypot_denied_without_store_lookup(self, issuance_service, resolution_service, store):
        issued = issue(issuance_service)

        outcome = asyncio.run(resolution_service.resolve(
            issued.key, issued.token, {"hp_ref": ""}, BROWSER_HEADERS
        ))

        assert outcome.kind == OutcomeKind.FORBIDDEN
        assert store.lookups == 0

    def test_bot_check_runs_before_email_check(self, resolution_service):
        outcome = asyncio.run(resolution_service.resolve(
            "a1b2c3d4e5f6a7b8", "t", {"email": "bad"}, {"user-agent": "crawler"}
        ))

        assert outcome.kind == OutcomeKind.FORBIDDEN

    def test_resolution_is_idempotent(self, issuance_service, resolution_service):
        issued = issue(issuance_service)
        query = {"email": "user@x.com"}

        first = asyncio.run(resolution_service.resolve(issued.key, issued.token, query, BROWSER_HEADERS))
        second = asyncio.run(resolution_service.resolve(issued.key, issued.token, query, BROWSER_HEADERS))

        assert first == second

    def test_update_is_reflected_and_token_kept(self, issuance_service, resolution_service, store):
        issued = issue(issuance_service)

        updated = asyncio.run(store.update_destination(issued.key, "https://new.example.com/"))
        outcome = asyncio.run(resolution_service.resolve(issued.key, issued.token, {}, BROWSER_HEADERS))

        assert updated.token == issued.token
        assert outcome.url == "https://new.example.com/"

    def test_deleted_key_not_found(self, issuance_service, resolution_service, store):
        issued = issue(issuance_service)

        asyncio.run(store.delete(issued.key))
        outcome = asyncio.run(resolution_service.resolve(issued.key, issued.token, {}, BROWSER_HEADERS))

        assert outcome.kind == OutcomeKind.NOT_FOUND

    def test_challenge_mode(self, issuance_service, store, codec, gate):
        service = ResolutionService(store=store, codec=codec, gate=gate, challenge_mode=True)
        issued = issue(issuance_service)

        outcome = asyncio.run(service.resolve(issued.key, issued.token, {"email": "user@x.com"}, BROWSER_HEADERS))

        assert outcome.kind == OutcomeKind.CHALLENGE
        assert outcome.url == "https://example.com/user@x.com"


class TestSlugResolution:
    """Test resolve_slug()"""

    def test_resolves_by_slug(self, issuance_service, resolution_service):
        issued = issue(issuance_service, "https://example.com/docs", slug="spring-sale")

        outcome = asyncio.run(resolution_service.resolve_slug("spring-sale", issued.token, {}, BROWSER_HEADERS))

        assert outcome.kind == OutcomeKind.REDIRECT
        assert outcome.url == "https://example.com/docs"

    def test_slug_with_foreign_token_forbidden(self, issuance_service, resolution_service):
        issue(issuance_service, slug="spring-sale")
        other = issue(issuance_service)

        outcome = asyncio.run(resolution_service.resolve_slug("spring-sale", other.token, {}, BROWSER_HEADERS))

        assert outcome.kind == OutcomeKind.FORBIDDEN

    def test_unknown_slug_not_found(self, issuance_service, resolution_service):
        issued = issue(issuance_service)

        outcome = asyncio.run(resolution_service.resolve_slug("no-such-slug", issued.token, {}, BROWSER_HEADERS))

        assert outcome.kind == OutcomeKind.NOT_FOUND
