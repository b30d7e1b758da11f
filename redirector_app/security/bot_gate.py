"""
Bot gate: decides whether an inbound redirect request looks automated.

Rules are evaluated in order and the first match denies the request.
Adding a heuristic means adding a row to the rule table, not a new branch
in the route handler.

The denial reason is for server-side logs only. Callers always get the same
generic "Access denied." so the gate cannot be used as an oracle.
"""

from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional

import structlog

logger = structlog.get_logger(__name__)


# Crawlers, link-preview fetchers and headless browsers
USER_AGENT_DENYLIST = (
    "bot",
    "crawl",
    "spider",
    "preview",
    "headless",
    "slurp",
    "phantomjs",
    "facebookexternalhit",
    "facebookcatalog",
    "whatsapp",
    "telegram",
    "discord",
    "embedly",
    "vkshare",
    "pinterest",
    "skypeuripreview",
    "bitlybot",
    "outbrain",
)

# Headers injected by common browser automation setups
AUTOMATION_HEADERS = frozenset({
    "x-puppeteer-request",
    "x-selenium",
    "x-webdriver",
    "x-playwright",
    "x-automation",
    "x-headless",
})

CLIENT_HINT_HEADER = "sec-ch-ua"
HEADLESS_CLIENT_HINT = "headlesschrome"


@dataclass(frozen=True)
class Verdict:
    """Result of classifying a request"""
    allowed: bool
    reason: Optional[str] = None


ALLOW = Verdict(allowed=True)


@dataclass(frozen=True)
class Rule:
    """A named deny condition over (headers, query_params)"""
    name: str
    matches: Callable[[Mapping[str, str], Mapping[str, str]], bool]


def _user_agent_denylisted(headers, query_params) -> bool:
    user_agent = headers.get("user-agent", "").lower()
    return any(pattern in user_agent for pattern in USER_AGENT_DENYLIST)


def _automation_header_present(headers, query_params) -> bool:
    return any(name in AUTOMATION_HEADERS for name in headers)


def _headless_client_hint(headers, query_params) -> bool:
    return HEADLESS_CLIENT_HINT in headers.get(CLIENT_HINT_HEADER, "").lower()


class BotGate:
    """
    Ordered, data-driven request classifier.

    Process-wide and immutable after construction: the rule table and the
    honeypot parameter name are fixed at startup.
    """

    def __init__(self, honeypot_param: str = "hp_ref"):
        self.honeypot_param = honeypot_param
        self.rules: List[Rule] = [
            Rule("user_agent_denylist", _user_agent_denylisted),
            Rule("automation_header", _automation_header_present),
            Rule("headless_client_hint", _headless_client_hint),
            Rule("honeypot_param", self._honeypot_present),
        ]

    def _honeypot_present(self, headers, query_params) -> bool:
        # Any value counts, including an empty one
        return self.honeypot_param in query_params

    def classify(
        self,
        headers: Mapping[str, str],
        query_params: Mapping[str, str],
    ) -> Verdict:
        """
        Classify a request as automated (denied) or human (allowed).

        Args:
            headers: Request headers (any casing)
            query_params: Request query parameters

        Returns:
            ALLOW, or a denied Verdict naming the first matching rule
        """
        normalized = {name.lower(): value for name, value in headers.items()}

        for rule in self.rules:
            if rule.matches(normalized, query_params):
                logger.info(
                    "bot_gate_denied",
                    rule=rule.name,
                    user_agent=normalized.get("user-agent", ""),
                )
                return Verdict(allowed=False, reason=rule.name)

        return ALLOW
