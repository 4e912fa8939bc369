"""Resolve probe evidence into an up/down verdict.

The rules form an ordered decision table. Each row is evaluated against
the first HTTP answer in the evidence and the first matching row wins:

    edge-protection > known-platform > parked > status-code rows

Reachability for a human visitor outranks HTTP correctness, so block
pages and auth walls count as "up". When no HTTP answer was obtained at
all, the transport failures and the optional DNS lookup decide.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Callable, NamedTuple, Optional, Sequence, Tuple
from urllib.parse import urlsplit

from bs4 import BeautifulSoup

from models import (
    DEFAULT_SIGNATURES,
    DnsResolved,
    Evidence,
    HttpResult,
    Signatures,
    TransportFailure,
    TransportKind,
    Verdict,
)

__all__ = [
    "Rule",
    "RULES",
    "classify",
    "normalize_text",
    "extract_visible_text",
    "has_protection_signature",
    "is_blocking_platform",
    "is_parked",
]

_WHITESPACE_RE = re.compile(r"\s+")

RulePredicate = Callable[[HttpResult, str, Signatures], bool]


class Rule(NamedTuple):
    name: str
    matches: RulePredicate
    is_up: bool
    reason: str


def normalize_text(text: str) -> str:
    """Lowercase input text and append an ASCII-folded variant."""
    lowered = _WHITESPACE_RE.sub(" ", text.lower())
    ascii_folded = (
        unicodedata.normalize("NFKD", lowered)
        .encode("ascii", "ignore")
        .decode("ascii")
    )
    return lowered + "\n" + ascii_folded


def extract_visible_text(html: str) -> str:
    """Strip non-visual tags from HTML and return normalized text."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()
    text = soup.get_text(separator=" ", strip=True)
    return normalize_text(text)


def _contains_any(haystack: str, needles: Sequence[str]) -> bool:
    return any(needle.lower() in haystack for needle in needles)


def has_protection_signature(result: HttpResult, target: str, signatures: Signatures) -> bool:
    """Anti-bot edges (Cloudflare, Sucuri, ...) answer for a healthy origin."""
    del target
    headers = result.headers
    if any(name.lower() in headers for name in signatures.protection_header_names):
        return True
    for name in signatures.protection_value_headers:
        value = headers.get(name.lower())
        if value and _contains_any(value.lower(), signatures.protection_header_values):
            return True
    return _contains_any(result.body.lower(), signatures.protection_body)


def _host_matches(host: str, domain: str) -> bool:
    domain = domain.lower()
    return host == domain or host.endswith("." + domain)


def is_blocking_platform(result: HttpResult, target: str, signatures: Signatures) -> bool:
    if result.status_code not in signatures.blocking_statuses:
        return False
    host = target.lower()
    return any(_host_matches(host, platform) for platform in signatures.blocking_platforms)


def _url_has_parked_signature(final_url: str, signatures: Signatures) -> bool:
    url = final_url.lower()
    host = (urlsplit(url).hostname or "").lower()
    for signature in signatures.parked_url:
        sig = signature.lower()
        # Bare registrar domains must match on the host ("dan.com" is not "jordan.com").
        if "/" not in sig and "." in sig:
            if _host_matches(host, sig):
                return True
        elif sig in url:
            return True
    return False


def is_parked(result: HttpResult, target: str, signatures: Signatures) -> bool:
    """Small page on a parking/for-sale template.

    Large sites can mention "domain" and "sale" incidentally, so only pages
    under the size threshold qualify.
    """
    del target
    size = max(result.body_length, len(result.body))
    if size >= signatures.parked_size_threshold:
        return False
    if result.final_url and _url_has_parked_signature(result.final_url, signatures):
        return True
    if not result.body:
        return False
    if _contains_any(result.body.lower(), signatures.parked_body):
        return True
    return _contains_any(extract_visible_text(result.body), signatures.parked_body)


def _status_between(low: int, high: int) -> RulePredicate:
    return lambda result, target, signatures: low <= result.status_code < high


def _status_in(*codes: int) -> RulePredicate:
    return lambda result, target, signatures: result.status_code in codes


RULES: Tuple[Rule, ...] = (
    Rule("edge-protection", has_protection_signature, True, "protected by edge/CDN"),
    Rule("known-platform", is_blocking_platform, True, "anti-bot block on known-live platform"),
    Rule("parked", is_parked, False, "parked domain"),
    Rule("success", _status_between(200, 400), True, "site responded"),
    Rule("auth-required", _status_in(401, 403), True, "requires authentication"),
    Rule("not-found", _status_in(404), True, "page not found but server responsive"),
    Rule("client-error", _status_between(400, 500), True, "client error, server responsive"),
    Rule("server-error", _status_between(500, 600), False, "server error"),
    Rule("responded", lambda result, target, signatures: True, True, "server responded"),
)


def _classify_without_response(evidence: Sequence[Evidence]) -> Verdict:
    if any(isinstance(item, DnsResolved) for item in evidence):
        return Verdict(True, "domain resolves, origin unreachable but presumed protected", "dns-fallback")
    failures = [item for item in evidence if isinstance(item, TransportFailure)]
    if not failures:
        return Verdict(False, "unable to connect", "no-evidence")
    last = failures[-1]
    if last.kind == TransportKind.DNS_NOT_FOUND:
        return Verdict(False, "dns resolution failed", "transport-failure")
    return Verdict(False, last.kind, "transport-failure")


def classify(
    evidence: Sequence[Evidence],
    target: str,
    signatures: Signatures = DEFAULT_SIGNATURES,
    rules: Sequence[Rule] = RULES,
) -> Verdict:
    """Return the verdict for ``evidence`` gathered about ``target``.

    Pure function: no network access, no clock.
    """
    response: Optional[HttpResult] = next(
        (item for item in evidence if isinstance(item, HttpResult)), None
    )
    if response is None:
        return _classify_without_response(evidence)
    for rule in rules:
        if rule.matches(response, target, signatures):
            return Verdict(rule.is_up, rule.reason, rule.name)
    return Verdict(True, "server responded", "responded")
