"""Shared configuration constants for the application."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Tuple

DEFAULT_TIMEOUT = 10
DEFAULT_MAX_REDIRECTS = 5
DEFAULT_PROTOCOLS: Tuple[str, ...] = ("https", "http")
DEFAULT_MAX_BODY_BYTES = 256 * 1024
DEFAULT_CONNECT_RETRIES = 0
DEFAULT_MAX_CONCURRENT = 8
DEFAULT_ACQUIRE_TIMEOUT = 5.0
DEFAULT_WORKERS = 8
DOMAINS_FILE = Path("domains.txt")

MIN_HOSTNAME_LENGTH = 3
MAX_HOSTNAME_LENGTH = 253

# Parked pages are small templated documents.
PARKED_SIZE_THRESHOLD = 64 * 1024

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/121.0.0.0 Safari/537.36"
)

DEFAULT_HEADERS: Dict[str, str] = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Referer": "https://www.google.com/",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}

PARKED_URL_SIGNATURES: Tuple[str, ...] = (
    "sedo.com",
    "sedoparking",
    "dan.com",
    "afternic.com",
    "hugedomains.com",
    "parkingcrew",
    "bodis.com",
    "above.com",
    "domainmarket.com",
    "uniregistry",
    "parklogic",
    "godaddy.com/domainsearch",
    "/lander",
)

PARKED_BODY_SIGNATURES: Tuple[str, ...] = (
    "domain is for sale",
    "domain for sale",
    "buy this domain",
    "this domain may be for sale",
    "domain parking",
    "parked domain",
    "parked free",
    "sedoparking",
    "parkingcrew",
    "bodis.com",
    "hugedomains",
    "afternic",
    "domain has expired",
    "renew this domain",
)

PROTECTION_HEADER_NAMES: Tuple[str, ...] = (
    "cf-ray",
    "cf-cache-status",
    "cf-mitigated",
    "x-sucuri-id",
    "x-iinfo",
    "x-datadome",
    "x-akamai-transformed",
)

# Only these headers name the serving layer; CSP and link headers do not.
PROTECTION_VALUE_HEADERS: Tuple[str, ...] = (
    "server",
    "via",
    "x-cdn",
    "x-served-by",
    "x-cache",
)

PROTECTION_HEADER_VALUES: Tuple[str, ...] = (
    "cloudflare",
    "akamai",
    "sucuri",
    "incapsula",
    "imperva",
    "ddos-guard",
    "datadome",
    "stackpath",
)

# Challenge and block page markers, never bare vendor names.
PROTECTION_BODY_SIGNATURES: Tuple[str, ...] = (
    "cf-browser-verification",
    "cf-challenge",
    "checking your browser",
    "just a moment...",
    "attention required! | cloudflare",
    "ddos protection by",
    "sucuri website firewall",
    "incapsula incident id",
    "access denied | imperva",
    "captcha-delivery.com",
)

KNOWN_BLOCKING_PLATFORMS: Tuple[str, ...] = (
    "twitter.com",
    "x.com",
    "facebook.com",
    "instagram.com",
    "linkedin.com",
    "tiktok.com",
    "reddit.com",
    "pinterest.com",
    "quora.com",
    "medium.com",
    "youtube.com",
    "amazon.com",
    "craigslist.org",
    "glassdoor.com",
    "indeed.com",
    "zillow.com",
)

BLOCKING_STATUSES: Tuple[int, ...] = (401, 403, 429)

_EXPORTED_NAMES = (
    "DEFAULT_TIMEOUT",
    "DEFAULT_MAX_REDIRECTS",
    "DEFAULT_PROTOCOLS",
    "DEFAULT_MAX_BODY_BYTES",
    "DEFAULT_CONNECT_RETRIES",
    "DEFAULT_MAX_CONCURRENT",
    "DEFAULT_ACQUIRE_TIMEOUT",
    "DEFAULT_WORKERS",
    "DOMAINS_FILE",
    "MIN_HOSTNAME_LENGTH",
    "MAX_HOSTNAME_LENGTH",
    "PARKED_SIZE_THRESHOLD",
    "USER_AGENT",
    "DEFAULT_HEADERS",
    "PARKED_URL_SIGNATURES",
    "PARKED_BODY_SIGNATURES",
    "PROTECTION_HEADER_NAMES",
    "PROTECTION_VALUE_HEADERS",
    "PROTECTION_HEADER_VALUES",
    "PROTECTION_BODY_SIGNATURES",
    "KNOWN_BLOCKING_PLATFORMS",
    "BLOCKING_STATUSES",
)

__all__ = [name for name in _EXPORTED_NAMES if name in globals()]
