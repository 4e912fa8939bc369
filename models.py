"""Data structures used across the application."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple, TypedDict, Union

from constants import (
    BLOCKING_STATUSES,
    DEFAULT_CONNECT_RETRIES,
    DEFAULT_HEADERS,
    DEFAULT_MAX_BODY_BYTES,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_PROTOCOLS,
    DEFAULT_TIMEOUT,
    KNOWN_BLOCKING_PLATFORMS,
    PARKED_BODY_SIGNATURES,
    PARKED_SIZE_THRESHOLD,
    PARKED_URL_SIGNATURES,
    PROTECTION_BODY_SIGNATURES,
    PROTECTION_HEADER_NAMES,
    PROTECTION_HEADER_VALUES,
    PROTECTION_VALUE_HEADERS,
)


class TransportKind:
    """Categories of transport-level failures."""

    TIMEOUT = "timeout"
    DNS_NOT_FOUND = "dns-not-found"
    CONNECTION_REFUSED = "connection-refused"
    CONNECTION_RESET = "connection-reset"
    TLS_ERROR = "tls-error"
    OTHER = "other"


def env_int(name: str, default: int) -> int:
    """Integer from the environment; unset, blank or garbage gives ``default``."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ProbeConfig:
    """Network policy applied to every probe attempt.

    ``verify_tls`` is off by default: expired or self-signed certificates
    must not make a live site look down.
    """

    timeout: float = DEFAULT_TIMEOUT
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    verify_tls: bool = False
    headers: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_HEADERS))
    protocols: Tuple[str, ...] = DEFAULT_PROTOCOLS
    dns_fallback: bool = True
    head_first: bool = False
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    connect_retries: int = DEFAULT_CONNECT_RETRIES

    @classmethod
    def from_env(cls) -> "ProbeConfig":
        """Build a config from ``SITECHECK_*`` environment variables."""
        protocols_raw = os.getenv("SITECHECK_PROTOCOLS", "")
        protocols = tuple(
            p.strip().lower() for p in protocols_raw.split(",") if p.strip().lower() in ("http", "https")
        )
        return cls(
            timeout=env_float("SITECHECK_TIMEOUT", DEFAULT_TIMEOUT),
            max_redirects=env_int("SITECHECK_MAX_REDIRECTS", DEFAULT_MAX_REDIRECTS),
            verify_tls=env_bool("SITECHECK_VERIFY_TLS", False),
            protocols=protocols or DEFAULT_PROTOCOLS,
            dns_fallback=env_bool("SITECHECK_DNS_FALLBACK", True),
            head_first=env_bool("SITECHECK_HEAD_FIRST", False),
        )


@dataclass(frozen=True)
class HttpResult:
    """Any HTTP answer below 600, whatever the status class."""

    status_code: int
    headers: Mapping[str, str]
    body: str
    final_url: str
    body_length: int = 0
    method: str = "GET"


@dataclass(frozen=True)
class TransportFailure:
    """A probe that never produced an HTTP answer."""

    kind: str
    url: Optional[str] = None
    detail: Optional[str] = None


@dataclass(frozen=True)
class DnsResolved:
    """The hostname resolved even though no HTTP answer was obtained."""

    hostname: str
    addresses: Tuple[str, ...] = ()


Evidence = Union[HttpResult, TransportFailure, DnsResolved]


@dataclass(frozen=True)
class Verdict:
    is_up: bool
    reason: str
    rule: str = ""


@dataclass(frozen=True)
class Signatures:
    """Static heuristics consulted by the classifier."""

    parked_url: Tuple[str, ...] = PARKED_URL_SIGNATURES
    parked_body: Tuple[str, ...] = PARKED_BODY_SIGNATURES
    parked_size_threshold: int = PARKED_SIZE_THRESHOLD
    protection_header_names: Tuple[str, ...] = PROTECTION_HEADER_NAMES
    protection_value_headers: Tuple[str, ...] = PROTECTION_VALUE_HEADERS
    protection_header_values: Tuple[str, ...] = PROTECTION_HEADER_VALUES
    protection_body: Tuple[str, ...] = PROTECTION_BODY_SIGNATURES
    blocking_platforms: Tuple[str, ...] = KNOWN_BLOCKING_PLATFORMS
    blocking_statuses: Tuple[int, ...] = BLOCKING_STATUSES


DEFAULT_SIGNATURES = Signatures()


class CheckResult(TypedDict):
    """Structured result returned after checking a single domain."""

    url: str
    is_up: bool
    reason: Optional[str]
    http_status: Optional[int]
    final_url: Optional[str]
    error: Optional[str]
    checked_at: str


def lowercase_headers(headers: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Return a plain dict keyed by lowercased header names."""
    if not headers:
        return {}
    return {str(k).lower(): str(v) for k, v in headers.items()}


__all__ = [
    "TransportKind",
    "ProbeConfig",
    "HttpResult",
    "TransportFailure",
    "DnsResolved",
    "Evidence",
    "Verdict",
    "Signatures",
    "DEFAULT_SIGNATURES",
    "CheckResult",
    "lowercase_headers",
    "env_int",
    "env_float",
    "env_bool",
]
