"""Probe a hostname over each configured protocol and collect evidence."""

from __future__ import annotations

import logging
import socket
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import List, Optional, Sequence, Tuple

from models import DnsResolved, Evidence, HttpResult, ProbeConfig, TransportFailure, TransportKind
from normalizer import build_url
from strategies import DEFAULT_STRATEGIES, FetchStrategy

__all__ = ["probe", "resolve_host"]

logger = logging.getLogger(__name__)


def resolve_host(hostname: str) -> Tuple[str, ...]:
    """Return the addresses ``hostname`` resolves to; raises ``OSError`` on failure."""
    infos = socket.getaddrinfo(hostname, None)
    return tuple(sorted({str(info[4][0]) for info in infos}))


def _dns_check(target: str, timeout: float) -> Evidence:
    # getaddrinfo has no timeout of its own; a stuck lookup is left behind.
    executor = ThreadPoolExecutor(max_workers=1)
    try:
        addresses = executor.submit(resolve_host, target).result(timeout=timeout)
    except FutureTimeout:
        logger.debug("DNS lookup for %s gave no answer within %.1fs", target, timeout)
        return TransportFailure(kind=TransportKind.TIMEOUT, detail="dns lookup timed out")
    except (OSError, UnicodeError) as exc:
        logger.debug("DNS lookup for %s failed: %s", target, exc)
        return TransportFailure(kind=TransportKind.DNS_NOT_FOUND, detail=str(exc))
    finally:
        executor.shutdown(wait=False)
    if not addresses:
        return TransportFailure(kind=TransportKind.DNS_NOT_FOUND, detail="no addresses")
    return DnsResolved(hostname=target, addresses=addresses)


def probe(
    target: str,
    config: Optional[ProbeConfig] = None,
    strategies: Optional[Sequence[FetchStrategy]] = None,
) -> List[Evidence]:
    """Fetch ``target`` until some strategy gets an HTTP answer.

    Protocols are tried in order (HTTPS then HTTP by default) and, within a
    protocol, each strategy in turn. The first ``HttpResult`` ends probing.
    When everything failed at transport level and ``config.dns_fallback``
    is set, a DNS-only lookup is appended as the last piece of evidence.
    """
    config = config or ProbeConfig()
    strategies = DEFAULT_STRATEGIES if strategies is None else strategies
    evidence: List[Evidence] = []
    for protocol in config.protocols:
        url = build_url(target, protocol)
        for strategy in strategies:
            outcome = strategy.attempt(url, config)
            evidence.append(outcome)
            if isinstance(outcome, HttpResult):
                return evidence
            logger.debug("%s via %s: %s", url, strategy.name, getattr(outcome, "kind", outcome))
    if config.dns_fallback:
        evidence.append(_dns_check(target, config.timeout))
    return evidence
