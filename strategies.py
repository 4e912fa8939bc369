"""Fetch strategies: interchangeable ways of turning a URL into evidence."""

from __future__ import annotations

import logging
import socket
import ssl
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Protocol, Tuple

import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.exceptions import InsecureRequestWarning, NameResolutionError
from urllib3.util.retry import Retry

from exceptions import CapacityExceededError
from models import Evidence, HttpResult, ProbeConfig, TransportFailure, TransportKind, lowercase_headers
from resources import ResourcePool

__all__ = [
    "FetchStrategy",
    "RequestsStrategy",
    "RenderStrategy",
    "DEFAULT_STRATEGIES",
    "build_session",
    "classify_transport_error",
]

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 16 * 1024

_DNS_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "failed to resolve",
    "no address associated",
    "temporary failure in name resolution",
)
_REFUSED_MARKERS = ("connection refused", "actively refused")
_RESET_MARKERS = ("connection reset", "connection aborted", "remotedisconnected", "remote end closed")


class FetchStrategy(Protocol):
    name: str

    def attempt(self, url: str, config: ProbeConfig) -> Evidence:
        ...


def build_session(config: ProbeConfig) -> requests.Session:
    """Create a `requests.Session` configured for one fetch attempt."""
    session = requests.Session()
    retry = Retry(
        total=config.connect_retries,
        connect=config.connect_retries,
        read=0,
        status=0,
        backoff_factor=0.3,
        allowed_methods=frozenset(["GET", "HEAD"]),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update(dict(config.headers))
    session.max_redirects = config.max_redirects
    session.verify = config.verify_tls
    if not config.verify_tls:
        urllib3.disable_warnings(InsecureRequestWarning)
    return session


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield ``exc`` and every exception reachable through causes and args."""
    pending: List[BaseException] = [exc]
    seen = set()
    while pending:
        current = pending.pop(0)
        if id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        for linked in (current.__cause__, current.__context__, getattr(current, "reason", None)):
            if isinstance(linked, BaseException):
                pending.append(linked)
        for arg in getattr(current, "args", ()):
            if isinstance(arg, BaseException):
                pending.append(arg)


def classify_transport_error(exc: BaseException) -> str:
    """Map a low-level exception onto a `TransportKind`."""
    if isinstance(exc, requests.exceptions.SSLError):
        return TransportKind.TLS_ERROR
    if isinstance(exc, requests.exceptions.Timeout):
        return TransportKind.TIMEOUT
    for cause in _exception_chain(exc):
        if isinstance(cause, (socket.gaierror, NameResolutionError)):
            return TransportKind.DNS_NOT_FOUND
        if isinstance(cause, ConnectionRefusedError):
            return TransportKind.CONNECTION_REFUSED
        if isinstance(cause, ConnectionResetError):
            return TransportKind.CONNECTION_RESET
        if isinstance(cause, ssl.SSLError):
            return TransportKind.TLS_ERROR
        if isinstance(cause, (socket.timeout, TimeoutError)):
            return TransportKind.TIMEOUT
    text = str(exc).lower()
    if any(marker in text for marker in _DNS_MARKERS):
        return TransportKind.DNS_NOT_FOUND
    if any(marker in text for marker in _REFUSED_MARKERS):
        return TransportKind.CONNECTION_REFUSED
    if any(marker in text for marker in _RESET_MARKERS):
        return TransportKind.CONNECTION_RESET
    return TransportKind.OTHER


def _decode(body: bytes, encoding: Optional[str]) -> str:
    try:
        return body.decode(encoding or "utf-8", errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")


def _read_body(resp: requests.Response, deadline: float, limit: int) -> Tuple[bytes, bool]:
    """Stream at most ``limit`` bytes; the flag is True once the deadline passed."""
    chunks: List[bytes] = []
    size = 0
    try:
        for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE):
            if time.monotonic() > deadline:
                return b"".join(chunks), True
            if not chunk:
                continue
            chunks.append(chunk)
            size += len(chunk)
            if size >= limit:
                break
    except (
        requests.exceptions.ContentDecodingError,
        requests.exceptions.ChunkedEncodingError,
        requests.exceptions.ConnectionError,
    ) as exc:
        # Keep whatever arrived before the stream broke.
        logger.debug("Partial body from %s (%d bytes): %s", resp.url, size, exc)
    return b"".join(chunks)[:limit], False


def _abort(resp: Optional[requests.Response]) -> None:
    """Shut down the socket under ``resp`` so a blocked read returns at once."""
    if resp is None:
        return
    connection = getattr(getattr(resp, "raw", None), "connection", None)
    sock = getattr(connection, "sock", None)
    if sock is not None:
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as exc:
            logger.debug("Socket for %s already closed: %s", resp.url, exc)
    resp.close()


class RequestsStrategy:
    """Plain HTTP(S) fetch through `requests`, the default strategy.

    One attempt (HEAD and/or GET, redirects, body) shares a single
    deadline of ``config.timeout`` seconds. The request runs on a worker
    thread; when the deadline passes the caller gets a timeout failure and
    the response socket is shut down under the worker.
    """

    name = "requests"

    def __init__(self, session_factory: Optional[Callable[[ProbeConfig], requests.Session]] = None) -> None:
        self._session_factory = session_factory

    def attempt(self, url: str, config: ProbeConfig) -> Evidence:
        deadline = time.monotonic() + config.timeout
        factory = self._session_factory or build_session
        session = factory(config)
        try:
            if config.head_first:
                evidence = self._fetch(session, "HEAD", url, config, deadline)
                if isinstance(evidence, HttpResult) and evidence.status_code < 400:
                    return evidence
                if isinstance(evidence, TransportFailure) and evidence.kind == TransportKind.TIMEOUT:
                    return evidence
                logger.debug("HEAD %s not conclusive, retrying with GET", url)
            return self._fetch(session, "GET", url, config, deadline)
        finally:
            session.close()

    def _fetch(
        self, session: requests.Session, method: str, url: str, config: ProbeConfig, deadline: float
    ) -> Evidence:
        remaining = max(0.0, deadline - time.monotonic())
        if remaining <= 0:
            return TransportFailure(kind=TransportKind.TIMEOUT, url=url, detail="deadline exceeded before request")
        inflight: Dict[str, requests.Response] = {}
        executor = ThreadPoolExecutor(max_workers=1)
        try:
            future = executor.submit(self._fetch_blocking, session, method, url, config, deadline, remaining, inflight)
            try:
                return future.result(timeout=remaining)
            except FutureTimeout:
                _abort(inflight.get("response"))
                logger.debug("%s %s aborted after %.1fs", method, url, config.timeout)
                return TransportFailure(
                    kind=TransportKind.TIMEOUT, url=url, detail=f"no complete answer within {config.timeout}s"
                )
        finally:
            executor.shutdown(wait=False)

    def _fetch_blocking(
        self,
        session: requests.Session,
        method: str,
        url: str,
        config: ProbeConfig,
        deadline: float,
        remaining: float,
        inflight: Dict[str, requests.Response],
    ) -> Evidence:
        try:
            resp = session.request(
                method,
                url,
                timeout=(remaining, remaining),
                allow_redirects=True,
                stream=True,
            )
        except requests.exceptions.TooManyRedirects as exc:
            return self._salvage_redirect(exc, url, method)
        except requests.exceptions.RequestException as exc:
            kind = classify_transport_error(exc)
            logger.debug("%s %s failed (%s): %s", method, url, kind, exc)
            return TransportFailure(kind=kind, url=url, detail=str(exc))
        inflight["response"] = resp

        # Closing an unconsumed streamed response drops the socket.
        try:
            if resp.status_code >= 600:
                return TransportFailure(
                    kind=TransportKind.OTHER, url=url, detail=f"invalid status {resp.status_code}"
                )
            body = b""
            if method != "HEAD":
                body, timed_out = _read_body(resp, deadline, config.max_body_bytes)
                if timed_out:
                    logger.debug("%s %s exceeded %.1fs while reading body", method, url, config.timeout)
                    return TransportFailure(
                        kind=TransportKind.TIMEOUT, url=url, detail="deadline exceeded while reading body"
                    )
            logger.debug("%s %s -> %s (%s)", method, url, resp.status_code, resp.url)
            return HttpResult(
                status_code=resp.status_code,
                headers=lowercase_headers(resp.headers),
                body=_decode(body, resp.encoding),
                final_url=str(resp.url),
                body_length=len(body),
                method=method,
            )
        finally:
            resp.close()

    @staticmethod
    def _salvage_redirect(exc: requests.exceptions.TooManyRedirects, url: str, method: str) -> Evidence:
        resp = exc.response
        if resp is None:
            return TransportFailure(kind=TransportKind.OTHER, url=url, detail=str(exc))
        logger.debug("%s %s: redirect limit reached at %s", method, url, resp.url)
        try:
            return HttpResult(
                status_code=resp.status_code,
                headers=lowercase_headers(resp.headers),
                body="",
                final_url=str(resp.url),
                method=method,
            )
        finally:
            resp.close()


Renderer = Callable[[str, ProbeConfig], Tuple[int, Mapping[str, str], str, str]]


class RenderStrategy:
    """Fetch through an external renderer (e.g. a headless browser).

    ``renderer(url, config)`` returns ``(status, headers, body, final_url)``.
    Renderers are expensive, so every call holds a slot of ``pool``.
    """

    name = "render"

    def __init__(self, renderer: Renderer, pool: ResourcePool) -> None:
        self._renderer = renderer
        self._pool = pool

    def attempt(self, url: str, config: ProbeConfig) -> Evidence:
        try:
            with self._pool.slot():
                status, headers, body, final_url = self._renderer(url, config)
        except CapacityExceededError as exc:
            return TransportFailure(kind=TransportKind.OTHER, url=url, detail=exc.message)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Renderer failed for %s: %s", url, exc)
            return TransportFailure(kind=classify_transport_error(exc), url=url, detail=str(exc))
        if not 0 < status < 600:
            return TransportFailure(kind=TransportKind.OTHER, url=url, detail=f"invalid status {status}")
        return HttpResult(
            status_code=status,
            headers=lowercase_headers(headers),
            body=body or "",
            final_url=final_url or url,
            body_length=len((body or "").encode("utf-8")),
            method="RENDER",
        )


DEFAULT_STRATEGIES: Tuple[FetchStrategy, ...] = (RequestsStrategy(),)
