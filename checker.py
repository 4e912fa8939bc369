"""Entry points that glue normalizer, prober and classifier together."""

from __future__ import annotations

import csv
import datetime
import io
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from classifier import classify
from constants import DEFAULT_WORKERS
from exceptions import InvalidInputError
from models import (
    DEFAULT_SIGNATURES,
    CheckResult,
    Evidence,
    HttpResult,
    ProbeConfig,
    Signatures,
    TransportFailure,
    Verdict,
)
from normalizer import normalize
from prober import probe
from strategies import FetchStrategy

__all__ = [
    "classify_target",
    "check_domain",
    "check_domains",
    "read_domains",
    "to_csv_bytes",
]

logger = logging.getLogger(__name__)

_UNREACHABLE = Verdict(False, "unable to connect", "internal-error")


def _evaluate(
    target: str,
    config: Optional[ProbeConfig],
    strategies: Optional[Sequence[FetchStrategy]],
    signatures: Signatures,
) -> Tuple[Verdict, List[Evidence]]:
    try:
        evidence = probe(target, config, strategies)
        verdict = classify(evidence, target, signatures)
    except Exception:  # pylint: disable=broad-except
        logger.exception("Unexpected failure while checking %s", target)
        return _UNREACHABLE, []
    logger.info("%s is %s (%s)", target, "up" if verdict.is_up else "down", verdict.reason)
    return verdict, evidence


def classify_target(
    target: str,
    config: Optional[ProbeConfig] = None,
    strategies: Optional[Sequence[FetchStrategy]] = None,
    signatures: Signatures = DEFAULT_SIGNATURES,
) -> Verdict:
    """Probe ``target`` and classify the evidence; never raises."""
    verdict, _ = _evaluate(target, config, strategies, signatures)
    return verdict


def _now() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat(timespec="seconds")


def check_domain(
    raw: str,
    config: Optional[ProbeConfig] = None,
    strategies: Optional[Sequence[FetchStrategy]] = None,
    signatures: Signatures = DEFAULT_SIGNATURES,
) -> CheckResult:
    """Normalize ``raw``, check it and report the outcome.

    Raises ``InvalidInputError`` when ``raw`` is not a usable domain.
    """
    target = normalize(raw)
    verdict, evidence = _evaluate(target, config, strategies, signatures)
    response = next((item for item in evidence if isinstance(item, HttpResult)), None)
    failure = next((item for item in evidence if isinstance(item, TransportFailure)), None)
    return {
        "url": target,
        "is_up": verdict.is_up,
        "reason": verdict.reason,
        "http_status": response.status_code if response else None,
        "final_url": response.final_url if response else None,
        "error": failure.kind if failure and response is None else None,
        "checked_at": _now(),
    }


def _invalid_result(raw: str) -> CheckResult:
    return {
        "url": raw.strip(),
        "is_up": False,
        "reason": "invalid domain",
        "http_status": None,
        "final_url": None,
        "error": "invalid-input",
        "checked_at": _now(),
    }


def check_domains(
    raws: Sequence[str],
    config: Optional[ProbeConfig] = None,
    max_workers: int = DEFAULT_WORKERS,
    strategies: Optional[Sequence[FetchStrategy]] = None,
) -> List[CheckResult]:
    """Check independent domains concurrently, keeping input order."""
    if not raws:
        return []

    def _check_one(raw: str) -> CheckResult:
        try:
            return check_domain(raw, config, strategies)
        except InvalidInputError as exc:
            logger.info("Skipping %r: %s", raw, exc.reason)
            return _invalid_result(raw)

    logger.info("Checking %d domains (workers=%d)", len(raws), max_workers)
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
        return list(executor.map(_check_one, raws))


def read_domains(input_path: Path) -> List[str]:
    """Load domains from a text file, one per line."""
    if not input_path.exists():
        return []
    lines = input_path.read_text(encoding="utf-8").splitlines()
    return [ln.strip() for ln in lines if ln.strip() and not ln.strip().startswith("#")]


def to_csv_bytes(rows: Iterable[CheckResult]) -> bytes:
    """Serialize check results into CSV and return the encoded bytes."""
    output = io.StringIO()
    fieldnames = [
        "url",
        "is_up",
        "reason",
        "http_status",
        "final_url",
        "error",
        "checked_at",
    ]
    writer = csv.DictWriter(output, fieldnames=fieldnames)
    writer.writeheader()
    for r in rows:
        row: Dict[str, Any] = dict(r)
        writer.writerow(row)
    return output.getvalue().encode("utf-8")
