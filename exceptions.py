"""Exceptions surfaced to callers of the checker.

Transport problems are never raised; they become evidence. Only input
validation and boundary capacity are reported as exceptions.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class SiteCheckError(Exception):
    """Base exception carrying a machine-readable code and HTTP status."""

    error_code: str = "SITECHECK_ERROR"
    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        response: Dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            response["details"] = self.details
        return response


class InvalidInputError(SiteCheckError):
    """Raw input cannot be turned into a probeable hostname."""

    error_code = "INVALID_INPUT"
    status_code = 400

    def __init__(self, raw: str, reason: str = "invalid domain"):
        super().__init__(f"{reason}: {raw!r}", details={"input": raw, "reason": reason})
        self.raw = raw
        self.reason = reason


class CapacityExceededError(SiteCheckError):
    """No check slot became free before the acquisition timeout."""

    error_code = "CAPACITY_EXCEEDED"
    status_code = 503


__all__ = ["SiteCheckError", "InvalidInputError", "CapacityExceededError"]
