"""Turn raw user input into a bare hostname."""

from __future__ import annotations

from constants import MAX_HOSTNAME_LENGTH, MIN_HOSTNAME_LENGTH
from exceptions import InvalidInputError

__all__ = ["normalize", "build_url"]

_SCHEMES = ("http://", "https://")


def normalize(raw: str) -> str:
    """Return the canonical hostname for ``raw``.

    ``HTTPS://WWW.Example.com/path?q=1`` becomes ``example.com``. The
    result is a fixed point: normalizing it again yields the same value.
    Raises ``InvalidInputError`` when nothing probeable is left.
    """
    value = (raw or "").lower()
    previous = None
    # Strip prefixes until stable ("www.www.", " https://").
    while value != previous:
        previous = value
        value = value.strip()
        for scheme in _SCHEMES:
            if value.startswith(scheme):
                value = value[len(scheme):]
                break
        if value.startswith("www."):
            value = value[len("www."):]
    for sep in ("/", "?"):
        if sep in value:
            value = value.split(sep, 1)[0]
    value = value.strip()

    if not value:
        raise InvalidInputError(raw, "empty domain")
    if len(value) < MIN_HOSTNAME_LENGTH:
        raise InvalidInputError(raw, "domain too short")
    if len(value) > MAX_HOSTNAME_LENGTH:
        raise InvalidInputError(raw, "domain too long")
    if "." not in value:
        raise InvalidInputError(raw, "domain has no dot")
    return value


def build_url(target: str, protocol: str = "https") -> str:
    return f"{protocol}://{target}"
