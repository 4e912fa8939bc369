"""Tests for configuration loading and evidence helpers."""

from __future__ import annotations

import pytest

from constants import DEFAULT_PROTOCOLS, DEFAULT_TIMEOUT
from models import ProbeConfig, env_bool, env_float, env_int, lowercase_headers


def test_probe_config_defaults() -> None:
    """TLS verification is off and HTTPS is tried before HTTP."""
    config = ProbeConfig()
    assert config.verify_tls is False
    assert config.protocols == ("https", "http")
    assert config.timeout == DEFAULT_TIMEOUT
    assert "User-Agent" in config.headers
    assert "Referer" in config.headers


def test_probe_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Environment variables override the defaults."""
    monkeypatch.setenv("SITECHECK_TIMEOUT", "4.5")
    monkeypatch.setenv("SITECHECK_MAX_REDIRECTS", "2")
    monkeypatch.setenv("SITECHECK_VERIFY_TLS", "true")
    monkeypatch.setenv("SITECHECK_PROTOCOLS", "http, ftp")
    monkeypatch.setenv("SITECHECK_DNS_FALLBACK", "0")

    config = ProbeConfig.from_env()

    assert config.timeout == 4.5
    assert config.max_redirects == 2
    assert config.verify_tls is True
    assert config.protocols == ("http",)
    assert config.dns_fallback is False


def test_probe_config_from_env_ignores_garbage(monkeypatch: pytest.MonkeyPatch) -> None:
    """Unparseable values fall back to defaults."""
    monkeypatch.setenv("SITECHECK_TIMEOUT", "soon")
    monkeypatch.setenv("SITECHECK_PROTOCOLS", "gopher")

    config = ProbeConfig.from_env()

    assert config.timeout == DEFAULT_TIMEOUT
    assert config.protocols == DEFAULT_PROTOCOLS


def test_lowercase_headers() -> None:
    """Header names are lowercased; empty input gives an empty dict."""
    assert lowercase_headers({"Server": "cloudflare", "CF-RAY": "abc"}) == {"server": "cloudflare", "cf-ray": "abc"}
    assert lowercase_headers(None) == {}


def test_env_helpers(monkeypatch: pytest.MonkeyPatch) -> None:
    """Environment numbers and flags parse leniently."""
    monkeypatch.setenv("SITECHECK_MAX_CONCURRENT", "12")
    monkeypatch.setenv("SITECHECK_ACQUIRE_TIMEOUT", "2.5")
    monkeypatch.setenv("SITECHECK_HEAD_FIRST", "yes")
    monkeypatch.setenv("SITECHECK_WORKERS", "12.5")
    monkeypatch.setenv("SITECHECK_BLANK", "  ")
    monkeypatch.delenv("SITECHECK_UNSET_FLAG", raising=False)

    assert env_int("SITECHECK_MAX_CONCURRENT", 8) == 12
    assert env_float("SITECHECK_ACQUIRE_TIMEOUT", 5.0) == 2.5
    assert env_bool("SITECHECK_HEAD_FIRST", False) is True
    assert env_int("SITECHECK_WORKERS", 8) == 8
    assert env_float("SITECHECK_BLANK", 5.0) == 5.0
    assert env_bool("SITECHECK_UNSET_FLAG", True) is True
