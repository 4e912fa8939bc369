"""Unit tests for the bounded resource pool."""

from __future__ import annotations

import threading

import pytest

from exceptions import CapacityExceededError
from resources import ResourcePool


def test_slot_acquires_and_releases() -> None:
    """The context manager returns its slot even on error."""
    pool = ResourcePool(capacity=2, acquire_timeout=0.1)

    with pool.slot():
        assert pool.in_use == 1
        assert pool.available == 1
    assert pool.in_use == 0

    with pytest.raises(ValueError):
        with pool.slot():
            raise ValueError("boom")
    assert pool.in_use == 0


def test_acquire_times_out_when_full() -> None:
    """A full pool rejects callers after the acquisition timeout."""
    pool = ResourcePool(capacity=1, acquire_timeout=0.0)
    pool.acquire()

    with pytest.raises(CapacityExceededError) as excinfo:
        pool.acquire()
    assert excinfo.value.status_code == 503

    pool.release()
    pool.acquire()
    pool.release()


def test_release_without_acquire_is_an_error() -> None:
    """Unbalanced release is a programming error."""
    pool = ResourcePool(capacity=1)
    with pytest.raises(RuntimeError):
        pool.release()


def test_capacity_must_be_positive() -> None:
    """Zero-capacity pools are rejected."""
    with pytest.raises(ValueError):
        ResourcePool(capacity=0)


def test_waiting_caller_gets_released_slot() -> None:
    """A blocked acquire succeeds once another caller releases."""
    pool = ResourcePool(capacity=1, acquire_timeout=5.0)
    pool.acquire()
    acquired = threading.Event()

    def _worker() -> None:
        with pool.slot():
            acquired.set()

    thread = threading.Thread(target=_worker)
    thread.start()
    pool.release()
    thread.join(timeout=5.0)

    assert acquired.is_set()
    assert pool.in_use == 0
