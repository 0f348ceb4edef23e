"""Tests for the BuildOnce cell."""

import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from sbf_e2e.compile import BuildOnce


def test_runs_initializer_once():
    calls = []

    def init():
        calls.append(1)
        return "value"

    cell = BuildOnce(init)
    assert not cell.done
    assert cell.get() == "value"
    assert cell.get() == "value"
    assert cell.done
    assert len(calls) == 1


def test_concurrent_callers_share_one_run():
    calls = []
    barrier = threading.Barrier(8)

    def init():
        calls.append(1)
        time.sleep(0.1)
        return object()

    cell = BuildOnce(init)

    def worker():
        barrier.wait()
        return cell.get()

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: worker(), range(8)))

    assert len(calls) == 1
    assert all(r is results[0] for r in results)


def test_failure_is_cached_and_reraised():
    calls = []

    def init():
        calls.append(1)
        raise RuntimeError("boom")

    cell = BuildOnce(init)
    for _ in range(3):
        with pytest.raises(RuntimeError, match="boom"):
            cell.get()
    assert len(calls) == 1
    assert cell.done


def test_failure_reaches_concurrent_callers():
    calls = []
    barrier = threading.Barrier(4)

    def init():
        calls.append(1)
        time.sleep(0.1)
        raise ValueError("bad build")

    cell = BuildOnce(init)

    def worker():
        barrier.wait()
        try:
            cell.get()
        except ValueError as e:
            return e
        return None

    with ThreadPoolExecutor(max_workers=4) as pool:
        errors = list(pool.map(lambda _: worker(), range(4)))

    assert len(calls) == 1
    assert all(isinstance(e, ValueError) for e in errors)


if __name__ == "__main__":
    pytest.main(sys.argv)
