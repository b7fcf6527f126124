from __future__ import annotations

import threading
import time

import pytest
from sympy import isprime

from rsaforge import coordinator
from rsaforge.coordinator import SearchCoordinator, SearchOutcome, search_prime
from rsaforge.errors import GenerationExhausted, InvalidParameter
from rsaforge.sieve import get_filter_cutoff
from rsaforge.telemetry import MemorySink


def test_search_prime_returns_first_prime_on_the_wheel() -> None:
    out = search_prime(32769, 16, get_filter_cutoff(16), 10, False)
    assert out == SearchOutcome(32771, 1)
    assert not out.exhausted


def test_search_prime_counts_filtered_candidates() -> None:
    # 2051 = 7 * 293 is the only candidate inside the budget
    out = search_prime(2049, 12, get_filter_cutoff(12), 1, False)
    assert out.exhausted
    assert out.attempts == 1


def test_search_prime_strong_mode() -> None:
    out = search_prime(1 << 15 | 1, 16, get_filter_cutoff(16), 5000, True)
    assert out.prime is not None
    assert isprime(out.prime) and isprime((out.prime - 1) // 2)
    assert out.prime % 3 == 2


def test_coordinator_rejects_bad_configuration() -> None:
    with pytest.raises(InvalidParameter):
        SearchCoordinator(workers=0)
    with pytest.raises(InvalidParameter):
        SearchCoordinator(executor="gpu")


def test_run_round_needs_context_manager() -> None:
    coord = SearchCoordinator(workers=2, executor="thread")
    with pytest.raises(RuntimeError):
        next(coord.run_round(16, get_filter_cutoff(16), None, 100, False))


def test_collect_gathers_distinct_primes() -> None:
    sink = MemorySink()
    with SearchCoordinator(workers=3, executor="thread", sink=sink) as coord:
        primes, attempts, rounds = coord.collect(4, 24, get_filter_cutoff(24), None, 100_000, False)
    assert len(primes) == 4 == len(set(primes))
    assert all(isprime(p) and p.bit_length() == 24 for p in primes)
    assert attempts >= 4
    assert rounds >= 2  # 3 tasks per round cannot yield 4 primes
    assert sink.names().count("progress") == rounds


def test_collect_duplicates_never_satisfy_count() -> None:
    fixed = lambda bits: 0
    with SearchCoordinator(workers=2, executor="thread") as coord:
        with pytest.raises(GenerationExhausted) as ei:
            coord.collect(2, 16, get_filter_cutoff(16), fixed, 40, False)
    assert ei.value.found == 1
    assert ei.value.requested == 2
    assert ei.value.attempts >= 40


def test_collect_acceptor_rejections_spend_budget() -> None:
    with SearchCoordinator(workers=2, executor="thread") as coord:
        with pytest.raises(GenerationExhausted) as ei:
            coord.collect(1, 20, get_filter_cutoff(20), None, 200, False,
                          accept=lambda c, acc: False)
    assert ei.value.found == 0


def test_collect_on_process_pool() -> None:
    with SearchCoordinator(workers=2, executor="process") as coord:
        primes, _, _ = coord.collect(2, 32, get_filter_cutoff(32), None, 1_000_000, False)
    assert len(primes) == 2
    assert all(isprime(p) for p in primes)


def test_search_prime_gives_up_when_stopped() -> None:
    stop = threading.Event()
    stop.set()
    assert search_prime(32769, 16, get_filter_cutoff(16), 1000, False, stop) == SearchOutcome(None, 0)


def test_closing_a_round_stops_losing_tasks(monkeypatch: pytest.MonkeyPatch) -> None:
    lock = threading.Lock()
    all_running = threading.Barrier(3)
    waited = []

    def racing_search(start, bit_length, cutoff, budget, strong, stop=None):
        all_running.wait(5)
        with lock:
            first = not waited
            waited.append(None)
        if first:
            return SearchOutcome(32771, 1)
        t0 = time.perf_counter()
        stopped = stop.wait(5)
        with lock:
            waited.append((stopped, time.perf_counter() - t0))
        return SearchOutcome(None, 1)

    monkeypatch.setattr(coordinator, "search_prime", racing_search)
    with SearchCoordinator(workers=3, executor="thread") as coord:
        primes, _, rounds = coord.collect(1, 16, get_filter_cutoff(16), None, 1000, False)
    assert primes == [32771] and rounds == 1
    deadline = time.monotonic() + 5
    while len(waited) < 5 and time.monotonic() < deadline:
        time.sleep(0.01)
    losers = [w for w in waited if w is not None]
    assert len(losers) == 2
    assert all(stopped and elapsed < 1.0 for stopped, elapsed in losers)
