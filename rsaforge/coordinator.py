# rsaforge/coordinator.py
# Parallel bounded-attempt prime search.
#
# A search task walks the wheel from a start candidate, trial-divides, then runs
# the full (strong-)primality test, for at most `budget` candidates. Tasks are
# pure functions of ints: entropy is drawn here, in the coordinating process,
# so tasks can run on a process pool. Rounds of W tasks are repeated until the
# caller has what it needs or the global attempt ceiling is spent. Closing a
# round sets its stop flag; running tasks see it within STOP_CHECK_EVERY
# candidates and return.

from __future__ import annotations
import concurrent.futures
import multiprocessing
import os
import threading
from contextlib import closing
from dataclasses import dataclass
from itertools import islice
from typing import Callable, Iterator, List, Optional, Sequence

from .entropy import EntropySource
from .errors import GenerationExhausted, InvalidParameter
from .primality import is_probably_prime
from .sieve import get_wheel, prime_filter, produce_candidate, wheel_walk
from .telemetry import EventSink, NULL_SINK
from .validators import is_strong_prime

EXECUTORS = ("process", "thread")
STOP_CHECK_EVERY = 32

Acceptor = Callable[[int, Sequence[int]], bool]


@dataclass(frozen=True)
class SearchOutcome:
    prime: Optional[int]
    attempts: int

    @property
    def exhausted(self) -> bool:
        return self.prime is None


def search_prime(start: int, bit_length: int, cutoff: int, budget: int, strong: bool,
                 stop=None) -> SearchOutcome:
    """
    One search task. Returns the first accepted candidate or an exhausted outcome.
    `stop` is any object with is_set(); once set the task gives up early.
    """
    attempts = 0
    for candidate in islice(wheel_walk(start, bit_length, get_wheel(bit_length)), budget):
        if stop is not None and attempts % STOP_CHECK_EVERY == 0 and stop.is_set():
            break
        attempts += 1
        if not prime_filter(candidate, cutoff):
            continue
        if strong:
            ok = is_strong_prime(candidate, bit_length, cutoff)
        else:
            ok = is_probably_prime(candidate, bit_length)
        if ok:
            return SearchOutcome(candidate, attempts)
    return SearchOutcome(None, attempts)


def default_workers() -> int:
    return os.cpu_count() or 4


class SearchCoordinator:
    """
    Races W search tasks per round on a process (default) or thread pool.
    Use as a context manager; the pool lives for one top-level generation call.
    """

    def __init__(self, workers: Optional[int] = None, executor: str = "process",
                 sink: EventSink = NULL_SINK):
        if executor not in EXECUTORS:
            raise InvalidParameter(f"executor must be one of {EXECUTORS}, got {executor!r}")
        if workers is not None and workers < 1:
            raise InvalidParameter("workers must be >= 1")
        self.workers = workers or default_workers()
        self.executor = executor
        self.sink = sink
        self._pool: Optional[concurrent.futures.Executor] = None
        self._manager = None

    def __enter__(self) -> "SearchCoordinator":
        if self.executor == "process":
            self._manager = multiprocessing.Manager()
            self._pool = concurrent.futures.ProcessPoolExecutor(max_workers=self.workers)
        else:
            self._pool = concurrent.futures.ThreadPoolExecutor(max_workers=self.workers)
        return self

    def __exit__(self, *exc) -> None:
        if self._pool is not None:
            # losing tasks were told to stop and their results are discarded.
            # Process workers still read the manager-held flag, so they are
            # joined before the manager goes away.
            self._pool.shutdown(wait=self._manager is not None, cancel_futures=True)
            self._pool = None
        if self._manager is not None:
            self._manager.shutdown()
            self._manager = None

    def _stop_flag(self):
        if self._manager is not None:
            return self._manager.Event()
        return threading.Event()

    def run_round(self, bit_length: int, cutoff: int, entropy: Optional[EntropySource],
                  budget: int, strong: bool) -> Iterator[SearchOutcome]:
        """Launch W tasks sharing `budget`; yield outcomes as they complete. Closing stops the rest."""
        if self._pool is None:
            raise RuntimeError("SearchCoordinator must be used as a context manager")
        starts = [produce_candidate(bit_length, entropy) for _ in range(self.workers)]
        per_task = max(1, budget // self.workers)
        stop = self._stop_flag()
        futures = [self._pool.submit(search_prime, s, bit_length, cutoff, per_task, strong, stop)
                   for s in starts]
        try:
            for fut in concurrent.futures.as_completed(futures):
                yield fut.result()
        finally:
            stop.set()
            for f in futures:
                f.cancel()

    def collect(self, count: int, bit_length: int, cutoff: int, entropy: Optional[EntropySource],
                ceiling: int, strong: bool, accept: Optional[Acceptor] = None,
                op: str = "search") -> tuple:
        """
        Repeat rounds until `count` primes pass `accept` or `ceiling` attempts are spent.
        Returns (accepted primes in acceptance order, attempts used, rounds).
        Accepted primes carry over between rounds.
        """
        accepted: List[int] = []
        attempts = 0
        rounds = 0
        while len(accepted) < count:
            if attempts >= ceiling:
                raise GenerationExhausted(attempts, len(accepted), count)
            rounds += 1
            rejected = 0
            outcomes = self.run_round(bit_length, cutoff, entropy, ceiling - attempts, strong)
            with closing(outcomes):
                for outcome in outcomes:
                    attempts += outcome.attempts
                    c = outcome.prime
                    if c is None:
                        continue
                    if c in accepted or (accept is not None and not accept(c, accepted)):
                        rejected += 1
                        continue
                    accepted.append(c)
                    if len(accepted) >= count:
                        break
            self.sink.emit("progress", op=op, round=rounds, accepted=len(accepted),
                           requested=count, rejected=rejected, attempts=attempts, ceiling=ceiling)
        return accepted, attempts, rounds
