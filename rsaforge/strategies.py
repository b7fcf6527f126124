# rsaforge/strategies.py
# Generation strategies on top of the search coordinator:
#   single      one probable prime
#   batch       N probable primes, pairwise spaced
#   strong      N strong (safe) primes, pairwise spaced
#   rsa-pair    p, q satisfying every RSA pair rule
#   rsa-multi   N strong primes for a multi-prime modulus
# Every public entry point validates its parameters before any entropy is drawn.

from __future__ import annotations
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from .analytics import PrimeSet, create_prime_set
from .coordinator import Acceptor, SearchCoordinator
from .entropy import EntropySource
from .errors import InvalidParameter, PrimeGenerationError, UnknownStrategy
from .sieve import candidate_range, get_filter_cutoff
from .telemetry import EventSink, NULL_SINK
from .validators import (
    are_valid_rsa_primes,
    calculate_max_attempts,
    get_min_rsa_gap,
    is_weak_for_multi_rsa,
)

DEFAULT_MIN_SPACING = 1000


class RSAPrimePair(NamedTuple):
    p: int
    q: int


@dataclass(frozen=True)
class Constraints:
    count: int
    target_bit_length: int
    min_gap: int
    avoid_weak: bool
    cutoff: int

# ---------- validation ----------

def _check_bits(bit_length: int) -> None:
    if not isinstance(bit_length, int) or bit_length < 2:
        raise InvalidParameter(f"bit length must be an integer >= 2, got {bit_length!r}")


def _check_count(count: int) -> None:
    if not isinstance(count, int) or count < 1:
        raise InvalidParameter(f"count must be a positive integer, got {count!r}")


def _check_spacing(bit_length: int, count: int, min_gap: int) -> None:
    if min_gap < 0:
        raise InvalidParameter("minimum spacing must be >= 0")
    low, high = candidate_range(bit_length)
    if count > 1 << (bit_length - 2):
        raise InvalidParameter(f"{count} distinct odd values do not exist at {bit_length} bits")
    if (count - 1) * min_gap > high - low:
        raise InvalidParameter(
            f"{count} primes spaced {min_gap} apart do not fit in a {bit_length}-bit range")


def _ceiling(bit_length: int, count: int, max_attempts: Optional[int]) -> int:
    ceiling = calculate_max_attempts(bit_length) * count if max_attempts is None else max_attempts
    if ceiling < 1:
        raise InvalidParameter("max_attempts must be >= 1")
    return ceiling


def _spaced(min_gap: int) -> Acceptor:
    def accept(candidate: int, accepted: Sequence[int]) -> bool:
        return all(abs(candidate - p) >= min_gap for p in accepted)
    return accept

# ---------- shared driver ----------

def _generate(operation: str, strategy: str, c: Constraints, strong: bool,
              accept: Optional[Acceptor], entropy: Optional[EntropySource], ceiling: int,
              workers: Optional[int], executor: str, sink: EventSink) -> Tuple[List[int], int, float]:
    started = time.perf_counter()
    op = f"{strategy}-{int(time.time() * 1000)}"
    sink.emit("start", op=op, operation=operation, bit_length=c.target_bit_length,
              count=c.count, strategy=strategy, ceiling=ceiling)
    try:
        with SearchCoordinator(workers, executor, sink) as coord:
            primes, attempts, rounds = coord.collect(
                c.count, c.target_bit_length, c.cutoff, entropy, ceiling, strong, accept, op=op)
    except PrimeGenerationError as e:
        sink.emit("failure", op=op, operation=operation, error=str(e),
                  bit_length=c.target_bit_length, count=c.count, strategy=strategy,
                  attempts=getattr(e, "attempts", 0))
        raise
    total_ms = round((time.perf_counter() - started) * 1000, 3)
    sink.emit("success", op=op, generated=len(primes), requested=c.count, rounds=rounds)
    sink.emit("summary", op=op, generated=len(primes), requested=c.count, attempts=attempts,
              total_ms=total_ms, strategy=strategy)
    return sorted(primes), attempts, started

# ---------- public strategies ----------

def generate_single(bit_length: int, entropy: Optional[EntropySource] = None, *,
                    max_attempts: Optional[int] = None, workers: Optional[int] = None,
                    executor: str = "process", sink: EventSink = NULL_SINK) -> int:
    """One probable prime of exactly `bit_length` bits."""
    _check_bits(bit_length)
    ceiling = _ceiling(bit_length, 1, max_attempts)
    c = Constraints(1, bit_length, 0, False, get_filter_cutoff(bit_length))
    primes, _, _ = _generate("single prime", "single", c, False, None, entropy, ceiling,
                             workers, executor, sink)
    return primes[0]


def generate_batch(bit_length: int, count: int = 1, min_spacing: int = DEFAULT_MIN_SPACING,
                   entropy: Optional[EntropySource] = None, *, max_attempts: Optional[int] = None,
                   workers: Optional[int] = None, executor: str = "process",
                   sink: EventSink = NULL_SINK) -> List[int]:
    """`count` distinct probable primes, pairwise at least `min_spacing` apart, ascending."""
    _check_bits(bit_length)
    _check_count(count)
    _check_spacing(bit_length, count, min_spacing)
    ceiling = _ceiling(bit_length, count, max_attempts)
    c = Constraints(count, bit_length, min_spacing, False, get_filter_cutoff(bit_length))
    primes, _, _ = _generate("prime batch", "batch", c, False, _spaced(min_spacing), entropy,
                             ceiling, workers, executor, sink)
    return primes


def generate_strong_primes(bit_length: int, count: int = 1, min_spacing: int = DEFAULT_MIN_SPACING,
                           entropy: Optional[EntropySource] = None, *,
                           max_attempts: Optional[int] = None, workers: Optional[int] = None,
                           executor: str = "process", sink: EventSink = NULL_SINK) -> List[int]:
    """Like generate_batch, but every prime is a strong (safe) prime."""
    _check_bits(bit_length)
    _check_count(count)
    _check_spacing(bit_length, count, min_spacing)
    ceiling = _ceiling(bit_length, count, max_attempts)
    c = Constraints(count, bit_length, min_spacing, False, get_filter_cutoff(bit_length))
    primes, _, _ = _generate("strong primes", "strong", c, True, _spaced(min_spacing), entropy,
                             ceiling, workers, executor, sink)
    return primes


def _pair_acceptor(c: Constraints) -> Acceptor:
    def accept(candidate: int, accepted: Sequence[int]) -> bool:
        if not accepted:
            return True
        return are_valid_rsa_primes(accepted[0], candidate, c.target_bit_length,
                                    c.cutoff, c.min_gap)
    return accept


def generate_rsa_pair(bit_length: int, entropy: Optional[EntropySource] = None, *,
                      max_attempts: Optional[int] = None, workers: Optional[int] = None,
                      executor: str = "process", sink: EventSink = NULL_SINK) -> RSAPrimePair:
    """Two `bit_length`-bit strong primes valid as an RSA pair; p < q."""
    _check_bits(bit_length)
    min_gap = get_min_rsa_gap(2 * bit_length, 2, sink)
    _check_spacing(bit_length, 2, min_gap)
    ceiling = _ceiling(bit_length, 2, max_attempts)
    c = Constraints(2, bit_length, min_gap, False, get_filter_cutoff(bit_length))
    primes, _, _ = _generate("RSA prime pair", "rsa-pair", c, True, _pair_acceptor(c), entropy,
                             ceiling, workers, executor, sink)
    return RSAPrimePair(primes[0], primes[1])

# ---------- prime sets ----------

_CONSTRAINT_KEYS = ("min_gap", "avoid_weak")


def _check_overrides(constraints: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    overrides = dict(constraints or {})
    unknown = set(overrides) - set(_CONSTRAINT_KEYS)
    if unknown:
        raise InvalidParameter(f"unknown constraints: {sorted(unknown)}")
    min_gap = overrides.get("min_gap")
    if min_gap is not None and (isinstance(min_gap, bool) or not isinstance(min_gap, int)):
        raise InvalidParameter(f"min_gap must be an integer, got {min_gap!r}")
    avoid_weak = overrides.get("avoid_weak")
    if avoid_weak is not None and not isinstance(avoid_weak, bool):
        raise InvalidParameter(f"avoid_weak must be true or false, got {avoid_weak!r}")
    return overrides


def _multi_acceptor(c: Constraints) -> Acceptor:
    def accept(candidate: int, accepted: Sequence[int]) -> bool:
        if c.avoid_weak and is_weak_for_multi_rsa(candidate, accepted):
            return False
        return all(abs(candidate - p) >= c.min_gap for p in accepted)
    return accept


def _rsa_multi(count: int, bit_length: int, overrides: Mapping[str, Any], sink: EventSink):
    target = bit_length // count
    _check_bits(target)
    min_gap = overrides.get("min_gap")
    if min_gap is None:
        min_gap = get_min_rsa_gap(bit_length, count, sink)
    c = Constraints(count, target, int(min_gap), bool(overrides.get("avoid_weak", True)),
                    get_filter_cutoff(target))
    return c, _multi_acceptor(c)


def _rsa_pair_set(count: int, bit_length: int, overrides: Mapping[str, Any], sink: EventSink):
    if count != 2:
        raise InvalidParameter("rsa-pair strategy produces exactly 2 primes")
    target = bit_length // 2
    _check_bits(target)
    min_gap = overrides.get("min_gap")
    if min_gap is None:
        min_gap = get_min_rsa_gap(bit_length, 2, sink)
    c = Constraints(2, target, int(min_gap), bool(overrides.get("avoid_weak", False)),
                    get_filter_cutoff(target))
    pair = _pair_acceptor(c)
    if not c.avoid_weak:
        return c, pair
    return c, lambda cand, acc: pair(cand, acc) and not is_weak_for_multi_rsa(cand, acc)


def _strong_set(count: int, bit_length: int, overrides: Mapping[str, Any], sink: EventSink):
    min_gap = overrides.get("min_gap")
    min_gap = DEFAULT_MIN_SPACING if min_gap is None else int(min_gap)
    c = Constraints(count, bit_length, min_gap, bool(overrides.get("avoid_weak", False)),
                    get_filter_cutoff(bit_length))
    return c, _multi_acceptor(c)


# strategy tag -> (count, total bit length, overrides, sink) -> (Constraints, acceptor)
STRATEGIES: Dict[str, Callable[..., Tuple[Constraints, Acceptor]]] = {
    "rsa-multi": _rsa_multi,
    "rsa-pair": _rsa_pair_set,
    "strong-set": _strong_set,
}


def generate_prime_set(count: int, bit_length: int, strategy: str = "rsa-multi",
                       constraints: Optional[Mapping[str, Any]] = None,
                       entropy: Optional[EntropySource] = None, *,
                       max_attempts: Optional[int] = None, workers: Optional[int] = None,
                       executor: str = "process", sink: EventSink = NULL_SINK) -> PrimeSet:
    """
    Strong prime set built by `strategy`, with analytics attached.
    For rsa-multi and rsa-pair `bit_length` is the modulus size (split evenly across
    the primes); for strong-set it is the size of each prime.
    `constraints` may override min_gap and avoid_weak.
    """
    builder = STRATEGIES.get(strategy)
    if builder is None:
        raise UnknownStrategy(strategy)
    _check_count(count)
    _check_bits(bit_length)
    overrides = _check_overrides(constraints)
    c, accept = builder(count, bit_length, overrides, sink)
    _check_spacing(c.target_bit_length, c.count, c.min_gap)
    ceiling = _ceiling(c.target_bit_length, c.count, max_attempts)
    primes, attempts, started = _generate(f"prime set ({strategy})", strategy, c, True, accept,
                                          entropy, ceiling, workers, executor, sink)
    return create_prime_set(primes, strategy, attempts, started)
