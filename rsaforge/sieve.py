# rsaforge/sieve.py
# Candidate production and cheap composite rejection:
# - exact-bit-length odd candidates from an entropy source
# - small-prime trial division with a sqrt(n) cutoff
# - 30/210 wheels for O(1) stepping over residues coprime to 2*3*5(*7)

from __future__ import annotations
import math
from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from sympy import primerange

from .entropy import EntropySource, draw_bits
from .errors import InvalidParameter

# ---------- small-prime table ----------

SMALL_PRIMES: Tuple[int, ...] = tuple(int(p) for p in primerange(2, 1 << 13))


def prime_filter(n: int, cutoff: int) -> bool:
    """False if n is divisible by one of the first `cutoff` small primes (other than itself)."""
    for p in SMALL_PRIMES[:cutoff]:
        if n == p:
            continue
        if n % p == 0:
            return False
    return True


def get_filter_cutoff(bit_length: int) -> int:
    """How many table primes are <= 2^(bit_length/2). Divisors above sqrt(n) never matter."""
    bound = math.isqrt(1 << max(bit_length, 0))
    return bisect_right(SMALL_PRIMES, bound)

# ---------- candidates ----------

def candidate_range(bit_length: int) -> Tuple[int, int]:
    if bit_length < 2:
        raise InvalidParameter("bit length must be >= 2")
    return 1 << (bit_length - 1), (1 << bit_length) - 1


def produce_candidate(bit_length: int, entropy: Optional[EntropySource] = None) -> int:
    """Random odd int with exactly `bit_length` bits."""
    low, high = candidate_range(bit_length)
    return normalize_candidate(draw_bits(bit_length, entropy), low, high)


def normalize_candidate(candidate: int, low: int, high: int) -> int:
    """Fold candidate into [low, high] and make it odd."""
    if candidate < low or candidate > high:
        candidate = low + candidate % (high - low + 1)
    candidate |= 1
    if candidate > high:
        candidate = high if high & 1 else high - 1
    return candidate

# ---------- wheels ----------

@dataclass(frozen=True)
class WheelSpec:
    modulus: int
    offsets: Tuple[int, ...]


def _wheel(primes: Tuple[int, ...]) -> WheelSpec:
    modulus = math.prod(primes)
    return WheelSpec(modulus, tuple(r for r in range(modulus) if all(r % p for p in primes)))

WHEEL_TRIVIAL = WheelSpec(2, (1,))
WHEEL_30 = _wheel((2, 3, 5))
WHEEL_210 = _wheel((2, 3, 5, 7))


def get_wheel(bit_length: int) -> WheelSpec:
    if bit_length <= 6:
        return WHEEL_TRIVIAL
    if 128 <= bit_length <= 1024:
        return WHEEL_210
    return WHEEL_30


def wheel_walk(start: int, bit_length: int, wheel: Optional[WheelSpec] = None) -> Iterator[int]:
    """
    Endless stream of in-range candidates, starting at the first wheel residue >= start.
    Passing the top of the range wraps back to the bottom.
    """
    wheel = wheel or get_wheel(bit_length)
    low, high = candidate_range(bit_length)
    m, offsets = wheel.modulus, wheel.offsets
    base = start - start % m
    i = bisect_left(offsets, start % m)
    while True:
        if i == len(offsets):
            i = 0
            base += m
        c = base + offsets[i]
        if c > high:
            base = low - low % m
            i = 0
            continue
        i += 1
        if c >= low:
            yield c
