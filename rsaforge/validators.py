# rsaforge/validators.py
# Strong/safe-prime and RSA suitability checks, cheapest test first.

from __future__ import annotations
from typing import Iterable, Optional

from .arith import gcd
from .primality import is_probably_prime
from .sieve import get_filter_cutoff, prime_filter
from .telemetry import EventSink, NULL_SINK

COMMON_RSA_EXPONENT = 65537

# multi-prime RSA: cap on gcd(p-1, q-1) between any two primes of one modulus
MAX_ALLOWED_GCD = 1 << 16
GCD_SCALING_FACTOR = 1 << 16


def calculate_max_attempts(bits: int) -> int:
    """Global attempt ceiling, ~ bits^1.4."""
    return int(100 * bits ** 1.4)


def get_min_rsa_gap(bit_length: int, count: int, sink: EventSink = NULL_SINK) -> int:
    """Smallest allowed |p - q|: 2^(half the per-prime bit length)."""
    if count < 1:
        raise ValueError("count must be >= 1")
    if bit_length < 512:
        sink.emit("warning", message="RSA bit length below 512 is not considered secure",
                  bit_length=bit_length)
    prime_bits = bit_length // count
    return 1 << (prime_bits // 2)


def is_strong_prime(n: int, bit_length: int, cutoff: Optional[int] = None,
                    exponent: int = COMMON_RSA_EXPONENT) -> bool:
    """
    Safe prime usable with `exponent`:
      n survives trial division, n mod e != 1, n mod 3 != 1,
      n is probably prime and so is (n-1)/2.
    """
    if n < 5 or n % 2 == 0:
        return False
    if cutoff is None:
        cutoff = get_filter_cutoff(bit_length)
    if not prime_filter(n, cutoff):
        return False
    if n % exponent == 1 or n % 3 == 1:
        return False
    q = (n - 1) // 2
    if not prime_filter(q, cutoff):
        return False
    if not is_probably_prime(n, bit_length):
        return False
    return is_probably_prime(q, bit_length)


def are_valid_rsa_primes(p: int, q: int, bit_length: int, cutoff: Optional[int] = None,
                         min_gap: Optional[int] = None) -> bool:
    """Both strong, far enough apart, and e invertible mod (p-1)(q-1)."""
    if min_gap is None:
        min_gap = get_min_rsa_gap(2 * bit_length, 2)
    if abs(p - q) < min_gap:
        return False
    if not is_strong_prime(p, bit_length, cutoff) or not is_strong_prime(q, bit_length, cutoff):
        return False
    return gcd(COMMON_RSA_EXPONENT, (p - 1) * (q - 1)) == 1


def _gcd_threshold(p: int) -> int:
    dynamic = (p - 1) // GCD_SCALING_FACTOR
    return dynamic if 0 < dynamic < MAX_ALLOWED_GCD else MAX_ALLOWED_GCD


def is_weak_for_multi_rsa(candidate: int, existing: Iterable[int]) -> bool:
    """True if candidate shares a large totient factor or a modular collision with any accepted prime."""
    for p in existing:
        if gcd(candidate - 1, p - 1) > _gcd_threshold(p):
            return True
        if candidate % p == 1 or p % candidate == 1:
            return True
    return False
