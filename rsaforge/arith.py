# rsaforge/arith.py
# Modular exponentiation and binary GCD over Python ints.
# gmpy2 is used for powmod when it is installed.

from __future__ import annotations

try:
    import gmpy2
    HAVE_GMPY2 = True
    def _powmod(a, e, n): return int(gmpy2.powmod(a, e, n))
except Exception:
    HAVE_GMPY2 = False
    def _powmod(a, e, n): return pow(a, e, n)


def mod_exp(base: int, exponent: int, modulus: int) -> int:
    """(base ** exponent) % modulus for non-negative exponents."""
    if modulus <= 0:
        raise ValueError("modulus must be positive")
    if exponent < 0:
        raise ValueError("negative exponents not supported")
    if modulus == 1:
        return 0
    if exponent == 0:
        return 1
    return _powmod(base % modulus, exponent, modulus)


def gcd(a: int, b: int) -> int:
    """Stein's binary GCD. gcd(0, b) == |b|."""
    a, b = abs(a), abs(b)
    if a == 0: return b
    if b == 0: return a
    # shared power of two
    shift = ((a | b) & -(a | b)).bit_length() - 1
    a >>= (a & -a).bit_length() - 1
    while b:
        b >>= (b & -b).bit_length() - 1
        if a > b:
            a, b = b, a
        b -= a
    return a << shift
