# rsaforge/primality.py
# Miller-Rabin with random witnesses.
#
# Witnesses are drawn uniformly from [2, n-2] with the OS CSPRNG on every call,
# so a composite passes k rounds with probability at most 4^-k. The round count
# grows with the bit length (7 rounds up to 64 bits, 20 beyond 2048).

from __future__ import annotations

from .arith import mod_exp
from .entropy import random_between

_MR_ROUNDS = ((64, 7), (128, 8), (256, 9), (512, 10), (1024, 12), (2048, 15))


def get_mr_rounds(bit_length: int) -> int:
    for limit, rounds in _MR_ROUNDS:
        if bit_length <= limit:
            return rounds
    return 20


def decompose(n: int):
    """n-1 = 2^r * d with d odd; returns (r, d)."""
    d = n - 1
    r = (d & -d).bit_length() - 1
    return r, d >> r


def _witness_passes(a: int, r: int, d: int, n: int) -> bool:
    x = mod_exp(a, d, n)
    if x == 1 or x == n - 1:
        return True
    for _ in range(r - 1):
        x = (x * x) % n
        if x == n - 1:
            return True
    return False


def is_probably_prime(n: int, bit_length: int = 0) -> bool:
    """Probabilistic primality. `bit_length` picks the round count (defaults to n's own)."""
    if n in (2, 3):
        return True
    if n < 2 or n % 2 == 0:
        return False
    r, d = decompose(n)
    rounds = get_mr_rounds(bit_length or n.bit_length())
    for _ in range(rounds):
        a = random_between(2, n - 2)
        if not _witness_passes(a, r, d, n):
            return False
    return True
