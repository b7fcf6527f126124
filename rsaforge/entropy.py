# rsaforge/entropy.py
# Entropy sources. An entropy source is any callable bits -> int.

from __future__ import annotations
import secrets
from typing import Callable, Optional

from .errors import EntropyFailure

EntropySource = Callable[[int], int]


def default_entropy(bits: int) -> int:
    """OS CSPRNG; returns a non-negative int below 2**bits."""
    return secrets.randbits(bits)


def draw_bits(bits: int, entropy: Optional[EntropySource] = None) -> int:
    """Ask the entropy source for `bits` bits. Any failure is fatal."""
    source = entropy or default_entropy
    try:
        value = int(source(bits))
    except Exception as e:
        raise EntropyFailure(f"entropy source failed for {bits} bits: {e!r}") from e
    if value < 0:
        raise EntropyFailure(f"entropy source returned a negative value for {bits} bits")
    return value & ((1 << bits) - 1)


def random_between(low: int, high: int) -> int:
    """Uniform int in [low, high] from the OS CSPRNG."""
    if high < low:
        raise ValueError("empty range")
    return low + secrets.randbelow(high - low + 1)
