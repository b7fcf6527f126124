from __future__ import annotations

import pytest
from sympy import isprime

from rsaforge.primality import decompose, get_mr_rounds, is_probably_prime


def test_small_values() -> None:
    assert is_probably_prime(2)
    assert is_probably_prime(3)
    for n in (-7, 0, 1, 4, 9, 15, 561, 1105):
        assert not is_probably_prime(n)


def test_agrees_with_sympy_below_1000() -> None:
    for n in range(2, 1000):
        assert is_probably_prime(n, 64) == isprime(n), n


@pytest.mark.parametrize(
    "n, expected",
    [
        (2 ** 61 - 1, True),
        (2 ** 89 - 1, True),
        (2 ** 127 - 1, True),
        (2 ** 128 + 1, False),
        ((2 ** 61 - 1) * (2 ** 31 - 1), False),
    ],
)
def test_large_values(n: int, expected: bool) -> None:
    assert is_probably_prime(n) is expected


def test_decompose() -> None:
    assert decompose(561) == (4, 35)
    assert decompose(13) == (2, 3)
    r, d = decompose(2 ** 127 - 1)
    assert d % 2 == 1
    assert (d << r) == 2 ** 127 - 2


def test_round_schedule() -> None:
    assert get_mr_rounds(16) == 7
    assert get_mr_rounds(64) == 7
    assert get_mr_rounds(65) == 8
    assert get_mr_rounds(256) == 9
    assert get_mr_rounds(512) == 10
    assert get_mr_rounds(1024) == 12
    assert get_mr_rounds(2048) == 15
    assert get_mr_rounds(4096) == 20
