from __future__ import annotations

from sympy import isprime

from rsaforge.telemetry import MemorySink
from rsaforge.validators import (
    COMMON_RSA_EXPONENT,
    are_valid_rsa_primes,
    calculate_max_attempts,
    get_min_rsa_gap,
    is_strong_prime,
    is_weak_for_multi_rsa,
)

# safe primes p = 2q + 1 with 10 bits
SAFE_10 = (563, 587, 719, 839, 863, 887, 983, 1019)


def test_strong_prime_accepts_safe_primes() -> None:
    for p in (11, 23, 47, 59, 83, 107) + SAFE_10:
        assert is_strong_prime(p, p.bit_length()), p


def test_strong_prime_rejects_non_safe_primes() -> None:
    # 13: (13-1)/2 = 6; 29: 14; 1021: 510
    for p in (13, 29, 1021):
        assert not is_strong_prime(p, p.bit_length()), p


def test_strong_prime_rejects_one_mod_three() -> None:
    # 7 = 2*3 + 1 is a safe prime, but 7 % 3 == 1
    assert not is_strong_prime(7, 3)


def test_strong_prime_rejects_one_mod_exponent() -> None:
    n = next(k * COMMON_RSA_EXPONENT + 1 for k in range(2, 10_000, 2)
             if isprime(k * COMMON_RSA_EXPONENT + 1))
    assert not is_strong_prime(n, n.bit_length())


def test_strong_prime_rejects_trivia() -> None:
    for n in (-11, 0, 1, 2, 3, 4, 1024, 1023):
        assert not is_strong_prime(n, max(n.bit_length(), 2))


def test_valid_rsa_pair() -> None:
    assert are_valid_rsa_primes(563, 1019, 10)
    assert are_valid_rsa_primes(1019, 563, 10)


def test_rsa_pair_too_close() -> None:
    # min gap at 10 bits per prime is 2^5
    assert get_min_rsa_gap(20, 2) == 32
    assert not are_valid_rsa_primes(863, 887, 10)
    assert are_valid_rsa_primes(863, 887, 10, min_gap=16)


def test_rsa_pair_needs_strong_primes() -> None:
    assert not are_valid_rsa_primes(563, 1021, 10)


def test_min_gap_scales_with_per_prime_bits() -> None:
    assert get_min_rsa_gap(2048, 2) == 1 << 512
    assert get_min_rsa_gap(3072, 3) == 1 << 512
    assert get_min_rsa_gap(4096, 4) == 1 << 512


def test_min_gap_warns_below_512_bits() -> None:
    sink = MemorySink()
    get_min_rsa_gap(256, 2, sink)
    assert sink.names() == ["warning"]
    sink = MemorySink()
    get_min_rsa_gap(2048, 2, sink)
    assert sink.names() == []


def test_max_attempts_grows_with_bits() -> None:
    values = [calculate_max_attempts(b) for b in (16, 64, 256, 1024, 2048)]
    assert values == sorted(values)
    assert calculate_max_attempts(64) == int(100 * 64 ** 1.4)


def test_weak_for_multi_rsa() -> None:
    assert not is_weak_for_multi_rsa(23, [])
    assert not is_weak_for_multi_rsa(23, [17, 19])
    assert not is_weak_for_multi_rsa(29, [17, 19, 23])
    # 47 = 2 * 23 + 1
    assert is_weak_for_multi_rsa(47, [23])
    assert is_weak_for_multi_rsa(23, [47, 11])


def test_weak_for_multi_rsa_shared_totient_factor() -> None:
    p = 3 * 2 ** 40 + 1
    candidate = 5 * 2 ** 40 + 1
    assert is_weak_for_multi_rsa(candidate, [p])
