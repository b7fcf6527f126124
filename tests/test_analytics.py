from __future__ import annotations

import time

import pytest

from rsaforge.analytics import (
    STRENGTH_LEVELS,
    analyze_distribution,
    analyze_prime_set,
    analyze_relationships,
    assess_strength,
    calculate_average_gap,
    check_arithmetic_progression,
    check_weak_gcd_patterns,
    compute_gaps,
    create_prime_set,
    strength_score,
)
from rsaforge.errors import InvalidParameter

SAFE_SET = [563, 719, 1019]


def test_gaps_and_average() -> None:
    assert compute_gaps([1019, 563, 719]) == [156, 300]
    assert calculate_average_gap(SAFE_SET) == 228
    assert calculate_average_gap([7]) == 0
    assert compute_gaps([7]) == []


def test_relationships() -> None:
    assert analyze_relationships([3, 5]) == ["twin:3,5", "coprime-totient:3,5"]
    assert "sophie-germain:5->11" in analyze_relationships([11, 5])
    assert analyze_relationships([7, 13]) == []   # gcd(6, 12) == 6


def test_distribution() -> None:
    assert analyze_distribution([5, 11]) == (1.0, False)
    uniformity, clustering = analyze_distribution([5, 11, 17])
    assert uniformity == pytest.approx(1.0)
    assert clustering is False
    uniformity, _ = analyze_distribution([101, 103, 107])
    assert uniformity == pytest.approx(0.75)
    _, clustering = analyze_distribution([3, 5, 7, 1009, 2003])
    assert clustering is True


def test_arithmetic_progression() -> None:
    assert check_arithmetic_progression([3, 5, 7])
    assert check_arithmetic_progression([5, 11, 17, 23])
    assert not check_arithmetic_progression([3, 7])
    assert not check_arithmetic_progression(SAFE_SET)


def test_weak_gcd_patterns() -> None:
    assert check_weak_gcd_patterns([15, 17])
    assert check_weak_gcd_patterns([29 * 31, 31 * 37])
    assert not check_weak_gcd_patterns([17, 19])
    assert not check_weak_gcd_patterns([3, 5])


def test_structural_weakness_forces_weak_rating() -> None:
    assert strength_score([5, 11, 17]) == 0.0
    assert assess_strength([5, 11, 17]) == "weak"
    assert assess_strength([15, 1019]) == "weak"
    assert assess_strength([]) == "weak"


def test_strength_of_small_safe_primes() -> None:
    score = strength_score(SAFE_SET)
    assert 0.45 <= score < 0.65
    assert assess_strength(SAFE_SET) == "good"
    assert assess_strength(SAFE_SET) in STRENGTH_LEVELS


def test_analysis_is_repeatable() -> None:
    assert analyze_prime_set(SAFE_SET) == analyze_prime_set(list(reversed(SAFE_SET)))


def test_analyze_prime_set_fields() -> None:
    props = analyze_prime_set(SAFE_SET)
    assert props.gaps == (156, 300)
    assert props.product == 563 * 719 * 1019
    assert props.bit_lengths == (10, 10, 10)
    assert props.strength == "good"
    assert 0.0 <= props.uniformity <= 1.0


def test_create_prime_set() -> None:
    ps = create_prime_set([1019, 563, 719], "strong-set", 42, time.perf_counter())
    assert ps.primes == (563, 719, 1019)
    assert ps.metadata.attempts == 42
    assert ps.metadata.strategy == "strong-set"
    assert ps.metadata.generation_time_ms >= 0
    d = ps.to_dict()
    assert d["primes"] == ["563", "719", "1019"]
    assert d["properties"]["product"] == str(563 * 719 * 1019)
    assert d["metadata"]["strategy"] == "strong-set"


def test_create_prime_set_rejects_duplicates() -> None:
    with pytest.raises(InvalidParameter):
        create_prime_set([563, 563], "rsa-multi", 1, time.perf_counter())
