# rsaforge/analytics.py
# Post-hoc statistics over an accepted prime set: gaps, product, pairwise
# relationships, spacing uniformity and a strength rating. Everything here is a
# pure function of the prime list, so recomputing gives identical results
# (up to the 4^-k Miller-Rabin error of the strong-prime re-check).

from __future__ import annotations
import math
import time
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

import numpy as np

from .arith import gcd
from .errors import InvalidParameter
from .validators import is_strong_prime

STRENGTH_LEVELS = ("weak", "good", "strong", "exceptional")
COMMON_FACTORS = (3, 5, 7, 11, 13, 17, 19, 23)

# weights for the strength score; they sum to 1
W_BITS, W_STRONG, W_UNIFORM, W_GAP, W_CONSISTENCY = 0.35, 0.25, 0.15, 0.15, 0.10
FULL_SCORE_BITS = 1024
THRESHOLDS = ((0.85, "exceptional"), (0.65, "strong"), (0.45, "good"))


@dataclass(frozen=True)
class PrimeSetProperties:
    gaps: Tuple[int, ...]
    product: int
    bit_lengths: Tuple[int, ...]
    relationships: Tuple[str, ...]
    strength: str
    score: float
    uniformity: float
    clustering: bool


@dataclass(frozen=True)
class GenerationMetadata:
    attempts: int
    generation_time_ms: float
    strategy: str


@dataclass(frozen=True)
class PrimeSet:
    primes: Tuple[int, ...]
    properties: PrimeSetProperties
    metadata: GenerationMetadata

    def to_dict(self) -> Dict:
        props = asdict(self.properties)
        props["gaps"] = [str(g) for g in self.properties.gaps]
        props["product"] = str(self.properties.product)
        props["bit_lengths"] = list(self.properties.bit_lengths)
        props["relationships"] = list(self.properties.relationships)
        return {
            "primes": [str(p) for p in self.primes],
            "properties": props,
            "metadata": asdict(self.metadata),
        }

# ---------- individual measures ----------

def compute_gaps(primes: Sequence[int]) -> List[int]:
    s = sorted(primes)
    return [b - a for a, b in zip(s, s[1:])]


def calculate_average_gap(primes: Sequence[int]) -> int:
    """Integer mean gap of the sorted primes; 0 for fewer than two."""
    if len(primes) < 2:
        return 0
    s = sorted(primes)
    return (s[-1] - s[0]) // (len(s) - 1)


def analyze_relationships(primes: Sequence[int]) -> List[str]:
    tags: List[str] = []
    s = sorted(primes)
    for p1, p2 in zip(s, s[1:]):
        if p2 - p1 == 2:
            tags.append(f"twin:{p1},{p2}")
        if p2 == 2 * p1 + 1:
            tags.append(f"sophie-germain:{p1}->{p2}")
        if gcd(p1 - 1, p2 - 1) == 2:
            tags.append(f"coprime-totient:{p1},{p2}")
    return tags


def analyze_distribution(primes: Sequence[int]) -> Tuple[float, bool]:
    """
    (uniformity, clustering). Uniformity is 1 / (1 + std/mean) of the gaps:
    1 for perfectly even spacing, towards 0 as spacing gets irregular.
    Clustering: more than 30% of gaps under a tenth of the mean.
    """
    if len(primes) < 3:
        return 1.0, False
    gaps = compute_gaps(primes)
    total = sum(gaps)
    if total <= 0:
        return 0.0, True
    n = len(gaps)
    # gaps relative to the mean; int / int keeps big gaps in float range
    rel = np.array([g * n / total for g in gaps], dtype=float)
    uniformity = 1.0 / (1.0 + float(np.std(rel)))
    clustering = int(np.count_nonzero(rel < 0.1)) > 0.3 * n
    return uniformity, clustering


def check_arithmetic_progression(primes: Sequence[int]) -> bool:
    if len(primes) < 3:
        return False
    gaps = compute_gaps(primes)
    return all(g == gaps[0] for g in gaps)


def check_weak_gcd_patterns(primes: Sequence[int]) -> bool:
    for p in primes:
        for f in COMMON_FACTORS:
            if p % f == 0 and p != f:
                return True
    for i, a in enumerate(primes):
        for b in primes[i + 1:]:
            if gcd(a, b) > 1:
                return True
    return False


def strength_score(primes: Sequence[int]) -> float:
    """Weighted score in [0, 1]; 0 when a structural weakness is present."""
    if not primes:
        return 0.0
    if check_arithmetic_progression(primes) or check_weak_gcd_patterns(primes):
        return 0.0
    bits = [p.bit_length() for p in primes]
    min_bits, max_bits = min(bits), max(bits)

    bit_score = min(1.0, min_bits / FULL_SCORE_BITS)
    strong_fraction = sum(1 for p in primes if is_strong_prime(p, p.bit_length())) / len(primes)
    uniformity, _ = analyze_distribution(primes)
    if len(primes) > 1:
        gap_ratio = min(1.0, calculate_average_gap(primes) / (1 << (min_bits // 2)))
    else:
        gap_ratio = 1.0
    consistency = 1.0 - (max_bits - min_bits) / max_bits

    score = (W_BITS * bit_score + W_STRONG * strong_fraction + W_UNIFORM * uniformity
             + W_GAP * gap_ratio + W_CONSISTENCY * consistency)
    return round(score, 6)


def _label(score: float) -> str:
    for threshold, label in THRESHOLDS:
        if score >= threshold:
            return label
    return "weak"


def assess_strength(primes: Sequence[int]) -> str:
    return _label(strength_score(primes))

# ---------- PrimeSet ----------

def analyze_prime_set(primes: Iterable[int]) -> PrimeSetProperties:
    s = sorted(primes)
    uniformity, clustering = analyze_distribution(s)
    score = strength_score(s)
    return PrimeSetProperties(
        gaps=tuple(compute_gaps(s)),
        product=math.prod(s),
        bit_lengths=tuple(p.bit_length() for p in s),
        relationships=tuple(analyze_relationships(s)),
        strength=_label(score),
        score=score,
        uniformity=uniformity,
        clustering=clustering,
    )


def create_prime_set(primes: Iterable[int], strategy: str, attempts: int, started: float) -> PrimeSet:
    """Freeze an accepted set. `started` is a time.perf_counter() reading."""
    s = tuple(sorted(primes))
    if len(set(s)) != len(s):
        raise InvalidParameter("prime set contains duplicates")
    elapsed_ms = round((time.perf_counter() - started) * 1000, 3)
    return PrimeSet(
        primes=s,
        properties=analyze_prime_set(s),
        metadata=GenerationMetadata(attempts=attempts, generation_time_ms=elapsed_ms, strategy=strategy),
    )
