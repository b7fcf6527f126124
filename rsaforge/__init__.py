from .analytics import PrimeSet, analyze_prime_set, assess_strength, create_prime_set
from .errors import (
    EntropyFailure,
    GenerationExhausted,
    InvalidParameter,
    PrimeGenerationError,
    UnknownStrategy,
)
from .primality import is_probably_prime
from .strategies import (
    RSAPrimePair,
    generate_batch,
    generate_prime_set,
    generate_rsa_pair,
    generate_single,
    generate_strong_primes,
)
from .validators import are_valid_rsa_primes, is_strong_prime, is_weak_for_multi_rsa

__version__ = "0.4.0"
__all__ = [
    "generate_single", "generate_batch", "generate_strong_primes", "generate_rsa_pair",
    "generate_prime_set", "is_probably_prime", "is_strong_prime", "are_valid_rsa_primes",
    "is_weak_for_multi_rsa", "analyze_prime_set", "assess_strength", "create_prime_set",
    "PrimeSet", "RSAPrimePair", "PrimeGenerationError", "InvalidParameter",
    "GenerationExhausted", "UnknownStrategy", "EntropyFailure",
]
