# rsaforge/errors.py
# Error taxonomy for prime generation. Per-candidate rejections are never
# errors; only validation failures, entropy failures and budget exhaustion are.

from __future__ import annotations


class PrimeGenerationError(Exception):
    """Base class for everything rsaforge raises on purpose."""


class InvalidParameter(PrimeGenerationError, ValueError):
    """Bad bit length, count or spacing. Raised before any attempt is spent."""


class UnknownStrategy(PrimeGenerationError, ValueError):
    def __init__(self, strategy: str):
        self.strategy = strategy
        super().__init__(f"Unknown strategy: {strategy}")


class EntropyFailure(PrimeGenerationError):
    """The entropy source failed. Systemic, never retried."""


class GenerationExhausted(PrimeGenerationError):
    def __init__(self, attempts: int, found: int, requested: int = 1):
        self.attempts = attempts
        self.found = found
        self.requested = requested
        super().__init__(
            f"Only generated {found}/{requested} primes after {attempts} attempts"
        )
