# RQ job functions. Run a worker with:  rq worker primes
from __future__ import annotations
import time

from rq import get_current_job

from rsaforge import generate_batch, generate_prime_set
from rsaforge.config import Settings
from rsaforge.telemetry import FanoutSink, NULL_SINK

SETTINGS = Settings.from_env()


class JobMetaSink:
    """Mirrors progress events into job.meta so /api/job/<id> can report them."""

    def __init__(self, job):
        self.job = job

    def emit(self, event: str, **fields) -> None:
        if self.job is None or event not in ("progress", "success", "failure"):
            return
        self.job.meta["last_event"] = event
        for k in ("round", "accepted", "requested", "attempts"):
            if k in fields:
                self.job.meta[k] = fields[k]
        self.job.save_meta()


def _sink():
    base = SETTINGS.build_sink()
    job = get_current_job()
    if job is None:
        return base
    return JobMetaSink(job) if base is NULL_SINK else FanoutSink(base, JobMetaSink(job))


def prime_set_job(count: int, bits: int, strategy: str = "rsa-multi", constraints=None) -> dict:
    t0 = time.perf_counter()
    ps = generate_prime_set(int(count), int(bits), strategy, constraints,
                            workers=SETTINGS.workers, executor=SETTINGS.executor, sink=_sink())
    out = ps.to_dict()
    out["elapsed_ms"] = round((time.perf_counter() - t0) * 1000, 3)
    return out


def batch_job(bits: int, count: int, min_spacing: int = 1000) -> dict:
    t0 = time.perf_counter()
    primes = generate_batch(int(bits), int(count), int(min_spacing),
                            workers=SETTINGS.workers, executor=SETTINGS.executor, sink=_sink())
    return {"primes": [str(p) for p in primes], "bits": int(bits),
            "elapsed_ms": round((time.perf_counter() - t0) * 1000, 3)}
