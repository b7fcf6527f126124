# rsaforge/config.py
# Environment-driven settings, read once.

from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Optional

from .telemetry import EventSink, FanoutSink, JsonlSink, NULL_SINK, PrintSink


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name, "") or "").strip()
    return int(raw) if raw else default


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name, "") or "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    workers: Optional[int] = None       # None -> os.cpu_count() or 4
    executor: str = "process"
    log_path: str = ""
    verbose: bool = False
    max_bits: int = 4096                # API cap
    redis_url: str = "redis://localhost:6379/0"
    job_timeout_s: int = 60 * 60

    @classmethod
    def from_env(cls) -> "Settings":
        workers = _env_int("RSAFORGE_WORKERS", 0)
        return cls(
            workers=workers or None,
            executor=(os.getenv("RSAFORGE_EXECUTOR", "process") or "process").strip(),
            log_path=(os.getenv("RSAFORGE_LOG_PATH", "") or "").strip(),
            verbose=_env_bool("RSAFORGE_VERBOSE"),
            max_bits=_env_int("RSAFORGE_MAX_BITS", 4096),
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            job_timeout_s=_env_int("RSAFORGE_JOB_TIMEOUT", 60 * 60),
        )

    def build_sink(self, console: bool = False) -> EventSink:
        sinks = []
        if console or self.verbose:
            sinks.append(PrintSink(verbose=self.verbose))
        if self.log_path:
            sinks.append(JsonlSink(self.log_path))
        if not sinks:
            return NULL_SINK
        return sinks[0] if len(sinks) == 1 else FanoutSink(*sinks)
