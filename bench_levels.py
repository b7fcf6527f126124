#!/usr/bin/env python3
# Walks bit-length levels against a running rsaforge API and logs timings.
#   RSAFORGE_URL=http://127.0.0.1:8082 python3 bench_levels.py
import json
import os
import time
from datetime import datetime, timezone

import requests

BASE_URL = (os.getenv("RSAFORGE_URL", "http://127.0.0.1:8082") or "http://127.0.0.1:8082").rstrip("/")
LOG_PATH = os.getenv("BENCH_LOG", "bench_levels.log")
TRIALS_PER_LEVEL = int(os.getenv("TRIALS_PER_LEVEL", "3"))
READ_TIMEOUT = float(os.getenv("READ_TIMEOUT", "600"))

# (name, endpoint, payload)
LEVELS = [
    ("prime-256", "/api/prime", {"bits": 256}),
    ("prime-1024", "/api/prime", {"bits": 1024}),
    ("batch-512x4", "/api/batch", {"bits": 512, "count": 4, "min_spacing": 1 << 64}),
    ("rsa-pair-256", "/api/rsa_pair", {"bits": 256}),
    ("rsa-multi-768x3", "/api/prime_set", {"bits": 768, "count": 3, "strategy": "rsa-multi"}),
]


def now():
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def log(line: str):
    with open(LOG_PATH, "a", encoding="utf-8") as f:
        f.write(line.rstrip() + "\n")
    print(line, flush=True)


def wait_for_health(session: requests.Session, max_wait_s: float = 60.0) -> bool:
    t0 = time.time()
    back = 0.5
    while time.time() - t0 < max_wait_s:
        try:
            r = session.get(f"{BASE_URL}/api/health", timeout=3)
            if r.ok and r.json().get("ok") is True:
                return True
        except requests.RequestException:
            pass
        time.sleep(back)
        back = min(back * 1.5, 5.0)
    return False


def run_trial(session: requests.Session, name: str, path: str, payload: dict, trial: int) -> bool:
    t0 = time.perf_counter()
    try:
        r = session.post(BASE_URL + path, json=payload, timeout=READ_TIMEOUT)
    except requests.RequestException as e:
        log(f"{now()} NET_ERROR level={name} trial={trial} err={e!r}")
        return False
    elapsed_ms = round((time.perf_counter() - t0) * 1000)
    body = r.json() if r.headers.get("Content-Type", "").startswith("application/json") else {}
    log(json.dumps({
        "ts": now(), "event": "trial", "level": name, "trial": trial,
        "http": r.status_code, "elapsed_ms": elapsed_ms,
        "compute_ms": int(r.headers.get("X-Compute-ms", "0") or 0),
        "strength": (body.get("properties") or {}).get("strength"),
        "error": body.get("error"),
    }))
    return r.ok


def main():
    session = requests.Session()
    session.headers.update({"User-Agent": "rsaforge-bench/1.0"})
    log(f"{now()} START bench_levels levels={','.join(n for n, _, _ in LEVELS)} url={BASE_URL}")
    if not wait_for_health(session):
        log(f"{now()} STOP health check failed")
        return 2
    failures = 0
    for name, path, payload in LEVELS:
        ok = sum(run_trial(session, name, path, payload, t) for t in range(1, TRIALS_PER_LEVEL + 1))
        log(f"{now()} LEVEL_DONE name={name} ok={ok}/{TRIALS_PER_LEVEL}")
        failures += TRIALS_PER_LEVEL - ok
    log(f"{now()} ALL_LEVELS_DONE failures={failures}")
    return 0 if failures == 0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
