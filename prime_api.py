# Background prime-set and batch generation over Redis/RQ, for sizes too slow
# for a synchronous request.
from __future__ import annotations
import time
from datetime import datetime
from typing import Optional

from flask import Blueprint, jsonify, request
from redis import Redis
from rq import Queue
from rq.exceptions import NoSuchJobError
from rq.job import Job

from rsaforge.config import Settings
from rsaforge.strategies import STRATEGIES

prime_bp = Blueprint("prime_bp", __name__)

SETTINGS = Settings.from_env()
_queue: Optional[Queue] = None


def get_queue() -> Queue:
    global _queue
    if _queue is None:
        conn = Redis.from_url(SETTINGS.redis_url)
        _queue = Queue("primes", connection=conn, default_timeout=SETTINGS.job_timeout_s)
    return _queue

# ------------------ helpers ------------------
REQUEST_KEYS = ("kind", "bits", "count", "strategy", "min_spacing")
PROGRESS_KEYS = ("last_event", "round", "accepted", "requested", "attempts")


def _span_s(begin: Optional[datetime], end: Optional[datetime]) -> Optional[float]:
    if begin is None:
        return None
    stop = end.timestamp() if end else time.time()
    return round(max(0.0, stop - begin.timestamp()), 3)


def job_report(job: Job) -> dict:
    """Status, request, live progress and, once finished, the generated primes."""
    meta = job.meta or {}
    report = {
        "job_id": job.id,
        "status": job.get_status(),
        "request": {k: meta[k] for k in REQUEST_KEYS if k in meta},
        "progress": {k: meta[k] for k in PROGRESS_KEYS if k in meta},
        "queued_s": _span_s(job.enqueued_at, job.started_at),
        "running_s": _span_s(job.started_at, job.ended_at),
    }
    if job.is_finished:
        result = job.return_value() or {}
        report["primes"] = result.get("primes", [])
        report["elapsed_ms"] = result.get("elapsed_ms")
        if "properties" in result:
            report["properties"] = result["properties"]
            report["metadata"] = result.get("metadata")
    elif job.is_failed:
        # last traceback line carries the rsaforge error and its message
        lines = (job.exc_info or "").strip().splitlines()
        report["error"] = lines[-1] if lines else "job failed"
    return report


def _client_ip() -> str:
    xff = request.headers.get("X-Forwarded-For", "")
    return xff.split(",")[0].strip() if xff else (request.remote_addr or "")


def ip_can_start(q: Queue, ip: str) -> bool:
    """Allow only one active (queued or started) job per IP."""
    ids = list(q.started_job_registry.get_job_ids()) + list(q.get_job_ids())
    for jid in ids:
        try:
            j = Job.fetch(jid, connection=q.connection)
        except NoSuchJobError:
            continue
        if (j.meta or {}).get("ip") == ip:
            return False
    return True


def _enqueue_for_client(func: str, args: tuple, meta: dict):
    q = get_queue()
    ip = _client_ip()
    if not ip_can_start(q, ip):
        return jsonify({"error": "One active job per IP. Wait or cancel the running job."}), 429
    job = q.enqueue(func, *args, meta=dict(meta, ip=ip, submitted=time.time()))
    ids = q.get_job_ids()
    pos = ids.index(job.id) + 1 if job.id in ids else 1
    return jsonify({"job_id": job.id, "status": job.get_status(), "queue_position": pos})

# ------------------ API ------------------
@prime_bp.get("/api/queue")
def queue_info():
    q = get_queue()
    ids = q.get_job_ids()
    return jsonify({"queue": q.name, "size": len(ids), "head": ids[:10]})


@prime_bp.post("/api/prime_set/submit")
def prime_set_submit():
    data = request.get_json(silent=True) or {}
    try:
        count = int(data.get("count", 2))
        bits = int(data.get("bits", 0))
    except (TypeError, ValueError):
        return jsonify({"error": "count and bits must be integers"}), 400
    strategy = str(data.get("strategy", "rsa-multi"))
    constraints = data.get("constraints") or None
    if strategy not in STRATEGIES:
        return jsonify({"error": f"Unknown strategy: {strategy}"}), 400
    if bits < 2 or count < 1:
        return jsonify({"error": "bits must be >= 2 and count >= 1"}), 400
    if bits > SETTINGS.max_bits:
        return jsonify({"error": f"Max {SETTINGS.max_bits} bits."}), 400
    return _enqueue_for_client("prime_worker.prime_set_job", (count, bits, strategy, constraints),
                               {"kind": "prime_set", "bits": bits, "count": count,
                                "strategy": strategy})


@prime_bp.post("/api/batch/submit")
def batch_submit():
    data = request.get_json(silent=True) or {}
    try:
        bits = int(data.get("bits", 0))
        count = int(data.get("count", 2))
        spacing = int(data.get("min_spacing", 1000))
    except (TypeError, ValueError):
        return jsonify({"error": "bits, count and min_spacing must be integers"}), 400
    if bits < 2 or count < 1 or spacing < 0:
        return jsonify({"error": "bits must be >= 2, count >= 1 and min_spacing >= 0"}), 400
    if bits > SETTINGS.max_bits:
        return jsonify({"error": f"Max {SETTINGS.max_bits} bits."}), 400
    return _enqueue_for_client("prime_worker.batch_job", (bits, count, spacing),
                               {"kind": "batch", "bits": bits, "count": count,
                                "min_spacing": spacing})


@prime_bp.get("/api/job/<job_id>")
def job_status(job_id):
    try:
        job = Job.fetch(job_id, connection=get_queue().connection)
    except NoSuchJobError:
        return jsonify({"error": "unknown job"}), 404
    return jsonify(job_report(job))


@prime_bp.post("/api/job/<job_id>/abort")
def job_abort(job_id):
    conn = get_queue().connection
    try:
        job = Job.fetch(job_id, connection=conn)
    except NoSuchJobError:
        return jsonify({"error": "unknown job"}), 404
    if job.get_status() == "started":
        from rq.command import send_stop_job_command
        send_stop_job_command(conn, job_id)
    job.cancel()
    return jsonify({"ok": True, "job_id": job_id, "status": job.get_status()})
