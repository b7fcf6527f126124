import time
from flask import Flask, jsonify, request
from werkzeug.exceptions import BadRequest

import rsaforge
from prime_api import prime_bp
from rsaforge import (
    EntropyFailure,
    GenerationExhausted,
    InvalidParameter,
    UnknownStrategy,
    generate_batch,
    generate_prime_set,
    generate_rsa_pair,
    generate_single,
    is_probably_prime,
    is_strong_prime,
)
from rsaforge.config import Settings

SETTINGS = Settings.from_env()
SINK = SETTINGS.build_sink()

app = Flask(__name__)
app.register_blueprint(prime_bp)


def _gen_kwargs() -> dict:
    return {"workers": SETTINGS.workers, "executor": SETTINGS.executor, "sink": SINK}


def _payload() -> dict:
    return request.get_json(force=True, silent=True) or {}


def _int_field(data: dict, name: str, default=None) -> int:
    raw = data.get(name, default)
    if raw is None:
        raise BadRequest(f"missing {name}")
    try:
        return int(str(raw).strip())
    except ValueError:
        raise BadRequest(f"{name} must be an integer")


def _bits(data: dict) -> int:
    bits = _int_field(data, "bits")
    if bits > SETTINGS.max_bits:
        raise BadRequest(f"Max {SETTINGS.max_bits} bits.")
    return bits


def _timed(payload: dict, t0: float):
    resp = jsonify(payload)
    resp.headers["X-Compute-ms"] = str(int((time.perf_counter() - t0) * 1000))
    return resp

# ---------- errors ----------

@app.errorhandler(BadRequest)
def bad_request(e):
    return jsonify(error=e.description), 400


@app.errorhandler(InvalidParameter)
@app.errorhandler(UnknownStrategy)
def invalid(e):
    return jsonify(error=str(e)), 400


@app.errorhandler(EntropyFailure)
def no_entropy(e):
    return jsonify(error=str(e)), 503


@app.errorhandler(GenerationExhausted)
def exhausted(e):
    return jsonify(error=str(e), attempts=e.attempts, found=e.found, requested=e.requested), 422

# ---------- API ----------

@app.get("/api/health")
def api_health():
    return jsonify(ok=True, version=rsaforge.__version__, executor=SETTINGS.executor,
                   max_bits=SETTINGS.max_bits)


@app.post("/api/prime")
def api_prime():
    t0 = time.perf_counter()
    bits = _bits(_payload())
    p = generate_single(bits, **_gen_kwargs())
    return _timed({"prime": str(p), "bits": bits}, t0)


@app.post("/api/batch")
def api_batch():
    t0 = time.perf_counter()
    data = _payload()
    bits = _bits(data)
    count = _int_field(data, "count", 1)
    spacing = _int_field(data, "min_spacing", 1000)
    primes = generate_batch(bits, count, spacing, **_gen_kwargs())
    return _timed({"primes": [str(p) for p in primes], "bits": bits}, t0)


@app.post("/api/rsa_pair")
def api_rsa_pair():
    t0 = time.perf_counter()
    bits = _bits(_payload())
    pair = generate_rsa_pair(bits, **_gen_kwargs())
    return _timed({"p": str(pair.p), "q": str(pair.q), "bits": bits}, t0)


@app.post("/api/prime_set")
def api_prime_set():
    t0 = time.perf_counter()
    data = _payload()
    bits = _bits(data)
    count = _int_field(data, "count")
    strategy = str(data.get("strategy", "rsa-multi"))
    constraints = data.get("constraints") or None
    if constraints is not None and not isinstance(constraints, dict):
        raise BadRequest("constraints must be an object")
    ps = generate_prime_set(count, bits, strategy, constraints, **_gen_kwargs())
    return _timed(ps.to_dict(), t0)


@app.post("/api/check")
def api_check():
    t0 = time.perf_counter()
    n = _int_field(_payload(), "n")
    bits = n.bit_length()
    if bits > SETTINGS.max_bits:
        raise BadRequest(f"Max {SETTINGS.max_bits} bits.")
    return _timed({"n": str(n), "bits": bits,
                   "probable_prime": is_probably_prime(n, bits),
                   "strong_prime": is_strong_prime(n, bits)}, t0)


if __name__ == "__main__":
    app.run("127.0.0.1", 8082, debug=True)
