#!/usr/bin/env python3
# prime_cli.py: generate and check primes from the shell.
#   python3 prime_cli.py single 512
#   python3 prime_cli.py batch 64 --count 5 --min-spacing 100000
#   python3 prime_cli.py set 3072 --count 3 --strategy rsa-multi --json
#   echo 1019 | python3 prime_cli.py check
import argparse
import json
import sys

from rsaforge import (
    PrimeGenerationError,
    generate_batch,
    generate_prime_set,
    generate_rsa_pair,
    generate_single,
    generate_strong_primes,
    is_probably_prime,
    is_strong_prime,
)
from rsaforge.config import Settings
from rsaforge.strategies import STRATEGIES


def _kwargs(args, settings: Settings) -> dict:
    return {
        "workers": args.workers or settings.workers,
        "executor": args.executor or settings.executor,
        "max_attempts": args.max_attempts,
        "sink": settings.build_sink(console=args.verbose),
    }


def _emit(args, payload: dict, line: str) -> None:
    print(json.dumps(payload) if args.json else line)


def cmd_single(args, settings):
    p = generate_single(args.bits, **_kwargs(args, settings))
    _emit(args, {"prime": str(p), "bits": args.bits}, str(p))


def cmd_batch(args, settings):
    gen = generate_strong_primes if args.strong else generate_batch
    primes = gen(args.bits, args.count, args.min_spacing, **_kwargs(args, settings))
    _emit(args, {"primes": [str(p) for p in primes], "bits": args.bits},
          "\n".join(str(p) for p in primes))


def cmd_rsa_pair(args, settings):
    pair = generate_rsa_pair(args.bits, **_kwargs(args, settings))
    _emit(args, {"p": str(pair.p), "q": str(pair.q), "bits": args.bits}, f"{pair.p}\t{pair.q}")


def cmd_set(args, settings):
    constraints = {}
    if args.min_gap is not None:
        constraints["min_gap"] = args.min_gap
    if args.allow_weak:
        constraints["avoid_weak"] = False
    ps = generate_prime_set(args.count, args.bits, args.strategy, constraints,
                            **_kwargs(args, settings))
    lines = [str(p) for p in ps.primes]
    lines.append(f"# strength={ps.properties.strength} score={ps.properties.score} "
                 f"attempts={ps.metadata.attempts} ms={ps.metadata.generation_time_ms}")
    _emit(args, ps.to_dict(), "\n".join(lines))


def _check_one(args, n: int) -> int:
    bits = n.bit_length()
    prime = is_probably_prime(n, bits)
    strong = prime and is_strong_prime(n, bits)
    kind = "strong" if strong else ("prime" if prime else "composite")
    _emit(args, {"n": str(n), "bits": bits, "class": kind}, f"{n}\t{kind}")
    return 0 if prime else 1


def cmd_check(args, settings):
    rc = 0
    if args.N:
        for n in args.N:
            rc |= _check_one(args, n)
        return rc
    for line in sys.stdin:
        line = line.strip()
        if not line:
            continue
        try:
            n = int(line, 10)
        except ValueError:
            print(f"# skip: {line}", file=sys.stderr)
            rc |= 2
            continue
        rc |= _check_one(args, n)
    return rc


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="prime_cli", description="rsaforge prime generation")
    ap.add_argument("--json", action="store_true", help="emit JSON instead of plain lines")
    ap.add_argument("-v", "--verbose", action="store_true", help="print lifecycle events to stderr")
    ap.add_argument("--workers", type=int, default=None, help="parallel search tasks per round")
    ap.add_argument("--executor", choices=("process", "thread"), default=None)
    ap.add_argument("--max-attempts", type=int, default=None, help="override the attempt ceiling")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p = sub.add_parser("single", help="one probable prime")
    p.add_argument("bits", type=int)
    p.set_defaults(func=cmd_single)

    p = sub.add_parser("batch", help="spaced batch of primes")
    p.add_argument("bits", type=int)
    p.add_argument("--count", type=int, default=2)
    p.add_argument("--min-spacing", type=int, default=1000)
    p.add_argument("--strong", action="store_true", help="strong (safe) primes only")
    p.set_defaults(func=cmd_batch)

    p = sub.add_parser("rsa-pair", help="RSA prime pair, each prime BITS long")
    p.add_argument("bits", type=int)
    p.set_defaults(func=cmd_rsa_pair)

    p = sub.add_parser("set", help="prime set with strength analytics")
    p.add_argument("bits", type=int, help="modulus bits (rsa-*) or per-prime bits (strong-set)")
    p.add_argument("--count", type=int, default=3)
    p.add_argument("--strategy", choices=sorted(STRATEGIES), default="rsa-multi")
    p.add_argument("--min-gap", type=int, default=None)
    p.add_argument("--allow-weak", action="store_true", help="skip the multi-prime weakness check")
    p.set_defaults(func=cmd_set)

    p = sub.add_parser("check", help="classify integers (args or stdin)")
    p.add_argument("N", nargs="*", type=int)
    p.set_defaults(func=cmd_check)
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        rc = args.func(args, Settings.from_env())
    except PrimeGenerationError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return rc or 0


if __name__ == "__main__":
    raise SystemExit(main())
