from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

# Allow running as `python tools/bench.py` without installing the package.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from chorus.core.config import EngineConfig
from chorus.core.engine import SeedingEngine
from chorus.core.errors import ChorusError
from chorus.core.models import DEFAULT_WORD_COUNT

_BENCH_SECRET = "00" * 32


def _bench_seed(engine: SeedingEngine, date: str, iterations: int) -> float:
    t0 = time.perf_counter()
    for _ in range(iterations):
        engine.derive_daily_seed(date)
    return time.perf_counter() - t0


def _bench_words(engine: SeedingEngine, date: str, count: int, iterations: int) -> tuple[float, int]:
    returned = 0
    t0 = time.perf_counter()
    for i in range(iterations):
        returned += len(engine.sample_words(f"bench-user-{i}", date, count))
    return time.perf_counter() - t0, returned


def _report(label: str, iterations: int, seconds: float, extra: str = "") -> None:
    per_call_us = (seconds / iterations) * 1e6 if iterations else 0.0
    rate = (iterations / seconds) if seconds > 0 else 0.0
    print(f"[{label}] iterations={iterations} seconds={seconds:.4f} per_call_us={per_call_us:.1f} rate={rate:.1f}/s{extra}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Choice Chorus seeding benchmark (stdlib-only).")
    parser.add_argument("--count", type=int, default=DEFAULT_WORD_COUNT, help="Words per sample_words call.")
    parser.add_argument("--iterations", type=int, default=1000, help="Number of calls to time.")
    parser.add_argument("--date", type=str, default="2025-10-15", help="Puzzle date (YYYY-MM-DD).")
    parser.add_argument(
        "--secret",
        type=str,
        default=_BENCH_SECRET,
        help="Hex seed secret (defaults to an all-zero benchmark secret).",
    )
    args = parser.parse_args(argv)

    if args.iterations <= 0:
        parser.error("--iterations must be > 0")

    try:
        engine = SeedingEngine.from_config(EngineConfig(secret=args.secret))
        seed_seconds = _bench_seed(engine, args.date, args.iterations)
        word_seconds, returned = _bench_words(engine, args.date, args.count, args.iterations)
    except ChorusError as exc:
        print(f"[bench] failed: {exc.code}: {exc.message}", file=sys.stderr)
        return 1

    _report("seed", args.iterations, seed_seconds)
    _report("words", args.iterations, word_seconds, f" count={args.count} returned={returned}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
