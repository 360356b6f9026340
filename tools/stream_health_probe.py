#!/usr/bin/env python3
from __future__ import annotations

import argparse
import math
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from chorus.core.daily_seed import parse_seed_secret, seed_digest
from chorus.core.user_stream import open_stream


def _estimated_collision_upper_bound(samples: int) -> int:
    # Birthday-bound estimate over 32-bit values with a conservative safety margin.
    space_size = 1 << 32
    expected = (samples * (samples - 1)) / (2.0 * space_size)
    return max(2, int(math.ceil(expected * 20.0 + 5.0)))


def _run_probe(
    *,
    seed_hex: str,
    user_id: str,
    samples: int,
    buckets: int,
    min_unique_ratio: float,
    min_ones_ratio: float,
    max_ones_ratio: float,
    max_bucket_deviation: float,
) -> tuple[float, float, float, int]:
    if samples <= 0:
        raise ValueError("samples must be > 0")
    if buckets <= 1:
        raise ValueError("buckets must be > 1")
    if not (0.0 < min_unique_ratio <= 1.0):
        raise ValueError("min-unique-ratio must be within (0, 1]")
    if not (0.0 <= min_ones_ratio <= 1.0 and 0.0 <= max_ones_ratio <= 1.0 and min_ones_ratio < max_ones_ratio):
        raise ValueError("ones-ratio bounds must satisfy 0 <= min < max <= 1")
    if max_bucket_deviation <= 0.0:
        raise ValueError("max-bucket-deviation must be > 0")

    stream = open_stream(seed_hex, user_id)
    unique_values: set[int] = set()
    total_one_bits = 0
    for _ in range(samples):
        value = stream.next_uint32()
        unique_values.add(value)
        total_one_bits += value.bit_count()

    counts = [0] * buckets
    for _ in range(samples):
        counts[stream.randbelow(buckets)] += 1

    unique_count = len(unique_values)
    collision_count = samples - unique_count
    unique_ratio = unique_count / samples
    ones_ratio = total_one_bits / (samples * 32)
    expected = samples / buckets
    deviation = max(abs(c - expected) for c in counts) / expected

    if unique_ratio < min_unique_ratio:
        raise RuntimeError(
            f"stream health probe failed: unique ratio {unique_ratio:.6f} below threshold {min_unique_ratio:.6f}"
        )
    if ones_ratio < min_ones_ratio or ones_ratio > max_ones_ratio:
        raise RuntimeError(
            f"stream health probe failed: one-bit ratio {ones_ratio:.6f} outside [{min_ones_ratio:.6f}, {max_ones_ratio:.6f}]"
        )
    collision_upper_bound = _estimated_collision_upper_bound(samples)
    if collision_count > collision_upper_bound:
        raise RuntimeError(
            "stream health probe failed: observed collisions exceed conservative birthday bound "
            f"({collision_count} > {collision_upper_bound})"
        )
    if deviation > max_bucket_deviation:
        raise RuntimeError(
            f"stream health probe failed: randbelow bucket deviation {deviation:.6f} above {max_bucket_deviation:.6f}"
        )

    return unique_ratio, ones_ratio, deviation, collision_count


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Sanity probe for the per-user HMAC stream. "
            "This is a smoke check, not a statistical certification."
        )
    )
    parser.add_argument("--secret", type=str, default="00" * 32, help="Hex seed secret used to derive the stream key.")
    parser.add_argument("--date", type=str, default="2025-10-15", help="Date the seed is derived for.")
    parser.add_argument("--user-id", type=str, default="probe-user", help="User id the stream is opened for.")
    parser.add_argument("--samples", type=int, default=4096, help="Number of uint32 draws to sample (default: 4096).")
    parser.add_argument("--buckets", type=int, default=7, help="randbelow bound for the bucket check (default: 7).")
    parser.add_argument("--min-unique-ratio", type=float, default=0.999, help="Minimum unique value ratio.")
    parser.add_argument("--min-ones-ratio", type=float, default=0.47, help="Minimum one-bit ratio bound.")
    parser.add_argument("--max-ones-ratio", type=float, default=0.53, help="Maximum one-bit ratio bound.")
    parser.add_argument(
        "--max-bucket-deviation",
        type=float,
        default=0.2,
        help="Maximum relative deviation of any randbelow bucket from its expected count (default: 0.2).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        seed_hex = seed_digest(parse_seed_secret(args.secret), args.date).hex()
        unique_ratio, ones_ratio, deviation, collisions = _run_probe(
            seed_hex=seed_hex,
            user_id=args.user_id,
            samples=args.samples,
            buckets=args.buckets,
            min_unique_ratio=args.min_unique_ratio,
            min_ones_ratio=args.min_ones_ratio,
            max_ones_ratio=args.max_ones_ratio,
            max_bucket_deviation=args.max_bucket_deviation,
        )
    except (RuntimeError, ValueError) as exc:
        print(f"[stream] probe failed: {exc}", file=sys.stderr)
        return 1

    print(f"[stream] samples={args.samples} buckets={args.buckets} seed_preview={seed_hex[:8]}")
    print(f"[stream] unique_ratio={unique_ratio:.6f}")
    print(f"[stream] one_bit_ratio={ones_ratio:.6f}")
    print(f"[stream] bucket_deviation={deviation:.6f}")
    print(f"[stream] collisions={collisions}")
    print("[stream] probe ok")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
