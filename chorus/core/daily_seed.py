from __future__ import annotations

import hashlib
import hmac
import logging
import string
import threading
import time
from typing import Callable, Dict, Optional

from chorus.core.errors import ConfigurationError
from chorus.core.models import DailySeed, WordPool
from chorus.core.validation import validate_date

_THEME_INDEX_BYTES = 4
_MIN_RECOMMENDED_SECRET_BYTES = 16
_HEX_DIGITS = frozenset(string.hexdigits)

LOGGER = logging.getLogger("chorus.daily_seed")


def normalize_seed_secret(value: Optional[str]) -> str:
    if value is None:
        raise ConfigurationError(
            "CHORUS_DAILY_SEED_SECRET is required. Set it to a long random hex string "
            "(64 hex characters recommended)."
        )
    secret = value.strip()
    if not secret:
        raise ConfigurationError("daily seed secret is empty; set a long random hex string.")
    if any(ch not in _HEX_DIGITS for ch in secret) or len(secret) % 2:
        raise ConfigurationError("daily seed secret must be an even-length hex string.")
    return secret


def parse_seed_secret(value: Optional[str]) -> str:
    """Normalize the secret and warn if it is shorter than recommended."""
    secret = normalize_seed_secret(value)
    if len(secret) // 2 < _MIN_RECOMMENDED_SECRET_BYTES:
        LOGGER.warning(
            "daily seed secret is only %d bytes; %d or more is recommended",
            len(secret) // 2,
            _MIN_RECOMMENDED_SECRET_BYTES,
        )
    return secret


def seed_digest(secret: str, date: str) -> bytes:
    # Keyed by the secret text itself so every process holding the same
    # configuration value derives the same bytes.
    return hmac.new(secret.encode("ascii"), date.encode("ascii"), hashlib.sha256).digest()


def select_theme_key(digest: bytes, pool: WordPool) -> str:
    keys = pool.theme_keys
    if not keys:
        raise ConfigurationError("word pool has no themes to select from")
    index = int.from_bytes(digest[:_THEME_INDEX_BYTES], "big") % len(keys)
    return keys[index]


class DailySeedGenerator:
    """
    Derive the per-date seed and theme from the server secret.

    The result is a pure function of (secret, date, sorted theme keys). The
    in-process cache pins `created_at` to the earliest known computation.
    """

    def __init__(
        self,
        secret: str,
        pool: WordPool,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret = normalize_seed_secret(secret)
        self._pool = pool
        self._clock = clock
        self._cache: Dict[str, DailySeed] = {}
        self._lock = threading.Lock()

    @property
    def pool(self) -> WordPool:
        return self._pool

    def _derive(self, date: str) -> tuple[str, str]:
        digest = seed_digest(self._secret, date)
        return digest.hex(), select_theme_key(digest, self._pool)

    def cached(self, date: str) -> Optional[DailySeed]:
        with self._lock:
            return self._cache.get(date)

    def derive(self, date: str) -> DailySeed:
        validate_date(date)
        existing = self.cached(date)
        if existing is not None:
            return existing

        # Racing first-requests compute the same value; the first stored wins.
        seed_hex, theme = self._derive(date)
        candidate = DailySeed(
            seed_hex=seed_hex,
            theme=theme,
            pools_version=self._pool.version,
            created_at=int(self._clock()),
        )
        with self._lock:
            seed = self._cache.setdefault(date, candidate)
        if seed is candidate:
            LOGGER.info(
                "daily seed derived date=%s seed_preview=%s theme=%s pools_version=%s",
                date,
                seed.seed_preview,
                seed.theme,
                seed.pools_version,
            )
        return seed

    def remember(self, date: str, seed: DailySeed) -> DailySeed:
        """Restore a seed persisted elsewhere so `created_at` survives restarts."""
        validate_date(date)
        seed_hex, theme = self._derive(date)
        matches = hmac.compare_digest(seed.seed_hex.encode("utf-8"), seed_hex.encode("ascii"))
        if not matches or seed.theme != theme:
            raise ConfigurationError(
                f"persisted seed for {date} does not match the configured secret and word pool; "
                "the secret or pools were rotated after it was stored"
            )
        if seed.pools_version != self._pool.version:
            LOGGER.warning(
                "persisted seed for %s was created with pools %s, serving pools %s",
                date,
                seed.pools_version,
                self._pool.version,
            )
        # The oldest creation time is the one the external store already served.
        with self._lock:
            existing = self._cache.get(date)
            if existing is None or seed.created_at < existing.created_at:
                self._cache[date] = seed
                return seed
            return existing


__all__ = [
    "normalize_seed_secret",
    "parse_seed_secret",
    "seed_digest",
    "select_theme_key",
    "DailySeedGenerator",
]
