from __future__ import annotations

import datetime as _dt
import json
import logging
import time
from contextlib import contextmanager
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from chorus.core import word_sampler
from chorus.core.config import EngineConfig, load_config
from chorus.core.daily_seed import DailySeedGenerator, parse_seed_secret
from chorus.core.errors import ChorusError, ConfigurationError, InternalError, ValidationError, format_error_text
from chorus.core.identity import UserIdHasher
from chorus.core.models import DEFAULT_WORD_COUNT, DailySeed, Lexicon, Theme, WordPool, WordSetResult
from chorus.core.pool_store import check_pool_lexicon_consistency, load_pool_data
from chorus.core.user_stream import open_stream
from chorus.core.validation import validate_count, validate_date, validate_user_id, validate_word_picks

LOGGER = logging.getLogger("chorus.engine")

_UNEXPECTED_ERRORS = (ArithmeticError, LookupError, RuntimeError, TypeError, ValueError)


def _utc_timestamp() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat(timespec="milliseconds")


class SeedingEngine:
    """
    Deterministic daily seeding and per-user word sampling.

    Every public call is a pure function of (secret, pool data, date, user id,
    count); the only shared mutable state is the daily seed cache.
    """

    def __init__(
        self,
        secret: str,
        pool: WordPool,
        lexicon: Lexicon,
        *,
        clock: Callable[[], float] = time.time,
        user_hasher: Optional[UserIdHasher] = None,
        strict_lexicon: bool = True,
    ) -> None:
        secret = parse_seed_secret(secret)
        if strict_lexicon:
            check_pool_lexicon_consistency(pool, lexicon, strict=True)
        self._pool = pool
        self._lexicon = lexicon
        self._seeds = DailySeedGenerator(secret, pool, clock=clock)
        self._hasher = user_hasher if user_hasher is not None else UserIdHasher.from_config("", secret)
        capacities: Dict[str, int] = {}
        for key in pool.theme_keys:
            buckets = word_sampler.build_slot_buckets(pool.themes[key], lexicon)
            capacities[key] = word_sampler.distinct_cluster_count(buckets)
        self._capacities = MappingProxyType(capacities)

    @classmethod
    def from_config(cls, config: EngineConfig, *, clock: Callable[[], float] = time.time) -> "SeedingEngine":
        if config.debug:
            logging.getLogger("chorus").setLevel(logging.DEBUG)
        data = load_pool_data(config.pools_path, config.lexicon_path, strict=config.strict_lexicon)
        return cls(
            config.secret,
            data.pool,
            data.lexicon,
            clock=clock,
            user_hasher=UserIdHasher.from_config(config.user_id_pepper, config.secret),
            strict_lexicon=config.strict_lexicon,
        )

    @property
    def pool(self) -> WordPool:
        return self._pool

    @property
    def lexicon(self) -> Lexicon:
        return self._lexicon

    def theme_capacity(self, theme_key: str) -> int:
        try:
            return self._capacities[theme_key]
        except KeyError as exc:
            raise ValidationError(f"unknown theme: {theme_key}", code="unknown_theme") from exc

    def theme_for(self, seed: DailySeed) -> Theme:
        theme = self._pool.themes.get(seed.theme)
        if theme is None:
            raise ConfigurationError(
                f"theme '{seed.theme}' is not in word pool {self._pool.version}; "
                f"available: {', '.join(self._pool.theme_keys)}"
            )
        return theme

    def _sanitize_user(self, user_id: Any) -> str:
        if isinstance(user_id, str) and user_id:
            return self._hasher.preview(user_id)
        return f"<invalid:{type(user_id).__name__}>"

    @staticmethod
    def _context(operation: str, inputs: Mapping[str, Any], **extra: Any) -> str:
        payload: Dict[str, Any] = {"operation": operation, "inputs": dict(inputs), "timestamp": _utc_timestamp()}
        payload.update(extra)
        return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)

    @contextmanager
    def _operation(self, operation: str, inputs: Mapping[str, Any]) -> Iterator[None]:
        try:
            yield
        except ValidationError as exc:
            LOGGER.info("client error %s %s", format_error_text(exc), self._context(operation, inputs))
            raise
        except ChorusError as exc:
            LOGGER.error("%s %s", format_error_text(exc), self._context(operation, inputs), exc_info=True)
            raise
        except _UNEXPECTED_ERRORS as exc:
            LOGGER.exception("unexpected failure %s", self._context(operation, inputs))
            raise InternalError(f"{operation} failed unexpectedly: {exc}") from exc

    def derive_daily_seed(self, date: str) -> DailySeed:
        with self._operation("derive_daily_seed", {"date": date}):
            return self._seeds.derive(date)

    def remember_daily_seed(self, date: str, seed: Union[DailySeed, Mapping[str, Any]]) -> DailySeed:
        with self._operation("remember_daily_seed", {"date": date}):
            if not isinstance(seed, DailySeed):
                try:
                    seed = DailySeed.from_document(seed)
                except ValueError as exc:
                    raise ConfigurationError(f"invalid persisted seed for {date}: {exc}") from exc
            return self._seeds.remember(date, seed)

    def sample_word_set(self, user_id: str, date: str, count: int = DEFAULT_WORD_COUNT) -> WordSetResult:
        inputs = {"user_hash": self._sanitize_user(user_id), "date": date, "count": count}
        with self._operation("sample_words", inputs):
            validate_user_id(user_id)
            validate_date(date)
            validate_count(count)

            seed = self._seeds.derive(date)
            theme = self.theme_for(seed)
            stream = open_stream(seed, user_id)
            records = word_sampler.select_candidates(theme, self._lexicon, stream, count)
            result = WordSetResult(
                records=records,
                theme=theme.key,
                requested=count,
                capacity=self._capacities.get(theme.key, len(records)),
            )

            if LOGGER.isEnabledFor(logging.DEBUG):
                LOGGER.debug(
                    "user stream %s",
                    self._context(
                        "sample_words",
                        inputs,
                        seed_preview=seed.seed_preview,
                        theme=theme.key,
                        blocks_used=stream.blocks_used,
                        records=list(result.as_lines(show_meta=True)),
                    ),
                )
            LOGGER.info("user words generated %s", self._context("sample_words", inputs, returned=len(records)))
            return result

    def sample_words(self, user_id: str, date: str, count: int = DEFAULT_WORD_COUNT) -> List[str]:
        return list(self.sample_word_set(user_id, date, count).words)

    def validate_picks(
        self,
        user_id: str,
        date: str,
        picks: Any,
        count: int = DEFAULT_WORD_COUNT,
    ) -> Tuple[str, ...]:
        """Check submitted picks against the `count` words this user was offered for `date`."""
        offered = self.sample_words(user_id, date, count)
        with self._operation("validate_picks", {"user_hash": self._sanitize_user(user_id), "date": date}):
            return validate_word_picks(picks, offered)


def build_engine(config: Optional[EngineConfig] = None) -> SeedingEngine:
    if config is None:
        config = load_config()
    return SeedingEngine.from_config(config)


__all__ = ["SeedingEngine", "build_engine"]
