from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from chorus.core.daily_seed import normalize_seed_secret
from chorus.core.errors import ConfigurationError
from chorus.core.identity import MIN_PEPPER_LEN
from chorus.core.pool_store import DEFAULT_LEXICON_PATH, DEFAULT_POOLS_PATH

ENV_SECRET = "CHORUS_DAILY_SEED_SECRET"
ENV_SECRET_FILE = "CHORUS_DAILY_SEED_SECRET_FILE"
ENV_POOLS_PATH = "CHORUS_POOLS_PATH"
ENV_LEXICON_PATH = "CHORUS_LEXICON_PATH"
ENV_STRICT_LEXICON = "CHORUS_STRICT_LEXICON"
ENV_USER_ID_PEPPER = "CHORUS_USER_ID_PEPPER"
ENV_DEBUG_SEEDING = "CHORUS_DEBUG_SEEDING"


@dataclass(frozen=True)
class EngineConfig:
    secret: str = field(repr=False)
    pools_path: Path = DEFAULT_POOLS_PATH
    lexicon_path: Path = DEFAULT_LEXICON_PATH
    strict_lexicon: bool = True
    user_id_pepper: str = field(default="", repr=False)
    debug: bool = False


def _parse_bool(value: str, field: str) -> bool:
    raw = value.strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off", ""):
        return False
    raise ConfigurationError(f"{field} must be a boolean")


def _read_secret_file(path: str) -> str:
    secret_path = Path(path).expanduser()
    if not secret_path.is_file():
        raise ConfigurationError(f"secret file not found: {secret_path}")
    try:
        secret = secret_path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeError) as exc:
        raise ConfigurationError(f"unable to read secret file '{secret_path}': {exc}") from exc
    if not secret:
        raise ConfigurationError(f"secret file is empty: {secret_path}")
    return secret


def _data_path(raw: str, default: Path) -> Path:
    raw = raw.strip()
    if not raw:
        return default
    return Path(raw).expanduser()


def load_config(environ: Optional[Mapping[str, str]] = None) -> EngineConfig:
    env = os.environ if environ is None else environ

    secret_value = (env.get(ENV_SECRET, "") or "").strip()
    secret_file = (env.get(ENV_SECRET_FILE, "") or "").strip()
    if secret_value and secret_file:
        raise ConfigurationError(f"set either {ENV_SECRET} or {ENV_SECRET_FILE}, not both")
    if secret_file:
        secret_value = _read_secret_file(secret_file)
    if not secret_value:
        raise ConfigurationError(f"{ENV_SECRET_FILE} or {ENV_SECRET} is required")
    secret = normalize_seed_secret(secret_value)

    pepper = (env.get(ENV_USER_ID_PEPPER, "") or "").strip()
    if pepper and len(pepper) < MIN_PEPPER_LEN:
        raise ConfigurationError(f"{ENV_USER_ID_PEPPER} must be at least {MIN_PEPPER_LEN} characters long")

    return EngineConfig(
        secret=secret,
        pools_path=_data_path(env.get(ENV_POOLS_PATH, ""), DEFAULT_POOLS_PATH),
        lexicon_path=_data_path(env.get(ENV_LEXICON_PATH, ""), DEFAULT_LEXICON_PATH),
        strict_lexicon=_parse_bool(env.get(ENV_STRICT_LEXICON, "true"), ENV_STRICT_LEXICON),
        user_id_pepper=pepper,
        debug=_parse_bool(env.get(ENV_DEBUG_SEEDING, "false"), ENV_DEBUG_SEEDING),
    )


__all__ = [
    "ENV_SECRET",
    "ENV_SECRET_FILE",
    "ENV_POOLS_PATH",
    "ENV_LEXICON_PATH",
    "ENV_STRICT_LEXICON",
    "ENV_USER_ID_PEPPER",
    "ENV_DEBUG_SEEDING",
    "EngineConfig",
    "load_config",
]
