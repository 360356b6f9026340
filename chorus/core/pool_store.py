from __future__ import annotations

import json
import logging
import stat
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple

from chorus.core.errors import ConfigurationError
from chorus.core.models import Lexicon, LexiconEntry, Slot, Theme, WordPool

MAX_DATA_FILE_BYTES = 8 * 1024 * 1024
DATA_DIR = Path(__file__).resolve().parent.parent / "data"
DEFAULT_POOLS_PATH = DATA_DIR / "pools.v1.json"
DEFAULT_LEXICON_PATH = DATA_DIR / "lexicon.map.json"
_MAX_REPORTED_PROBLEMS = 10

LOGGER = logging.getLogger("chorus.pool_store")


@dataclass(frozen=True)
class PoolData:
    pool: WordPool
    lexicon: Lexicon


def read_json_document(path: Path, label: str) -> Mapping[str, Any]:
    if not path.exists():
        raise ConfigurationError(f"{label} file not found: {path}")
    try:
        st = path.stat()
    except OSError as e:
        raise ConfigurationError(f"Unable to stat {label} file '{path}': {e}") from e
    if not stat.S_ISREG(st.st_mode):
        raise ConfigurationError(f"{label} path is not a regular file: {path}")
    if st.st_size > MAX_DATA_FILE_BYTES:
        raise ConfigurationError(
            f"{label} file is too large: {path} "
            f"(max {MAX_DATA_FILE_BYTES} bytes)"
        )
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Unable to read {label} file '{path}': {e}") from e
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Invalid {label} format in '{path}' (expected JSON object).")
    return raw


def _require_version(raw: Mapping[str, Any], label: str) -> str:
    version = raw.get("version")
    if not isinstance(version, str) or not version.strip():
        raise ConfigurationError(f"Invalid {label}: missing or empty 'version'.")
    return version.strip()


def _require_object(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, dict):
        raise ConfigurationError(f"Invalid {where}: expected JSON object.")
    return value


def _parse_word(value: Any, where: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"Invalid word in {where}: words must be non-empty strings.")
    if value != value.strip():
        raise ConfigurationError(f"Invalid word {value!r} in {where}: surrounding whitespace.")
    return value


def _parse_slot(raw: Any, where: str) -> Slot:
    slot = _require_object(raw, where)
    words_raw = slot.get("words")
    if not isinstance(words_raw, list) or not words_raw:
        raise ConfigurationError(f"Invalid {where}: 'words' must be a non-empty list.")
    words: List[str] = []
    seen = set()
    for value in words_raw:
        word = _parse_word(value, where)
        if word in seen:
            raise ConfigurationError(f"Duplicate word {word!r} in {where}.")
        seen.add(word)
        words.append(word)
    return Slot(words=tuple(words))


def _parse_theme(key: str, raw: Any) -> Theme:
    where = f"theme '{key}'"
    theme = _require_object(raw, where)
    name = theme.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ConfigurationError(f"Invalid {where}: missing or empty 'name'.")
    slots_raw = _require_object(theme.get("slots"), f"{where} slots")
    if not slots_raw:
        raise ConfigurationError(f"Invalid {where}: at least one slot is required.")
    slots: Dict[str, Slot] = {}
    for slot_key in sorted(slots_raw):
        if not slot_key.strip():
            raise ConfigurationError(f"Invalid {where}: empty slot key.")
        slots[slot_key] = _parse_slot(slots_raw[slot_key], f"{where} slot '{slot_key}'")
    return Theme(key=key, name=name.strip(), slots=MappingProxyType(slots))


def parse_word_pool(raw: Mapping[str, Any]) -> WordPool:
    version = _require_version(raw, "word pool")
    themes_raw = _require_object(raw.get("themes"), "word pool themes")
    if not themes_raw:
        raise ConfigurationError("Invalid word pool: at least one theme is required.")
    themes: Dict[str, Theme] = {}
    for key in sorted(themes_raw):
        if not key.strip():
            raise ConfigurationError("Invalid word pool: empty theme key.")
        themes[key] = _parse_theme(key, themes_raw[key])
    return WordPool(version=version, themes=MappingProxyType(themes))


def parse_lexicon(raw: Mapping[str, Any]) -> Lexicon:
    version = _require_version(raw, "lexicon")
    mappings_raw = _require_object(raw.get("mappings"), "lexicon mappings")
    mappings: Dict[str, LexiconEntry] = {}
    for word, entry_raw in mappings_raw.items():
        where = f"lexicon entry '{word}'"
        entry = _require_object(entry_raw, where)
        slot = entry.get("slot")
        cluster = entry.get("cluster")
        if not isinstance(slot, str) or not slot.strip():
            raise ConfigurationError(f"Invalid {where}: missing or empty 'slot'.")
        if not isinstance(cluster, str) or not cluster.strip():
            raise ConfigurationError(f"Invalid {where}: missing or empty 'cluster'.")
        mappings[word] = LexiconEntry(slot=slot.strip(), cluster=cluster.strip())
    return Lexicon(version=version, mappings=MappingProxyType(mappings))


def find_consistency_problems(pool: WordPool, lexicon: Lexicon) -> Tuple[str, ...]:
    problems: List[str] = []
    for theme_key in pool.theme_keys:
        theme = pool.themes[theme_key]
        for slot_key in theme.slot_keys:
            for word in theme.slots[slot_key].words:
                entry = lexicon.get(word)
                if entry is None:
                    problems.append(f"{theme_key}/{slot_key}: '{word}' has no lexicon entry")
                elif entry.slot != slot_key:
                    problems.append(
                        f"{theme_key}/{slot_key}: '{word}' is classified as slot '{entry.slot}' in the lexicon"
                    )
    return tuple(problems)


def check_pool_lexicon_consistency(pool: WordPool, lexicon: Lexicon, *, strict: bool = True) -> None:
    problems = find_consistency_problems(pool, lexicon)
    if not problems:
        return
    if strict:
        shown = "; ".join(problems[:_MAX_REPORTED_PROBLEMS])
        more = len(problems) - _MAX_REPORTED_PROBLEMS
        suffix = f" (and {more} more)" if more > 0 else ""
        raise ConfigurationError(
            f"Word pool {pool.version} is inconsistent with lexicon {lexicon.version}: {shown}{suffix}. "
            "Add the missing lexicon entries or fix their slots before starting."
        )
    for problem in problems:
        LOGGER.warning("pool/lexicon drift tolerated: %s", problem)


def load_pool_data(
    pools_path: Path = DEFAULT_POOLS_PATH,
    lexicon_path: Path = DEFAULT_LEXICON_PATH,
    *,
    strict: bool = True,
) -> PoolData:
    pool = parse_word_pool(read_json_document(pools_path, "word pool"))
    lexicon = parse_lexicon(read_json_document(lexicon_path, "lexicon"))
    check_pool_lexicon_consistency(pool, lexicon, strict=strict)
    LOGGER.info(
        "loaded word pool %s (%d themes) and lexicon %s (%d words)",
        pool.version,
        len(pool.themes),
        lexicon.version,
        len(lexicon.mappings),
    )
    return PoolData(pool=pool, lexicon=lexicon)


__all__ = [
    "MAX_DATA_FILE_BYTES",
    "DEFAULT_POOLS_PATH",
    "DEFAULT_LEXICON_PATH",
    "PoolData",
    "read_json_document",
    "parse_word_pool",
    "parse_lexicon",
    "find_consistency_problems",
    "check_pool_lexicon_consistency",
    "load_pool_data",
]
