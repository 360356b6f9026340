from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple


MIN_WORD_COUNT = 1
MAX_WORD_COUNT = 100
DEFAULT_WORD_COUNT = 12
SEED_HEX_LEN = 64
SEED_PREVIEW_LEN = 8


@dataclass(frozen=True)
class Slot:
    words: Tuple[str, ...]


@dataclass(frozen=True)
class Theme:
    key: str
    name: str
    slots: Mapping[str, Slot]

    @property
    def slot_keys(self) -> Tuple[str, ...]:
        return tuple(sorted(self.slots))

    def word_count(self) -> int:
        return sum(len(slot.words) for slot in self.slots.values())


@dataclass(frozen=True)
class WordPool:
    version: str
    themes: Mapping[str, Theme]

    @property
    def theme_keys(self) -> Tuple[str, ...]:
        # Canonical order; never depends on document or dict insertion order.
        return tuple(sorted(self.themes))


@dataclass(frozen=True)
class LexiconEntry:
    slot: str
    cluster: str


@dataclass(frozen=True)
class Lexicon:
    version: str
    mappings: Mapping[str, LexiconEntry]

    def get(self, word: str) -> Optional[LexiconEntry]:
        return self.mappings.get(word)


@dataclass(frozen=True)
class DailySeed:
    seed_hex: str
    theme: str
    pools_version: str
    created_at: int

    @property
    def seed_preview(self) -> str:
        return self.seed_hex[:SEED_PREVIEW_LEN]

    def as_document(self) -> dict[str, Any]:
        return {
            "seedHex": self.seed_hex,
            "theme": self.theme,
            "poolsVersion": self.pools_version,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_document(cls, raw: Mapping[str, Any]) -> "DailySeed":
        seed_hex = raw.get("seedHex")
        theme = raw.get("theme")
        pools_version = raw.get("poolsVersion")
        created_at = raw.get("createdAt")
        if not isinstance(seed_hex, str) or not isinstance(theme, str) or not isinstance(pools_version, str):
            raise ValueError("seed document requires string seedHex, theme and poolsVersion")
        if isinstance(created_at, bool) or not isinstance(created_at, int) or created_at < 0:
            raise ValueError("seed document requires a non-negative integer createdAt")
        return cls(seed_hex=seed_hex, theme=theme, pools_version=pools_version, created_at=created_at)


@dataclass(frozen=True)
class WordRecord:
    word: str
    slot: str
    cluster: str


@dataclass(frozen=True)
class WordSetResult:
    records: Tuple[WordRecord, ...]
    theme: str
    requested: int
    capacity: int

    @property
    def words(self) -> Tuple[str, ...]:
        return tuple(r.word for r in self.records)

    def as_lines(self, show_meta: bool = False) -> Tuple[str, ...]:
        if not show_meta:
            return self.words
        return tuple(f"{r.word}\t[{r.slot}] cluster='{r.cluster}'" for r in self.records)
