from __future__ import annotations

import logging
from typing import Dict, List, Optional, Set, Tuple

from chorus.core.errors import EmptyThemeError
from chorus.core.models import Lexicon, Theme, WordRecord
from chorus.core.user_stream import UserStream
from chorus.core.validation import validate_count

LOGGER = logging.getLogger("chorus.word_sampler")

SlotBuckets = Dict[str, List[WordRecord]]


def build_slot_buckets(theme: Theme, lexicon: Lexicon) -> SlotBuckets:
    """
    Annotate every theme word with its lexicon (slot, cluster) and group by slot.
    Slots come out in sorted order and words keep their document order.
    """
    buckets: SlotBuckets = {}
    seen: Set[str] = set()
    for slot_key in theme.slot_keys:
        bucket: List[WordRecord] = []
        for word in theme.slots[slot_key].words:
            if word in seen:
                continue
            entry = lexicon.get(word)
            if entry is None:
                LOGGER.warning(
                    "skipping word without lexicon entry theme=%s slot=%s word=%s",
                    theme.key,
                    slot_key,
                    word,
                )
                continue
            seen.add(word)
            bucket.append(WordRecord(word=word, slot=slot_key, cluster=entry.cluster))
        if bucket:
            buckets[slot_key] = bucket
    return buckets


def distinct_cluster_count(buckets: SlotBuckets) -> int:
    return len({record.cluster for bucket in buckets.values() for record in bucket})


def _draw_eligible(
    pending: List[WordRecord],
    stream: UserStream,
    used_words: Set[str],
    used_clusters: Set[str],
) -> Optional[WordRecord]:
    # Used words/clusters only grow, so a rejected record can be dropped for good.
    while pending:
        j = stream.randbelow(len(pending))
        record = pending[j]
        pending[j] = pending[-1]
        pending.pop()
        if record.word in used_words or record.cluster in used_clusters:
            continue
        return record
    return None


def select_candidates(
    theme: Theme,
    lexicon: Lexicon,
    stream: UserStream,
    count: int,
) -> Tuple[WordRecord, ...]:
    count = validate_count(count)
    buckets = build_slot_buckets(theme, lexicon)
    if not buckets:
        raise EmptyThemeError(f"theme '{theme.key}' has no usable candidate words after lexicon filtering")

    pending = {slot: list(records) for slot, records in buckets.items()}
    rotation = list(pending)
    if LOGGER.isEnabledFor(logging.DEBUG):
        LOGGER.debug(
            "candidate pool theme=%s slots=%s sizes=%s clusters=%d",
            theme.key,
            ",".join(rotation),
            ",".join(str(len(pending[slot])) for slot in rotation),
            distinct_cluster_count(buckets),
        )
    selected: List[WordRecord] = []
    used_words: Set[str] = set()
    used_clusters: Set[str] = set()

    while rotation and len(selected) < count:
        for slot in list(rotation):
            if len(selected) >= count:
                break
            record = _draw_eligible(pending[slot], stream, used_words, used_clusters)
            if record is None:
                # Exhausted buckets are skipped; the turn passes to the next slot.
                rotation.remove(slot)
                LOGGER.debug("slot exhausted theme=%s slot=%s picked=%d", theme.key, slot, len(selected))
                continue
            selected.append(record)
            used_words.add(record.word)
            used_clusters.add(record.cluster)
            LOGGER.debug(
                "picked #%d slot=%s word=%s cluster=%s pending=%d",
                len(selected),
                slot,
                record.word,
                record.cluster,
                len(pending[slot]),
            )

    if len(selected) < count:
        LOGGER.debug(
            "theme %s capped at %d distinct clusters (requested %d)",
            theme.key,
            len(selected),
            count,
        )
    return tuple(selected)


def sample_words(theme: Theme, lexicon: Lexicon, stream: UserStream, count: int) -> List[str]:
    return [record.word for record in select_candidates(theme, lexicon, stream, count)]


__all__ = [
    "build_slot_buckets",
    "distinct_cluster_count",
    "select_candidates",
    "sample_words",
]
