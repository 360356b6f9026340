from __future__ import annotations

import hashlib
import hmac
from typing import List, Sequence, TypeVar, Union

from chorus.core.errors import ValidationError
from chorus.core.models import DailySeed

T = TypeVar("T")

_COUNTER_BYTES = 8
_MAX_BLOCK_INDEX = (1 << (8 * _COUNTER_BYTES)) - 1
_WORD_BYTES = 4
_WORD_SPACE = 1 << (8 * _WORD_BYTES)


def _encode_counter_bytes(counter: int) -> bytes:
    if counter < 0:
        raise ValueError("stream counter must be non-negative")
    # Fixed width keeps (user_id, counter) encodings unambiguous.
    return counter.to_bytes(_COUNTER_BYTES, "big")


def stream_block(seed_hex: str, user_id: str, index: int) -> bytes:
    msg = user_id.encode("utf-8") + _encode_counter_bytes(index)
    return hmac.new(seed_hex.encode("ascii"), msg, hashlib.sha256).digest()


class UserStream:
    """
    Reproducible draw sequence for one (daily seed, user) pair.

    Blocks are HMAC-SHA256(seed_hex, user_id || uint64_be(i)) and are computed
    only when the previous one is used up. The block index and byte offset are
    the only mutable state.
    """

    def __init__(self, seed_hex: str, user_id: str) -> None:
        if not isinstance(user_id, str) or not user_id:
            raise ValidationError("user_id must be a non-empty string", code="invalid_user_id")
        self._key = seed_hex.encode("ascii")
        self._prefix = user_id.encode("utf-8")
        self._next_index = 0
        self._block = b""
        self._offset = 0

    @property
    def blocks_used(self) -> int:
        return self._next_index

    def _advance(self) -> None:
        if self._next_index > _MAX_BLOCK_INDEX:
            raise RuntimeError("user stream exhausted its block counter")
        msg = self._prefix + _encode_counter_bytes(self._next_index)
        self._block = hmac.new(self._key, msg, hashlib.sha256).digest()
        self._next_index += 1
        self._offset = 0

    def next_uint32(self) -> int:
        if self._offset + _WORD_BYTES > len(self._block):
            self._advance()
        start = self._offset
        self._offset += _WORD_BYTES
        return int.from_bytes(self._block[start : self._offset], "big")

    def randbelow(self, n: int) -> int:
        if n <= 0:
            raise ValueError("randbelow bound must be positive")
        if n == 1:
            return 0
        if n > _WORD_SPACE:
            raise ValueError(f"randbelow bound must be <= {_WORD_SPACE}")
        # Reject the tail that would make low residues more likely.
        limit = _WORD_SPACE - (_WORD_SPACE % n)
        while True:
            value = self.next_uint32()
            if value < limit:
                return value % n

    def shuffle(self, items: Sequence[T]) -> List[T]:
        out = list(items)
        for i in range(len(out) - 1, 0, -1):
            j = self.randbelow(i + 1)
            out[i], out[j] = out[j], out[i]
        return out


def open_stream(daily_seed: Union[DailySeed, str], user_id: str) -> UserStream:
    seed_hex = daily_seed.seed_hex if isinstance(daily_seed, DailySeed) else daily_seed
    return UserStream(seed_hex, user_id)


__all__ = [
    "stream_block",
    "UserStream",
    "open_stream",
]
