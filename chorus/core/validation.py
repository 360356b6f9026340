from __future__ import annotations

import datetime as _dt
import re
from typing import Any, Iterable, Sequence, Tuple

from chorus.core.errors import ValidationError
from chorus.core.models import MAX_WORD_COUNT, MIN_WORD_COUNT

# ASCII digits only; `\d` would also accept other Unicode digit classes.
_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def validate_date(value: Any, field: str = "date") -> _dt.date:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string in YYYY-MM-DD format", code="invalid_date")
    if not _DATE_RE.fullmatch(value):
        raise ValidationError(
            f"{field} must be in YYYY-MM-DD format (e.g. \"2025-10-15\"), got {value!r}",
            code="invalid_date",
        )
    year, month, day = (int(part) for part in value.split("-"))
    try:
        return _dt.date(year, month, day)
    except ValueError as exc:
        raise ValidationError(f"{field} is not a real calendar date: {value!r}", code="invalid_date") from exc


def validate_user_id(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("user_id must be a non-empty string", code="invalid_user_id")
    return value


def validate_count(value: Any, field: str = "count") -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer", code="invalid_count")
    if not (MIN_WORD_COUNT <= value <= MAX_WORD_COUNT):
        raise ValidationError(
            f"{field} must be between {MIN_WORD_COUNT} and {MAX_WORD_COUNT} (got {value})",
            code="invalid_count",
        )
    return value


def validate_word_picks(picks: Any, offered: Iterable[str], field: str = "words") -> Tuple[str, ...]:
    """
    Check a submitted pick list against the words the user was offered.
    Returns the picks as a tuple in submission order.
    """
    if isinstance(picks, (str, bytes, bytearray)) or not isinstance(picks, Sequence):
        raise ValidationError(f"{field} must be an array of strings", code="invalid_words")
    if not (MIN_WORD_COUNT <= len(picks) <= MAX_WORD_COUNT):
        raise ValidationError(
            f"{field} must contain between {MIN_WORD_COUNT} and {MAX_WORD_COUNT} items (got {len(picks)})",
            code="word_count_exceeded",
        )

    allowed = set(offered)
    seen: set[str] = set()
    out = []
    for idx, word in enumerate(picks):
        if not isinstance(word, str) or not word.strip():
            raise ValidationError(f"{field}[{idx}] must be a non-empty string", code="invalid_words")
        if word in seen:
            raise ValidationError(f"{field}[{idx}] duplicates {word!r}", code="invalid_words")
        if word not in allowed:
            raise ValidationError(f"{field}[{idx}] {word!r} was not offered to this user", code="invalid_words")
        seen.add(word)
        out.append(word)
    return tuple(out)


__all__ = [
    "validate_date",
    "validate_user_id",
    "validate_count",
    "validate_word_picks",
]
