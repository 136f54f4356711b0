"""Text and timestamp normalisation utilities."""
from __future__ import annotations

import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional

_NGRAM_STRIP_PATTERN = re.compile(r"\W+", re.UNICODE)


def normalize_whitespace(text: str) -> str:
    """Collapse consecutive whitespace characters."""
    return " ".join(text.split())


def normalize_title(text: Optional[str]) -> str:
    """Case-folded, trimmed title used for exact title comparison."""
    if not text:
        return ""
    return normalize_whitespace(text).lower()


def normalize_for_ngrams(text: Optional[str]) -> str:
    """Lowercase and drop non-word characters; letters, digits, "_" and CJK stay."""
    if not text:
        return ""
    return _NGRAM_STRIP_PATTERN.sub("", text.lower())


def parse_timestamp(value: Any, now: Optional[datetime] = None) -> datetime:
    """Parse ISO-8601, RFC 2822 or epoch values; fall back to ``now``."""
    fallback = now or datetime.now(timezone.utc)
    if value is None or value == "":
        return fallback
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return fallback
    raw = str(value).strip()
    try:
        return _as_utc(datetime.fromisoformat(raw.replace("Z", "+00:00")))
    except ValueError:
        pass
    try:
        return _as_utc(parsedate_to_datetime(raw))
    except (TypeError, ValueError, IndexError):
        return fallback


def hours_since(published_at: Optional[datetime], now: Optional[datetime] = None) -> float:
    """Hours elapsed since publication, never negative."""
    reference = now or datetime.now(timezone.utc)
    if published_at is None:
        return 0.0
    delta = _as_utc(reference) - _as_utc(published_at)
    return max(delta.total_seconds() / 3600.0, 0.0)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
