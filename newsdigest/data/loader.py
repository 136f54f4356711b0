"""Load candidate batches and cross-run history files."""
from __future__ import annotations

import json
import pathlib
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

from .models import Category, NewsItem, Region
from .preprocess import normalize_whitespace, parse_timestamp
from ..utils.io import read_json, read_jsonl, write_json
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)


def parse_news_item(record: dict, now: Optional[datetime] = None) -> NewsItem:
    """Convert a loosely shaped record into a ``NewsItem`` without raising."""
    published_raw = _first(record, "publishedAt", "published_at", "pubDate", "isoDate")
    return NewsItem(
        title=_text(_first(record, "title")),
        url=_text(_first(record, "url", "link")),
        summary=_text(_first(record, "summary")),
        snippet=_text(_first(record, "snippet", "contentSnippet", "description")),
        source=_text(_first(record, "source")),
        published_at=parse_timestamp(published_raw, now=now),
        region=Region.parse(_first(record, "region")),
        category=Category.parse(_first(record, "category", "section")),
    )


def parse_news_items(records: Iterable[Any], now: Optional[datetime] = None) -> List[NewsItem]:
    items: List[NewsItem] = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            LOGGER.warning("Skipping record %s: expected an object, got %s", index, type(record).__name__)
            continue
        items.append(parse_news_item(record, now=now))
    return items


def load_candidates(path: str | pathlib.Path, now: Optional[datetime] = None) -> List[NewsItem]:
    """Load the fetch collaborator's candidate batch (JSON array, envelope or JSONL)."""
    data_path = pathlib.Path(path)
    records = _read_records(data_path)
    items = parse_news_items(records, now=now)
    LOGGER.info("Loaded %s candidate items from %s", len(items), data_path)
    return items


def load_history(path: str | pathlib.Path | None) -> List[NewsItem]:
    """Load the previous run's published items; any failure yields an empty list."""
    if not path:
        return []
    data_path = pathlib.Path(path)
    if not data_path.exists():
        LOGGER.warning("History file %s not found; skipping cross-day dedup", data_path)
        return []
    try:
        records = _read_records(data_path)
    except (OSError, ValueError) as exc:
        LOGGER.warning("History file %s could not be read (%s); skipping cross-day dedup", data_path, exc)
        return []
    items = parse_news_items(records)
    LOGGER.info("Loaded %s history items from %s", len(items), data_path)
    return items


def write_history(path: str | pathlib.Path, items: Iterable[NewsItem]) -> None:
    """Persist published items for the next run's cross-day comparison."""
    articles = [item.to_record() for item in items]
    payload = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "count": len(articles),
        "articles": articles,
    }
    write_json(path, payload)


def _read_records(data_path: pathlib.Path) -> List[Any]:
    if data_path.suffix == ".jsonl":
        return list(read_jsonl(data_path))
    payload = read_json(data_path)
    if isinstance(payload, dict):
        articles = payload.get("articles", payload.get("items"))
        if isinstance(articles, list):
            return articles
        raise ValueError(f"{data_path} has no 'articles' list")
    if isinstance(payload, list):
        return payload
    raise ValueError(f"Unsupported JSON layout in {data_path}")


def _first(record: dict, *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value not in (None, ""):
            return value
    return None


def _text(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        value = json.dumps(value, ensure_ascii=False) if isinstance(value, (dict, list)) else str(value)
    return normalize_whitespace(value)
