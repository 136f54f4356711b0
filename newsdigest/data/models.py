"""Dataclasses describing the records that flow through the curation core."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple


class Region(str, Enum):
    """Origin of a news item, used only for the regional balance constraint."""

    DOMESTIC = "domestic"
    OVERSEAS = "overseas"

    @classmethod
    def parse(cls, value: Any) -> "Region":
        if isinstance(value, Region):
            return value
        key = str(value or "").strip().lower()
        return _REGION_ALIASES.get(key, cls.OVERSEAS)


_REGION_ALIASES = {
    "domestic": Region.DOMESTIC,
    "国内": Region.DOMESTIC,
    "cn": Region.DOMESTIC,
    "china": Region.DOMESTIC,
    "overseas": Region.OVERSEAS,
    "海外": Region.OVERSEAS,
    "global": Region.OVERSEAS,
    "intl": Region.OVERSEAS,
    "international": Region.OVERSEAS,
}


class Category(str, Enum):
    """Closed set of newsletter sections."""

    PRODUCT = "product"
    RESEARCH = "research"
    FUNDING = "funding"
    POLICY = "policy"

    @classmethod
    def parse(cls, value: Any) -> Optional["Category"]:
        if isinstance(value, Category):
            return value
        key = str(value or "").strip().lower()
        return _CATEGORY_ALIASES.get(key)


_CATEGORY_ALIASES = {
    "product": Category.PRODUCT,
    "产品发布与更新": Category.PRODUCT,
    "research": Category.RESEARCH,
    "技术与研究": Category.RESEARCH,
    "funding": Category.FUNDING,
    "投融资与并购": Category.FUNDING,
    "policy": Category.POLICY,
    "政策与监管": Category.POLICY,
}


@dataclass(slots=True)
class NewsItem:
    """A candidate article handed over by the fetch/summarise collaborators."""

    title: str
    url: str = ""
    summary: str = ""
    snippet: str = ""
    source: str = ""
    published_at: Optional[datetime] = None
    region: Region = Region.OVERSEAS
    category: Optional[Category] = None

    @property
    def description(self) -> str:
        return self.summary or self.snippet

    def to_record(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "summary": self.description,
            "source": self.source,
            "publishedAt": self.published_at.isoformat() if self.published_at else None,
            "region": self.region.value,
            "category": self.category.value if self.category else None,
        }


@dataclass(slots=True)
class EntityFingerprint:
    """Normalised entities, actions and products extracted from a piece of text.

    The ``*_order`` tuples keep the first-seen order of the matching sets, which
    the composite key relies on.
    """

    entities: FrozenSet[str] = frozenset()
    actions_raw: FrozenSet[str] = frozenset()
    action_concepts: FrozenSet[str] = frozenset()
    products: FrozenSet[str] = frozenset()
    tech_terms: FrozenSet[str] = frozenset()
    financial_terms: FrozenSet[str] = frozenset()
    composite_key: str = ""
    entity_order: Tuple[str, ...] = ()
    concept_order: Tuple[str, ...] = ()
    product_order: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.entities or self.actions_raw or self.products)


class DuplicateReason(str, Enum):
    SAME_URL = "same URL"
    IDENTICAL_TITLE = "identical title"
    ENTITY_ACTION = "entity and action match"
    FINGERPRINT = "semantic fingerprint match"
    TEXT_SIMILARITY = "high text similarity"
    CONTENT_ENTITY_OVERLAP = "content entity overlap"
    NO_MATCH = "no duplicate detected"
    NO_PRIOR = "no prior items"


@dataclass(slots=True)
class DuplicateVerdict:
    """Outcome of comparing one candidate against previously accepted items."""

    is_duplicate: bool
    reason: DuplicateReason
    confidence: float
    matched_item: Optional[NewsItem] = None
    details: Dict[str, Any] = field(default_factory=dict)
    cross_day: bool = False


@dataclass(slots=True)
class DecisionRecord:
    """A single row of the deduplication engine's decision log."""

    title: str
    matched_with: str
    is_duplicate: bool
    reason: str
    confidence: float
    cross_day: bool = False
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "matched_with": self.matched_with,
            "is_duplicate": self.is_duplicate,
            "reason": self.reason,
            "confidence": round(self.confidence, 4),
            "cross_day": self.cross_day,
            "timestamp": self.timestamp,
        }


@dataclass(slots=True)
class BatchDedupResult:
    """Items kept and dropped by a left-to-right batch deduplication."""

    unique: List[NewsItem] = field(default_factory=list)
    duplicates: List[NewsItem] = field(default_factory=list)
    verdicts: List[DuplicateVerdict] = field(default_factory=list)

    @property
    def stats(self) -> Dict[str, Any]:
        total = len(self.unique) + len(self.duplicates)
        rate = (len(self.duplicates) / total * 100) if total else 0.0
        return {
            "total": total,
            "unique": len(self.unique),
            "duplicates": len(self.duplicates),
            "dedup_rate": f"{rate:.1f}%",
        }


class RejectReason(str, Enum):
    OFF_TOPIC = "off-topic"
    STOCK_MARKET = "stock market noise"


@dataclass(slots=True)
class ScoreBreakdown:
    substance: int = 0
    importance: int = 0
    timeliness: int = 0
    credibility: int = 0

    @property
    def total(self) -> int:
        return self.substance + self.importance + self.timeliness + self.credibility

    def to_dict(self) -> Dict[str, int]:
        return {
            "substance": self.substance,
            "importance": self.importance,
            "timeliness": self.timeliness,
            "credibility": self.credibility,
        }


@dataclass(slots=True)
class ScoredItem:
    """A news item together with its quality score and resolved category."""

    item: NewsItem
    score: int
    breakdown: ScoreBreakdown
    category: Category
    rejected: bool = False
    reject_reason: Optional[RejectReason] = None
    matched_keywords: List[str] = field(default_factory=list)

    @property
    def url(self) -> str:
        return self.item.url

    @property
    def source(self) -> str:
        return self.item.source

    @property
    def region(self) -> Region:
        return self.item.region

    def to_record(self) -> Dict[str, Any]:
        record = self.item.to_record()
        record.update(
            {
                "category": self.category.value,
                "score": self.score,
                "breakdown": self.breakdown.to_dict(),
            }
        )
        return record


@dataclass(slots=True)
class SelectionResult:
    """Final selection plus diagnostics for the rendering collaborators."""

    selected: List[ScoredItem] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)
    dropped: List[Tuple[NewsItem, str]] = field(default_factory=list)

    @property
    def items(self) -> List[NewsItem]:
        return [scored.item for scored in self.selected]
