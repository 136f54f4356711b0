"""Multi-factor quality scoring for news items."""
from __future__ import annotations

import pathlib
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from ..data.models import NewsItem, RejectReason, ScoreBreakdown, ScoredItem
from ..data.preprocess import hours_since
from ..nlp.lexicon import RESOURCES_DIR, TermMatcher, normalize_term
from ..utils.logging import get_logger
from .categories import CategoryClassifier

LOGGER = get_logger(__name__)

DEFAULT_SCORING_PATH = RESOURCES_DIR / "scoring.yaml"


@dataclass(slots=True)
class ScoringConfig:
    """Points per match and caps for each sub-score."""

    quantified_points: int = 5
    quantified_cap: int = 10
    completed_points: int = 4
    completed_cap: int = 12
    hedge_points: int = 5
    hedge_cap: int = 15
    depth_points: int = 5
    depth_cap: int = 15
    substance_max: int = 40
    top_tier_bonus: int = 5
    flagship_bonus: int = 6
    breakthrough_bonus: int = 5
    funding_bonus: int = 8
    importance_max: int = 30
    timeliness_steps: Tuple[Tuple[float, int], ...] = ((6, 10), (12, 8), (24, 6), (36, 4))
    timeliness_floor: int = 2

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None) -> "ScoringConfig":
        payload = dict(payload or {})
        steps = payload.pop("timeliness_steps", None)
        known = {name: int(value) for name, value in payload.items() if name in cls.__dataclass_fields__}
        unknown = sorted(set(payload) - set(known))
        if unknown:
            LOGGER.warning("Ignoring unknown scoring options: %s", ", ".join(unknown))
        config = cls(**known)
        if steps:
            config.timeliness_steps = tuple(
                (float(hours), int(points)) for hours, points in sorted(steps, key=lambda step: float(step[0]))
            )
        return config


@dataclass(slots=True)
class ScoringTables:
    """Keyword tables for rejection filters, sub-scores, categories and credibility."""

    off_topic: List[str] = field(default_factory=list)
    ai_qualifiers: List[str] = field(default_factory=list)
    market: List[str] = field(default_factory=list)
    ai_sector_companies: List[str] = field(default_factory=list)
    quantified_patterns: List[str] = field(default_factory=list)
    completed_actions: List[str] = field(default_factory=list)
    hedges: List[str] = field(default_factory=list)
    technical_depth: List[str] = field(default_factory=list)
    top_tier_orgs: List[str] = field(default_factory=list)
    flagship_products: List[str] = field(default_factory=list)
    breakthrough: List[str] = field(default_factory=list)
    funding: List[str] = field(default_factory=list)
    large_currency_units: List[str] = field(default_factory=list)
    categories: Dict[str, List[str]] = field(default_factory=dict)
    source_credibility: Dict[str, int] = field(default_factory=dict)
    default_credibility: int = 5

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "ScoringTables":
        rejection = payload.get("rejection") or {}
        substance = payload.get("substance") or {}
        importance = payload.get("importance") or {}
        categories = payload.get("categories") or {}
        credibility = payload.get("source_credibility") or {}
        return cls(
            off_topic=_strings(rejection.get("off_topic")),
            ai_qualifiers=_strings(rejection.get("ai_qualifiers")),
            market=_strings(rejection.get("market")),
            ai_sector_companies=_strings(rejection.get("ai_sector_companies")),
            quantified_patterns=_strings(substance.get("quantified_patterns")),
            completed_actions=_strings(substance.get("completed_actions")),
            hedges=_strings(substance.get("hedges")),
            technical_depth=_strings(substance.get("technical_depth")),
            top_tier_orgs=_strings(importance.get("top_tier_orgs")),
            flagship_products=_strings(importance.get("flagship_products")),
            breakthrough=_strings(importance.get("breakthrough")),
            funding=_strings(importance.get("funding")),
            large_currency_units=_strings(importance.get("large_currency_units")),
            categories={str(name): _strings(terms) for name, terms in categories.items()},
            source_credibility={str(source): int(weight) for source, weight in credibility.items()},
            default_credibility=int(payload.get("default_credibility", 5)),
        )

    @classmethod
    def from_yaml(cls, path: str | pathlib.Path) -> "ScoringTables":
        tables_path = pathlib.Path(path)
        if not tables_path.exists():
            raise FileNotFoundError(f"Scoring tables not found: {tables_path}")
        with tables_path.open("r", encoding="utf-8") as handle:
            return cls.from_mapping(yaml.safe_load(handle) or {})


class QualityScorer:
    """Score items on substance, importance, timeliness and source credibility.

    Items that trip a rejection filter are returned with ``rejected=True`` and
    an all-zero breakdown; their sub-scores are never computed.
    """

    def __init__(self, tables: ScoringTables | None = None, config: ScoringConfig | None = None):
        self.tables = tables or ScoringTables.from_yaml(DEFAULT_SCORING_PATH)
        self.config = config or ScoringConfig()
        self.categories = CategoryClassifier(self.tables.categories)
        self._off_topic = TermMatcher(self.tables.off_topic)
        self._ai_qualifiers = TermMatcher(self.tables.ai_qualifiers)
        self._market = TermMatcher(self.tables.market)
        self._ai_sector = TermMatcher(self.tables.ai_sector_companies)
        self._quantified = TermMatcher(patterns=self.tables.quantified_patterns)
        self._completed = TermMatcher(self.tables.completed_actions)
        self._hedges = TermMatcher(self.tables.hedges)
        self._depth = TermMatcher(self.tables.technical_depth)
        self._top_tier = TermMatcher(self.tables.top_tier_orgs)
        self._flagship = TermMatcher(self.tables.flagship_products)
        self._breakthrough = TermMatcher(self.tables.breakthrough)
        self._funding = TermMatcher(self.tables.funding)
        self._large_units = TermMatcher(self.tables.large_currency_units)
        self._credibility = {
            normalize_term(source): weight for source, weight in self.tables.source_credibility.items()
        }

    def score(self, item: NewsItem, now: Optional[datetime] = None) -> ScoredItem:
        title = item.title or ""
        category = self.categories.resolve(item)
        reason = self.rejection_reason(title)
        if reason is not None:
            return ScoredItem(
                item=item,
                score=0,
                breakdown=ScoreBreakdown(),
                category=category,
                rejected=True,
                reject_reason=reason,
            )

        text = f"{title} {item.description or ''}".strip()
        importance, keywords = self.importance_score(text)
        breakdown = ScoreBreakdown(
            substance=self.substance_score(text),
            importance=importance,
            timeliness=self.timeliness_score(item.published_at, now),
            credibility=self.credibility_score(item.source),
        )
        return ScoredItem(
            item=item,
            score=breakdown.total,
            breakdown=breakdown,
            category=category,
            matched_keywords=keywords,
        )

    def rejection_reason(self, title: str) -> Optional[RejectReason]:
        if self._off_topic.contains(title) and not self._ai_qualifiers.contains(title):
            return RejectReason.OFF_TOPIC
        if self._market.contains(title) and not self._ai_sector.contains(title):
            return RejectReason.STOCK_MARKET
        return None

    def substance_score(self, text: str) -> int:
        cfg = self.config
        facts = min(self._quantified.count(text) * cfg.quantified_points, cfg.quantified_cap)
        completed = min(self._completed.count(text) * cfg.completed_points, cfg.completed_cap)
        hedging = min(self._hedges.count(text) * cfg.hedge_points, cfg.hedge_cap)
        depth = min(self._depth.count(text) * cfg.depth_points, cfg.depth_cap)
        return _clamp(facts + completed - hedging + depth, 0, cfg.substance_max)

    def importance_score(self, text: str) -> Tuple[int, List[str]]:
        cfg = self.config
        score = 0
        keywords: List[str] = []
        for matcher, bonus in (
            (self._top_tier, cfg.top_tier_bonus),
            (self._flagship, cfg.flagship_bonus),
            (self._breakthrough, cfg.breakthrough_bonus),
        ):
            found = matcher.find_all(text)
            if found:
                score += bonus
                keywords.extend(found)
        funding_terms = self._funding.find_all(text)
        unit_terms = self._large_units.find_all(text)
        if funding_terms and unit_terms:
            score += cfg.funding_bonus
            keywords.extend(funding_terms + unit_terms)
        return _clamp(score, 0, cfg.importance_max), keywords

    def timeliness_score(self, published_at: Optional[datetime], now: Optional[datetime] = None) -> int:
        age = hours_since(published_at, now)
        for limit, points in self.config.timeliness_steps:
            if age < limit:
                return points
        return self.config.timeliness_floor

    def credibility_score(self, source: Optional[str]) -> int:
        if not source:
            return self.tables.default_credibility
        return self._credibility.get(normalize_term(source), self.tables.default_credibility)


def _clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(value, upper))


def _strings(value) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value if item is not None]
