"""Quality- and diversity-constrained selection of the day's top items."""
from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from ..analytics.metrics import compute_selection_stats, format_distribution
from ..data.models import NewsItem, ScoredItem, SelectionResult
from ..dedup.engine import DeduplicationEngine
from ..scoring.scorer import QualityScorer
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class PassRule:
    """Admission rule for one pass; ``None`` caps are unlimited."""

    min_score: int
    source_cap: Optional[int] = None
    category_cap: Optional[int] = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "PassRule":
        return cls(
            min_score=int(payload.get("min_score", 0)),
            source_cap=_optional_int(payload.get("source_cap")),
            category_cap=_optional_int(payload.get("category_cap")),
        )


DEFAULT_PASSES: Tuple[PassRule, ...] = (
    PassRule(min_score=25, source_cap=2, category_cap=4),
    PassRule(min_score=15, source_cap=3, category_cap=4),
    PassRule(min_score=10, source_cap=3, category_cap=None),
    PassRule(min_score=5, source_cap=None, category_cap=None),
    PassRule(min_score=0, source_cap=None, category_cap=None),
)


@dataclass(slots=True)
class SelectionConfig:
    target_count: int = 14
    region_balance: bool = True
    passes: Tuple[PassRule, ...] = DEFAULT_PASSES

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None) -> "SelectionConfig":
        payload = payload or {}
        passes = payload.get("passes")
        config = cls(
            target_count=int(payload.get("target_count", 14)),
            region_balance=bool(payload.get("region_balance", True)),
            passes=tuple(PassRule.from_mapping(rule) for rule in passes) if passes else DEFAULT_PASSES,
        )
        config.validate()
        return config

    def validate(self) -> None:
        if self.target_count < 0:
            raise ValueError(f"target_count must not be negative, got {self.target_count}")
        if not self.passes:
            raise ValueError("at least one selection pass is required")
        for previous, current in zip(self.passes, self.passes[1:]):
            if current.min_score > previous.min_score:
                raise ValueError("selection passes must not raise the score floor")
            if _tighter(current.source_cap, previous.source_cap) or _tighter(
                current.category_cap, previous.category_cap
            ):
                raise ValueError("selection passes must not tighten source or category caps")


class TopNewsSelector:
    """Deduplicate, score and pick a bounded, balanced list of items.

    Items are admitted in descending score order over several passes. The
    first pass is strict about score, per-source and per-category counts; each
    later pass loosens them until the target is met. The regional cap of
    ``ceil(target / 2)`` holds in every pass. When fewer items survive
    screening than the target asks for, all of them are returned.

    The two rules meet at one edge: a single-region pool just short of the
    target is admitted whole, while the same pool grown to the target is cut
    to the regional cap. Three domestic items with a target of four yield
    three; four domestic items yield two.
    """

    def __init__(
        self,
        config: SelectionConfig | None = None,
        engine: DeduplicationEngine | None = None,
        scorer: QualityScorer | None = None,
    ):
        self.config = config or SelectionConfig()
        self.config.validate()
        self.engine = engine or DeduplicationEngine()
        self.scorer = scorer or QualityScorer()

    def select(
        self,
        candidates: Iterable[NewsItem],
        target_count: Optional[int] = None,
        prior_day_items: Iterable[NewsItem] | None = None,
        now: Optional[datetime] = None,
    ) -> SelectionResult:
        target = self.config.target_count if target_count is None else target_count
        if target < 0:
            raise ValueError(f"target_count must not be negative, got {target}")

        candidate_list = [item for item in candidates or [] if item is not None]
        priors = [item for item in prior_day_items or [] if item is not None]
        result = SelectionResult()

        pool = self._screen(candidate_list, priors, now, result.dropped)
        pool.sort(key=lambda scored: scored.score, reverse=True)

        if target == 0:
            selected: List[ScoredItem] = []
        elif len(pool) < target:
            LOGGER.warning("Only %s items survived screening for a target of %s; admitting all", len(pool), target)
            selected = self._admit_all(pool)
        else:
            selected = self._run_passes(pool, target)

        order = {id(scored): index for index, scored in enumerate(pool)}
        result.selected = sorted(selected, key=lambda scored: order[id(scored)])
        result.stats = compute_selection_stats(len(candidate_list), pool, result.selected, target)
        result.stats["dropped_count"] = len(result.dropped)
        self._log_summary(result.stats)
        return result

    def _screen(
        self,
        candidates: Sequence[NewsItem],
        priors: Sequence[NewsItem],
        now: Optional[datetime],
        dropped: List[Tuple[NewsItem, str]],
    ) -> List[ScoredItem]:
        accepted: List[NewsItem] = []
        pool: List[ScoredItem] = []
        for item in candidates:
            if priors:
                verdict = self.engine.check_semantic_duplicate(item, priors)
                if verdict.is_duplicate:
                    self._drop(dropped, item, f"cross-day duplicate ({verdict.reason.value})")
                    continue
            verdict = self.engine.check_duplicate(item, accepted)
            if verdict.is_duplicate:
                self._drop(dropped, item, f"duplicate ({verdict.reason.value})")
                continue
            scored = self.scorer.score(item, now)
            if scored.rejected:
                reason = scored.reject_reason.value if scored.reject_reason else "rejected"
                self._drop(dropped, item, f"rejected ({reason})")
                continue
            pool.append(scored)
            accepted.append(item)
        return pool

    @staticmethod
    def _drop(dropped: List[Tuple[NewsItem, str]], item: NewsItem, reason: str) -> None:
        dropped.append((item, reason))
        LOGGER.info("Dropped %r from %s: %s", item.title, item.source or "unknown source", reason)

    @staticmethod
    def _admit_all(pool: Sequence[ScoredItem]) -> List[ScoredItem]:
        selected: List[ScoredItem] = []
        urls: Set[str] = set()
        for scored in pool:
            url = (scored.url or "").strip()
            if url and url in urls:
                continue
            if url:
                urls.add(url)
            selected.append(scored)
        return selected

    def _run_passes(self, pool: Sequence[ScoredItem], target: int) -> List[ScoredItem]:
        selected: List[ScoredItem] = []
        chosen: Set[int] = set()
        urls: Set[str] = set()
        sources: Counter = Counter()
        categories: Counter = Counter()
        regions: Counter = Counter()
        region_cap = math.ceil(target / 2) if self.config.region_balance else None

        for index, rule in enumerate(self.config.passes):
            for scored in pool:
                if len(selected) >= target:
                    break
                if id(scored) in chosen or scored.score < rule.min_score:
                    continue
                source = scored.source or ""
                if rule.source_cap is not None and sources[source] >= rule.source_cap:
                    continue
                if rule.category_cap is not None and categories[scored.category] >= rule.category_cap:
                    continue
                if region_cap is not None and regions[scored.region] >= region_cap:
                    continue
                url = (scored.url or "").strip()
                if url and url in urls:
                    continue
                selected.append(scored)
                chosen.add(id(scored))
                if url:
                    urls.add(url)
                sources[source] += 1
                categories[scored.category] += 1
                regions[scored.region] += 1
            LOGGER.debug(
                "Pass %s (min_score=%s, source_cap=%s, category_cap=%s): %s/%s selected",
                index + 1,
                rule.min_score,
                rule.source_cap,
                rule.category_cap,
                len(selected),
                target,
            )
            if len(selected) >= target:
                break

        if len(selected) < target:
            LOGGER.warning("Selection short by %s items after all passes", target - len(selected))
        return selected

    @staticmethod
    def _log_summary(stats: Mapping[str, Any]) -> None:
        LOGGER.info(
            "Selected %s/%s items from %s candidates (%s survived screening), average score %s",
            stats["selected_count"],
            stats["target_count"],
            stats["candidate_count"],
            stats["pool_count"],
            stats["average_score"],
        )
        LOGGER.info("Source distribution: %s", format_distribution(stats["source_counts"]) or "-")
        LOGGER.info("Region distribution: %s", format_distribution(stats["region_counts"]) or "-")


def select_top_news(
    candidates: Iterable[NewsItem],
    target_count: int = 14,
    prior_day_items: Iterable[NewsItem] | None = None,
    now: Optional[datetime] = None,
) -> List[NewsItem]:
    """Select the top items with a fresh engine, scorer and default passes."""
    return TopNewsSelector().select(candidates, target_count, prior_day_items, now).items


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def _tighter(current: Optional[int], previous: Optional[int]) -> bool:
    if current is None:
        return False
    if previous is None:
        return True
    return current < previous
