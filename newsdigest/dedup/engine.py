"""Duplicate detection for news items using semantic fingerprints.

The engine classifies a candidate against previously accepted items with a
fixed precedence: identical URL, identical title, shared entity plus shared
action concept, weighted fingerprint similarity, and finally raw character
n-gram similarity. When several prior items pass the two fuzzy checks the
closest one is reported.

A second entry point, :meth:`DeduplicationEngine.check_semantic_duplicate`,
is meant for comparisons against the previous run's published items and also
looks at entities mentioned in the summaries.
"""
from __future__ import annotations

import json
from collections import Counter, deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..data.models import (
    BatchDedupResult,
    DecisionRecord,
    DuplicateReason,
    DuplicateVerdict,
    EntityFingerprint,
    NewsItem,
)
from ..data.preprocess import normalize_title
from ..nlp.extraction import FingerprintExtractor, default_extractor
from ..nlp.similarity import SimilarityWeights, fingerprint_similarity, jaccard, ngram_cosine
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)

ENTITY_ACTION_CONFIDENCE = 0.9
LOG_TEXT_LIMIT = 100
RECENT_DECISIONS = 20


@dataclass(slots=True)
class DedupConfig:
    """Thresholds for the fuzzy duplicate checks."""

    fingerprint_threshold: float = 0.5
    text_threshold: float = 0.7
    content_overlap_threshold: float = 0.75
    content_min_shared_entities: int = 2
    ngram_size: int = 2
    log_size: int = 1000

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None) -> "DedupConfig":
        payload = payload or {}
        defaults = cls()
        return cls(
            fingerprint_threshold=float(payload.get("fingerprint_threshold", defaults.fingerprint_threshold)),
            text_threshold=float(payload.get("text_threshold", defaults.text_threshold)),
            content_overlap_threshold=float(
                payload.get("content_overlap_threshold", defaults.content_overlap_threshold)
            ),
            content_min_shared_entities=int(
                payload.get("content_min_shared_entities", defaults.content_min_shared_entities)
            ),
            ngram_size=int(payload.get("ngram_size", defaults.ngram_size)),
            log_size=int(payload.get("log_size", defaults.log_size)),
        )

    def validate(self) -> None:
        for name in ("fingerprint_threshold", "text_threshold", "content_overlap_threshold"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")
        if self.ngram_size < 1:
            raise ValueError("ngram_size must be at least 1")
        if self.log_size < 1:
            raise ValueError("log_size must be at least 1")
        if self.content_min_shared_entities < 0:
            raise ValueError("content_min_shared_entities cannot be negative")


class DeduplicationEngine:
    """Classify news items as duplicates of previously accepted items.

    An engine instance owns a fingerprint cache and a bounded decision log; use
    one instance per run and per caller.
    """

    def __init__(
        self,
        config: DedupConfig | None = None,
        extractor: FingerprintExtractor | None = None,
        weights: SimilarityWeights | None = None,
    ):
        self.config = config or DedupConfig()
        self.config.validate()
        self.extractor = extractor or default_extractor()
        self.weights = weights or SimilarityWeights()
        self.history: Deque[DecisionRecord] = deque(maxlen=self.config.log_size)
        self._fingerprints: Dict[str, EntityFingerprint] = {}
        self._checks = 0
        self._duplicates = 0

    def fingerprint(self, text: Optional[str]) -> EntityFingerprint:
        key = text or ""
        cached = self._fingerprints.get(key)
        if cached is None:
            cached = self.extractor.extract(key)
            self._fingerprints[key] = cached
        return cached

    def clear_cache(self) -> None:
        self._fingerprints.clear()

    def check_duplicate(self, candidate: NewsItem, prior_items: Iterable[NewsItem]) -> DuplicateVerdict:
        """Compare ``candidate`` with ``prior_items`` using the title-level rules."""
        verdict = self._compare(candidate, _usable(prior_items))
        self._track(candidate, verdict)
        return verdict

    def check_semantic_duplicate(self, candidate: NewsItem, prior_items: Iterable[NewsItem]) -> DuplicateVerdict:
        """Cross-run check: title rules first, then entity overlap of title plus summary."""
        priors = _usable(prior_items)
        verdict = self._compare(candidate, priors)
        if not verdict.is_duplicate and priors:
            content_match = self._content_overlap(candidate, priors)
            if content_match is not None:
                verdict = content_match
        verdict.cross_day = True
        self._track(candidate, verdict)
        return verdict

    def deduplicate_batch(self, items: Iterable[NewsItem]) -> BatchDedupResult:
        """Deduplicate a list against itself, left to right."""
        result = BatchDedupResult()
        for item in items:
            if item is None:
                continue
            verdict = self.check_duplicate(item, result.unique)
            if verdict.is_duplicate:
                result.duplicates.append(item)
                result.verdicts.append(verdict)
            else:
                result.unique.append(item)
        stats = result.stats
        LOGGER.info(
            "Batch dedup: %s items, %s unique, %s duplicates (%s)",
            stats["total"],
            stats["unique"],
            stats["duplicates"],
            stats["dedup_rate"],
        )
        return result

    def report(self) -> Dict[str, Any]:
        """Summary of the checks performed by this engine."""
        reasons = Counter(record.reason for record in self.history)
        rate = (self._duplicates / self._checks * 100) if self._checks else 0.0
        return {
            "total_checks": self._checks,
            "duplicates_found": self._duplicates,
            "dedup_rate": f"{rate:.1f}%",
            "cross_day_duplicates": sum(1 for record in self.history if record.cross_day),
            "reason_breakdown": dict(reasons),
            "recent_decisions": [record.to_dict() for record in list(self.history)[-RECENT_DECISIONS:]],
        }

    def export_log(self) -> str:
        return json.dumps([record.to_dict() for record in self.history], ensure_ascii=False, indent=2)

    def _compare(self, candidate: NewsItem, priors: Sequence[NewsItem]) -> DuplicateVerdict:
        if not priors:
            return DuplicateVerdict(False, DuplicateReason.NO_PRIOR, 1.0)

        title = candidate.title or ""
        url = (candidate.url or "").strip()
        normalized = normalize_title(title)
        current = self.fingerprint(title)
        best: Optional[Tuple[float, DuplicateReason, NewsItem, Dict[str, Any]]] = None

        for prior in priors:
            if url and url == (prior.url or "").strip():
                return DuplicateVerdict(True, DuplicateReason.SAME_URL, 1.0, prior, {"url": url})
            if normalized and normalized == normalize_title(prior.title):
                return DuplicateVerdict(True, DuplicateReason.IDENTICAL_TITLE, 1.0, prior)

            existing = self.fingerprint(prior.title)
            common_entities = current.entities & existing.entities
            common_actions = current.action_concepts & existing.action_concepts
            if common_entities and common_actions:
                return DuplicateVerdict(
                    True,
                    DuplicateReason.ENTITY_ACTION,
                    ENTITY_ACTION_CONFIDENCE,
                    prior,
                    {
                        "common_entities": sorted(common_entities),
                        "common_actions": sorted(common_actions),
                    },
                )

            similarity = fingerprint_similarity(current, existing, self.weights)
            if similarity.overall >= self.config.fingerprint_threshold:
                if best is None or similarity.overall > best[0]:
                    best = (similarity.overall, DuplicateReason.FINGERPRINT, prior, similarity.to_dict())

            text_similarity = ngram_cosine(title, prior.title, self.config.ngram_size)
            if text_similarity >= self.config.text_threshold:
                if best is None or text_similarity > best[0]:
                    best = (
                        text_similarity,
                        DuplicateReason.TEXT_SIMILARITY,
                        prior,
                        {"text_similarity": round(text_similarity, 4)},
                    )

        if best is not None:
            score, reason, matched, details = best
            return DuplicateVerdict(True, reason, min(score, 1.0), matched, details)
        return DuplicateVerdict(False, DuplicateReason.NO_MATCH, 1.0)

    def _content_overlap(self, candidate: NewsItem, priors: Sequence[NewsItem]) -> Optional[DuplicateVerdict]:
        current = self.fingerprint(_content_text(candidate))
        if len(current.entities) < self.config.content_min_shared_entities:
            return None
        best: Optional[Tuple[float, NewsItem, List[str]]] = None
        for prior in priors:
            existing = self.fingerprint(_content_text(prior))
            shared = current.entities & existing.entities
            if len(shared) < self.config.content_min_shared_entities:
                continue
            overlap = jaccard(current.entities, existing.entities)
            if overlap >= self.config.content_overlap_threshold and (best is None or overlap > best[0]):
                best = (overlap, prior, sorted(shared))
        if best is None:
            return None
        overlap, matched, shared = best
        return DuplicateVerdict(
            True,
            DuplicateReason.CONTENT_ENTITY_OVERLAP,
            overlap,
            matched,
            {"common_entities": shared, "entity_overlap": round(overlap, 4)},
        )

    def _track(self, candidate: NewsItem, verdict: DuplicateVerdict) -> None:
        self._checks += 1
        if not verdict.is_duplicate:
            return
        self._duplicates += 1
        matched_title = verdict.matched_item.title if verdict.matched_item else ""
        self.history.append(
            DecisionRecord(
                title=(candidate.title or "")[:LOG_TEXT_LIMIT],
                matched_with=(matched_title or "")[:LOG_TEXT_LIMIT],
                is_duplicate=True,
                reason=verdict.reason.value,
                confidence=verdict.confidence,
                cross_day=verdict.cross_day,
            )
        )
        LOGGER.debug(
            "Duplicate (%s, %.2f): %r ~ %r",
            verdict.reason.value,
            verdict.confidence,
            candidate.title,
            matched_title,
        )


def check_duplicate(
    candidate: NewsItem,
    prior_items: Iterable[NewsItem],
    config: DedupConfig | None = None,
) -> DuplicateVerdict:
    """One-off check with a fresh engine."""
    return DeduplicationEngine(config).check_duplicate(candidate, prior_items)


def deduplicate_news(items: Iterable[NewsItem], config: DedupConfig | None = None) -> BatchDedupResult:
    """One-off batch deduplication with a fresh engine."""
    return DeduplicationEngine(config).deduplicate_batch(items)


def _usable(prior_items: Iterable[NewsItem] | None) -> List[NewsItem]:
    if not prior_items:
        return []
    return [item for item in prior_items if item is not None]


def _content_text(item: NewsItem) -> str:
    return f"{item.title or ''} {item.description or ''}".strip()
