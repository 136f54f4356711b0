"""Set overlap, character n-gram cosine and fingerprint similarity."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import AbstractSet, Dict, Iterable, List

import numpy as np
from numpy.linalg import norm

from ..data.models import EntityFingerprint
from ..data.preprocess import normalize_for_ngrams


@dataclass(slots=True)
class SimilarityWeights:
    """Relative weight of each fingerprint component in the overall score."""

    entity: float = 0.5
    action: float = 0.25
    product: float = 0.15
    key_match: float = 0.10


@dataclass(slots=True)
class FingerprintSimilarity:
    overall: float
    entity_jaccard: float
    action_jaccard: float
    product_jaccard: float
    hash_match: int

    def to_dict(self) -> Dict[str, float]:
        return {
            "overall": round(self.overall, 4),
            "entity_jaccard": round(self.entity_jaccard, 4),
            "action_jaccard": round(self.action_jaccard, 4),
            "product_jaccard": round(self.product_jaccard, 4),
            "hash_match": self.hash_match,
        }


def jaccard(set_a: Iterable[str], set_b: Iterable[str]) -> float:
    """|A ∩ B| / |A ∪ B|; two empty sets carry no signal and score 0."""
    left = set_a if isinstance(set_a, AbstractSet) else set(set_a)
    right = set_b if isinstance(set_b, AbstractSet) else set(set_b)
    union = left | right
    if not union:
        return 0.0
    return len(left & right) / len(union)


def char_ngrams(text: str, n: int = 2) -> List[str]:
    if n <= 0:
        raise ValueError("n-gram size must be positive")
    return [text[i : i + n] for i in range(len(text) - n + 1)]


def ngram_cosine(text_a: str | None, text_b: str | None, n: int = 2) -> float:
    """Cosine similarity of character n-gram frequency vectors."""
    left = normalize_for_ngrams(text_a)
    right = normalize_for_ngrams(text_b)
    if len(left) < n or len(right) < n:
        return 0.0
    counts_a = Counter(char_ngrams(left, n))
    counts_b = Counter(char_ngrams(right, n))
    vocabulary = sorted(set(counts_a) | set(counts_b))
    vec_a = np.array([counts_a.get(gram, 0) for gram in vocabulary], dtype=np.float64)
    vec_b = np.array([counts_b.get(gram, 0) for gram in vocabulary], dtype=np.float64)
    denominator = norm(vec_a) * norm(vec_b)
    if denominator == 0:
        return 0.0
    return float(min(np.dot(vec_a, vec_b) / denominator, 1.0))


def fingerprint_similarity(
    fp_a: EntityFingerprint,
    fp_b: EntityFingerprint,
    weights: SimilarityWeights | None = None,
) -> FingerprintSimilarity:
    """Weighted blend of entity, action concept and product overlap plus key equality."""
    weights = weights or SimilarityWeights()
    entity_jaccard = jaccard(fp_a.entities, fp_b.entities)
    action_jaccard = jaccard(fp_a.action_concepts, fp_b.action_concepts)
    product_jaccard = jaccard(fp_a.products, fp_b.products)
    hash_match = 1 if fp_a.composite_key and fp_a.composite_key == fp_b.composite_key else 0
    overall = (
        entity_jaccard * weights.entity
        + action_jaccard * weights.action
        + product_jaccard * weights.product
        + hash_match * weights.key_match
    )
    return FingerprintSimilarity(
        overall=overall,
        entity_jaccard=entity_jaccard,
        action_jaccard=action_jaccard,
        product_jaccard=product_jaccard,
        hash_match=hash_match,
    )
