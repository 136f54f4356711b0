"""Summary statistics for a selection run."""
from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from typing import Dict, Sequence

from ..data.models import ScoredItem


def compute_selection_stats(
    candidate_count: int,
    pool: Sequence[ScoredItem],
    selected: Sequence[ScoredItem],
    target_count: int,
) -> Dict[str, object]:
    """Counts and score figures describing what the selector kept.

    The returned dictionary is JSON-serialisable.
    """
    scores = [scored.score for scored in selected]
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "candidate_count": candidate_count,
        "pool_count": len(pool),
        "target_count": target_count,
        "selected_count": len(selected),
        "shortfall": max(target_count - len(selected), 0),
        "region_counts": dict(Counter(scored.region.value for scored in selected)),
        "source_counts": dict(Counter(scored.source or "unknown" for scored in selected)),
        "category_counts": dict(Counter(scored.category.value for scored in selected)),
        "average_score": round(sum(scores) / len(scores), 1) if scores else 0.0,
        "max_score": max(scores, default=0),
        "min_score": min(scores, default=0),
    }


def format_distribution(counts: Dict[str, int]) -> str:
    """Render ``{"a": 2, "b": 1}`` as ``a:2, b:1`` for log lines."""
    return ", ".join(f"{key}:{value}" for key, value in sorted(counts.items(), key=lambda item: (-item[1], item[0])))
