"""Keyword fallback for the newsletter section of an item."""
from __future__ import annotations

from typing import List, Mapping, Optional, Sequence, Tuple

from ..data.models import Category, NewsItem
from ..nlp.lexicon import TermMatcher

# Product launches outrank funding, funding outranks policy.
CATEGORY_PRECEDENCE: Tuple[Category, ...] = (Category.PRODUCT, Category.FUNDING, Category.POLICY)
DEFAULT_CATEGORY = Category.RESEARCH


class CategoryClassifier:
    def __init__(self, keywords: Mapping[str, Sequence[str]]):
        self._matchers: List[Tuple[Category, TermMatcher]] = []
        for category in CATEGORY_PRECEDENCE:
            terms = keywords.get(category.value) or []
            self._matchers.append((category, TermMatcher(terms)))

    def infer(self, title: Optional[str], summary: Optional[str] = "") -> Category:
        # The title decides first; the summary is only a tie-breaker when the title is silent.
        for text in (title, summary):
            for category, matcher in self._matchers:
                if matcher.contains(text):
                    return category
        return DEFAULT_CATEGORY

    def resolve(self, item: NewsItem) -> Category:
        if item.category is not None:
            return item.category
        return self.infer(item.title, item.description)
