"""Lexicon-driven extraction of event fingerprints from headlines."""
from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence

from ..data.models import EntityFingerprint
from .lexicon import Lexicon, TermMatcher, load_default_lexicon, normalize_term

KEY_ENTITY_COUNT = 2
KEY_CONCEPT_COUNT = 2
KEY_PRODUCT_COUNT = 1


class FingerprintExtractor:
    """Turn free text into an ``EntityFingerprint``.

    The extractor is stateless after construction: the same text always yields
    the same fingerprint for a given lexicon.
    """

    def __init__(self, lexicon: Lexicon):
        self.lexicon = lexicon
        self._synonyms = lexicon.synonym_table()
        self._organizations = TermMatcher(lexicon.organizations)
        self._persons = TermMatcher(lexicon.persons)
        self._person_patterns = [re.compile(pattern) for pattern in lexicon.person_patterns if pattern]
        self._products = TermMatcher(lexicon.products)
        self._actions = TermMatcher(list(self._synonyms) + lexicon.unmapped_actions)
        self._tech = TermMatcher(lexicon.tech_terms)
        self._financial = TermMatcher(patterns=lexicon.financial_patterns)
        self._name_blocklist = {normalize_term(word) for word in lexicon.name_stopwords}
        self._name_blocklist.update(word for word in self._synonyms if " " not in word)

    def extract(self, text: Optional[str]) -> EntityFingerprint:
        if not text or not text.strip():
            return EntityFingerprint()

        entities = _merge(
            self._organizations.find_all(text),
            self._persons.find_all(text),
            self._generic_names(text),
        )
        products = self._products.find_all(text)
        actions_raw = self._actions.find_all(text)
        concepts = _merge([self._synonyms[action] for action in actions_raw if action in self._synonyms])

        return EntityFingerprint(
            entities=frozenset(entities),
            actions_raw=frozenset(actions_raw),
            action_concepts=frozenset(concepts),
            products=frozenset(products),
            tech_terms=frozenset(self._tech.find_all(text)),
            financial_terms=frozenset(self._financial.find_all(text)),
            composite_key=build_composite_key(entities, concepts, products),
            entity_order=tuple(entities),
            concept_order=tuple(concepts),
            product_order=tuple(products),
        )

    def _generic_names(self, text: str) -> List[str]:
        names: List[str] = []
        for pattern in self._person_patterns:
            position = 0
            # Restart one character after each match so that pairs overlap.
            while True:
                match = pattern.search(text, position)
                if match is None:
                    break
                position = match.start() + 1
                candidate = normalize_term(match.group(0))
                if candidate in names or any(part in self._name_blocklist for part in candidate.split()):
                    continue
                names.append(candidate)
        return names


def build_composite_key(
    entities: Sequence[str],
    concepts: Sequence[str],
    products: Sequence[str],
) -> str:
    """Deterministic key from the leading entities, concepts and product."""
    parts = (
        sorted(entities[:KEY_ENTITY_COUNT])
        + sorted(concepts[:KEY_CONCEPT_COUNT])
        + sorted(products[:KEY_PRODUCT_COUNT])
    )
    return "|".join(parts)


def _merge(*groups: Iterable[str]) -> List[str]:
    merged: List[str] = []
    seen = set()
    for group in groups:
        for value in group:
            if value and value not in seen:
                seen.add(value)
                merged.append(value)
    return merged


_DEFAULT_EXTRACTOR: Optional[FingerprintExtractor] = None


def default_extractor() -> FingerprintExtractor:
    global _DEFAULT_EXTRACTOR
    if _DEFAULT_EXTRACTOR is None:
        _DEFAULT_EXTRACTOR = FingerprintExtractor(load_default_lexicon())
    return _DEFAULT_EXTRACTOR


def extract_fingerprint(text: Optional[str]) -> EntityFingerprint:
    """Fingerprint ``text`` with the bundled lexicon."""
    return default_extractor().extract(text)
