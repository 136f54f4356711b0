"""Vocabulary tables for fingerprint extraction, loaded from YAML."""
from __future__ import annotations

import pathlib
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import yaml

from ..data.preprocess import normalize_whitespace
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)

RESOURCES_DIR = pathlib.Path(__file__).resolve().parent.parent / "resources"
DEFAULT_LEXICON_PATH = RESOURCES_DIR / "lexicon.yaml"

_ASCII_TERM = re.compile(r"^[\x00-\x7f]+$")


def normalize_term(value: str) -> str:
    return normalize_whitespace(value).lower()


class TermMatcher:
    """Case-insensitive matcher over a list of literal terms and regex patterns.

    Literal ASCII terms only match on ASCII alphanumeric boundaries so that
    ``OpenAI`` is found in ``OpenAI发布GPT-5`` but ``AI`` is not found inside
    ``OpenAI``. Longer terms win over their prefixes.
    """

    def __init__(
        self,
        terms: Iterable[str] = (),
        patterns: Iterable[str] = (),
    ) -> None:
        self.terms = sorted({term.strip() for term in terms if term and term.strip()}, key=len, reverse=True)
        self._literal = self._compile_terms(self.terms)
        self._patterns = [re.compile(pattern, re.IGNORECASE) for pattern in patterns if pattern]

    @staticmethod
    def _compile_terms(terms: Sequence[str]) -> Optional[re.Pattern]:
        if not terms:
            return None
        parts = []
        for term in terms:
            escaped = re.escape(term)
            if _ASCII_TERM.match(term):
                escaped = rf"(?<![A-Za-z0-9]){escaped}(?![A-Za-z0-9])"
            parts.append(escaped)
        return re.compile("|".join(parts), re.IGNORECASE)

    def find_all(self, text: Optional[str]) -> List[str]:
        """Normalised matches in first-seen order, each reported once."""
        if not text:
            return []
        found: Dict[str, int] = {}
        if self._literal is not None:
            for match in self._literal.finditer(text):
                found.setdefault(normalize_term(match.group(0)), match.start())
        for pattern in self._patterns:
            for match in pattern.finditer(text):
                found.setdefault(normalize_term(match.group(0)), match.start())
        return [term for term, _ in sorted(found.items(), key=lambda item: item[1])]

    def count(self, text: Optional[str]) -> int:
        """Number of match occurrences, repeats included."""
        if not text:
            return 0
        total = 0
        if self._literal is not None:
            total += sum(1 for _ in self._literal.finditer(text))
        for pattern in self._patterns:
            total += sum(1 for _ in pattern.finditer(text))
        return total

    def contains(self, text: Optional[str]) -> bool:
        if not text:
            return False
        if self._literal is not None and self._literal.search(text):
            return True
        return any(pattern.search(text) for pattern in self._patterns)


@dataclass(slots=True)
class Lexicon:
    """Curated vocabulary: who, what was done, which product, which domain terms."""

    organizations: List[str] = field(default_factory=list)
    products: List[str] = field(default_factory=list)
    persons: List[str] = field(default_factory=list)
    person_patterns: List[str] = field(default_factory=list)
    name_stopwords: List[str] = field(default_factory=list)
    actions: Dict[str, List[str]] = field(default_factory=dict)
    unmapped_actions: List[str] = field(default_factory=list)
    tech_terms: List[str] = field(default_factory=list)
    financial_patterns: List[str] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, payload: Mapping) -> "Lexicon":
        actions = payload.get("actions") or {}
        if not isinstance(actions, Mapping):
            raise ValueError("lexicon 'actions' must map concepts to word lists")
        return cls(
            organizations=_string_list(payload.get("organizations")),
            products=_string_list(payload.get("products")),
            persons=_string_list(payload.get("persons")),
            person_patterns=_string_list(payload.get("person_patterns")),
            name_stopwords=_string_list(payload.get("name_stopwords")),
            actions={str(concept): _string_list(words) for concept, words in actions.items()},
            unmapped_actions=_string_list(payload.get("unmapped_actions")),
            tech_terms=_string_list(payload.get("tech_terms")),
            financial_patterns=_string_list(payload.get("financial_patterns")),
        )

    @classmethod
    def from_yaml(cls, path: str | pathlib.Path) -> "Lexicon":
        lexicon_path = pathlib.Path(path)
        if not lexicon_path.exists():
            raise FileNotFoundError(f"Lexicon file not found: {lexicon_path}")
        with lexicon_path.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle) or {}
        lexicon = cls.from_mapping(payload)
        LOGGER.debug(
            "Loaded lexicon %s: %s organizations, %s products, %s action concepts",
            lexicon_path,
            len(lexicon.organizations),
            len(lexicon.products),
            len(lexicon.actions),
        )
        return lexicon

    def synonym_table(self) -> Dict[str, str]:
        """Surface action word -> canonical concept."""
        table: Dict[str, str] = {}
        for concept, words in self.actions.items():
            for word in words:
                key = normalize_term(word)
                if key in table and table[key] != concept:
                    LOGGER.warning(
                        "Action word %r maps to both %r and %r; keeping %r",
                        key,
                        table[key],
                        concept,
                        table[key],
                    )
                    continue
                table[key] = concept
        return table


_DEFAULT_LEXICON: Optional[Lexicon] = None


def load_default_lexicon() -> Lexicon:
    global _DEFAULT_LEXICON
    if _DEFAULT_LEXICON is None:
        _DEFAULT_LEXICON = Lexicon.from_yaml(DEFAULT_LEXICON_PATH)
    return _DEFAULT_LEXICON


def _string_list(value) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value if item is not None and str(item).strip()]
