"""Fingerprint extraction and similarity primitives."""

from .extraction import FingerprintExtractor, build_composite_key, extract_fingerprint
from .lexicon import Lexicon, TermMatcher, load_default_lexicon
from .similarity import (
	FingerprintSimilarity,
	SimilarityWeights,
	fingerprint_similarity,
	jaccard,
	ngram_cosine,
)

__all__ = [
	"FingerprintExtractor",
	"FingerprintSimilarity",
	"Lexicon",
	"SimilarityWeights",
	"TermMatcher",
	"build_composite_key",
	"extract_fingerprint",
	"fingerprint_similarity",
	"jaccard",
	"load_default_lexicon",
	"ngram_cosine",
]
