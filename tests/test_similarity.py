import pytest

from newsdigest.data.models import EntityFingerprint
from newsdigest.nlp.similarity import (
    SimilarityWeights,
    char_ngrams,
    fingerprint_similarity,
    jaccard,
    ngram_cosine,
)


def build_fingerprint(entities=(), concepts=(), products=(), key="") -> EntityFingerprint:
    return EntityFingerprint(
        entities=frozenset(entities),
        action_concepts=frozenset(concepts),
        products=frozenset(products),
        composite_key=key,
    )


def test_jaccard_edges():
    assert jaccard(set(), set()) == 0.0
    assert jaccard({"a"}, {"a"}) == 1.0
    assert jaccard({"a", "b"}, {"b", "c"}) == pytest.approx(1 / 3)
    assert jaccard(["a", "a"], ["a"]) == 1.0


def test_char_ngrams():
    assert char_ngrams("abcd", 2) == ["ab", "bc", "cd"]
    assert char_ngrams("a", 2) == []
    with pytest.raises(ValueError):
        char_ngrams("abc", 0)


def test_ngram_cosine_ignores_case_and_punctuation():
    assert ngram_cosine("OpenAI, GPT-5!", "openai gpt5") == pytest.approx(1.0)
    assert ngram_cosine("", "anything") == 0.0
    assert ngram_cosine("abc", "xyz") == 0.0


def test_ngram_cosine_handles_cjk():
    score = ngram_cosine("百度发布文心大模型", "百度发布文心大模型新版本")
    assert 0.7 < score < 1.0


def test_fingerprint_similarity_weights():
    left = build_fingerprint({"openai"}, {"release"}, {"gpt-5"}, "openai|release|gpt-5")
    right = build_fingerprint({"google"}, {"release"}, {"gemini 3"}, "google|release|gemini 3")

    result = fingerprint_similarity(left, right)

    assert result.entity_jaccard == 0.0
    assert result.action_jaccard == 1.0
    assert result.hash_match == 0
    assert result.overall == pytest.approx(0.25)


def test_identical_fingerprints_score_one():
    fingerprint = build_fingerprint({"openai"}, {"release"}, {"gpt-5"}, "openai|release|gpt-5")
    assert fingerprint_similarity(fingerprint, fingerprint).overall == pytest.approx(1.0)


def test_empty_keys_never_match():
    empty = build_fingerprint()
    result = fingerprint_similarity(empty, empty)
    assert result.hash_match == 0
    assert result.overall == 0.0


def test_custom_weights():
    left = build_fingerprint({"openai"})
    right = build_fingerprint({"openai"})
    result = fingerprint_similarity(left, right, SimilarityWeights(entity=1.0, action=0.0, product=0.0, key_match=0.0))
    assert result.overall == pytest.approx(1.0)
    assert result.to_dict()["entity_jaccard"] == 1.0


def test_similarities_are_symmetric():
    left = build_fingerprint({"openai", "microsoft"}, {"invest"}, {"gpt-5"}, "microsoft|openai|invest|gpt-5")
    right = build_fingerprint({"openai"}, {"invest", "coop"}, {"gpt-5", "sora"}, "openai|coop|invest|gpt-5")

    assert jaccard({"a", "b"}, {"b", "c", "d"}) == jaccard({"b", "c", "d"}, {"a", "b"})
    assert fingerprint_similarity(left, right).overall == fingerprint_similarity(right, left).overall
    assert ngram_cosine("OpenAI releases GPT-5", "GPT-5 released by OpenAI") == pytest.approx(
        ngram_cosine("GPT-5 released by OpenAI", "OpenAI releases GPT-5")
    )
