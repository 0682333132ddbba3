"""Tests for rank fusion strategies."""

import pytest

from retrieval_operations import (
    Document,
    FusionError,
    FusionMethod,
    LinearCombinationStrategy,
    RRFStrategy,
    WeightedStrategy,
    convert_to_ranked_list,
    create_fusion_strategy,
    document_key,
    normalize_scores,
)


def doc(doc_id, content=None):
    return Document(content or f"content of {doc_id}", {"id": doc_id})


D0, D1, D2, D3 = doc("d0"), doc("d1"), doc("d2"), doc("d3")


def by_id(fused):
    return {document_key(f.document): f for f in fused}


def test_document_key_prefers_id():
    assert document_key(Document("text", {"id": "abc"})) == "abc"
    assert document_key(Document("text", {"id": 5})) == "5"


def test_document_key_falls_back_to_content_prefix():
    long_text = "x" * 150
    assert document_key(Document(long_text)) == "x" * 100
    assert document_key(Document("short", {"id": ""})) == "short"


def test_convert_to_ranked_list_assigns_ranks():
    ranked = convert_to_ranked_list("vector", [D0, D1, D2], [0.9, 0.5])

    assert len(ranked) == 3
    assert [d.rank for d in ranked.documents] == [1, 2, 3]
    assert [d.score for d in ranked.documents] == [0.9, 0.5, 0.0]


def test_rrf_exact_scores():
    vector = convert_to_ranked_list("vector", [D0, D1, D2])
    keyword = convert_to_ranked_list("keyword", [D1, D3, D0])

    fused = RRFStrategy(k=60).fuse([vector, keyword])
    scores = by_id(fused)

    assert scores["d0"].score == pytest.approx(1 / 61 + 1 / 63)
    assert scores["d0"].score == pytest.approx(0.032266, abs=1e-6)
    assert scores["d1"].score == pytest.approx(1 / 62 + 1 / 61)
    assert scores["d1"].score == pytest.approx(0.032522, abs=1e-6)
    assert document_key(fused[0].document) == "d1"
    assert document_key(fused[1].document) == "d0"


def test_rrf_records_source_ranks():
    vector = convert_to_ranked_list("vector", [D0, D1], [0.9, 0.8])
    keyword = convert_to_ranked_list("keyword", [D1], [4.2])

    scores = by_id(RRFStrategy().fuse([vector, keyword]))

    assert scores["d1"].source_ranks == {"vector": 2, "keyword": 1}
    assert scores["d1"].source_scores == {"vector": 0.8, "keyword": 4.2}
    assert scores["d0"].source_ranks == {"vector": 1}


def test_rrf_invalid_k_falls_back():
    assert RRFStrategy(k=0).k == 60
    assert RRFStrategy(k=-5).k == 60


def test_fusion_ties_keep_first_appearance():
    fused = RRFStrategy().fuse([
        convert_to_ranked_list("vector", [D2]),
        convert_to_ranked_list("keyword", [D0]),
    ])
    assert [document_key(f.document) for f in fused] == ["d2", "d0"]


def test_fuse_empty_input():
    assert RRFStrategy().fuse([]) == []
    assert WeightedStrategy().fuse([]) == []


def test_normalize_equal_scores_to_one():
    ranked = convert_to_ranked_list("vector", [D0, D1, D2], [0.5, 0.5, 0.5])
    normalized = normalize_scores(ranked)

    assert [d.score for d in normalized.documents] == [1.0, 1.0, 1.0]
    assert [d.score for d in ranked.documents] == [0.5, 0.5, 0.5]


def test_normalize_min_max():
    ranked = convert_to_ranked_list("vector", [D0, D1, D2], [0.9, 0.5, 0.1])
    normalized = normalize_scores(ranked)

    assert [d.score for d in normalized.documents] == pytest.approx([1.0, 0.5, 0.0])
    assert [d.rank for d in normalized.documents] == [1, 2, 3]


def test_weighted_fusion():
    vector = convert_to_ranked_list("vector", [D0, D1, D2], [0.9, 0.5, 0.1])
    keyword = convert_to_ranked_list("keyword", [D1, D3], [3.0, 1.0])

    fused = WeightedStrategy({"vector": 0.7, "keyword": 0.3}).fuse([vector, keyword])
    scores = by_id(fused)

    assert scores["d0"].score == pytest.approx(0.7)
    assert scores["d1"].score == pytest.approx(0.7 * 0.5 + 0.3 * 1.0)
    assert scores["d2"].score == pytest.approx(0.0)
    assert scores["d3"].score == pytest.approx(0.0)
    assert document_key(fused[0].document) == "d0"
    # original scores are kept, not the normalized ones
    assert scores["d1"].source_scores == {"vector": 0.5, "keyword": 3.0}


def test_weighted_equal_scores_do_not_divide_by_zero():
    vector = convert_to_ranked_list("vector", [D0, D1], [0.4, 0.4])
    fused = WeightedStrategy({"vector": 1.0}).fuse([vector])

    assert [f.score for f in fused] == [1.0, 1.0]


def test_weighted_missing_weight_is_uniform_and_zero_is_honored():
    vector = convert_to_ranked_list("vector", [D0], [1.0])
    keyword = convert_to_ranked_list("keyword", [D1], [1.0])

    scores = by_id(WeightedStrategy({"vector": 0.0}).fuse([vector, keyword]))

    assert scores["d0"].score == 0.0
    assert scores["d1"].score == pytest.approx(0.5)


def test_weighted_without_normalization():
    vector = convert_to_ranked_list("vector", [D0], [0.8])
    fused = WeightedStrategy({"vector": 0.5}, normalize=False).fuse([vector])

    assert fused[0].score == pytest.approx(0.4)


def test_linear_combination_uses_raw_scores():
    vector = convert_to_ranked_list("vector", [D0, D1], [0.9, 0.2])
    keyword = convert_to_ranked_list("keyword", [D1], [0.5])

    scores = by_id(LinearCombinationStrategy({"vector": 2.0}).fuse([vector, keyword]))

    assert scores["d0"].score == pytest.approx(1.8)
    # keyword has no weight and defaults to 1.0
    assert scores["d1"].score == pytest.approx(0.4 + 0.5)


def test_key_func_failure_raises_fusion_error():
    def broken_key(document):
        raise KeyError("no key")

    with pytest.raises(FusionError):
        RRFStrategy(key_func=broken_key).fuse([convert_to_ranked_list("vector", [D0])])


def test_custom_key_func_merges_documents():
    a = Document("same text", {"source": "a"})
    b = Document("different text", {"source": "a"})
    strategy = RRFStrategy(key_func=lambda d: d.metadata["source"])

    fused = strategy.fuse([
        convert_to_ranked_list("vector", [a]),
        convert_to_ranked_list("keyword", [b]),
    ])

    assert len(fused) == 1
    assert fused[0].document is a


def test_create_fusion_strategy():
    assert isinstance(create_fusion_strategy("rrf", rrf_k=30), RRFStrategy)
    assert create_fusion_strategy(FusionMethod.RRF, rrf_k=30).k == 30

    weighted = create_fusion_strategy("weighted", weights={"vector": 0.6}, normalize=False)
    assert isinstance(weighted, WeightedStrategy)
    assert weighted.weights == {"vector": 0.6}
    assert weighted.normalize is False

    assert isinstance(create_fusion_strategy("linear"), LinearCombinationStrategy)

    with pytest.raises(ValueError):
        create_fusion_strategy("bogus")
