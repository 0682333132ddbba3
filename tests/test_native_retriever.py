"""Tests for the store-side (native) hybrid retriever."""

import pytest

from conftest import FakeHybridVectorStore, FakeVectorStore
from retrieval_operations import (
    DocumentInsertionError,
    DocumentWithScore,
    NativeHybridConfig,
    NativeHybridRetriever,
    NativeHybridSearchError,
    RRFStrategy,
    RetrieverConfigurationError,
    SearchTimeoutError,
    VectorSearchError,
    WeightedStrategy,
    document_key,
    native_hybrid_search,
)


def ids(results):
    return [document_key(r.document) for r in results]


def make_store(corpus, hybrid_results, **kwargs):
    return FakeHybridVectorStore(
        hybrid_results=hybrid_results,
        results=[
            DocumentWithScore(corpus[2], 0.9),
            DocumentWithScore(corpus[0], 0.5),
            DocumentWithScore(corpus[1], 0.1),
        ],
        **kwargs
    )


@pytest.mark.asyncio
async def test_native_search_keeps_store_order(corpus, hybrid_results):
    store = make_store(corpus, hybrid_results)
    retriever = NativeHybridRetriever(store)

    results = await retriever.search("python", 2)

    assert ids(results) == ["d0", "d2"]
    assert [r.vector_rank for r in results] == [1, 2]
    assert [r.keyword_rank for r in results] == [0, 0]
    assert results[0].score == 0.9
    assert results[0].vector_score == 0.8
    assert results[0].keyword_score == 1.2

    query, k, options = store.hybrid_calls[0]
    assert (query, k) == ("python", 4)
    assert options.rrf_rank_constant == 60
    assert store.search_calls == []


@pytest.mark.asyncio
async def test_native_search_uses_configured_candidates(corpus, hybrid_results):
    store = make_store(corpus, hybrid_results)
    retriever = NativeHybridRetriever(store, config=NativeHybridConfig(vector_top_k=9))

    await retriever.search("python", 2)
    assert store.hybrid_calls[0][1] == 9


@pytest.mark.asyncio
async def test_native_min_score(corpus, hybrid_results):
    store = make_store(corpus, hybrid_results)
    retriever = NativeHybridRetriever(store).with_min_score(0.4)

    results = await retriever.search("python", 10)
    assert ids(results) == ["d0", "d2"]


@pytest.mark.asyncio
async def test_native_failure_is_wrapped(corpus):
    store = make_store(corpus, [], hybrid_error=RuntimeError("ranker unavailable"))
    retriever = NativeHybridRetriever(store)

    with pytest.raises(NativeHybridSearchError) as exc_info:
        await retriever.search("python", 3)
    assert exc_info.value.source == "native"
    assert "ranker unavailable" in str(exc_info.value)


@pytest.mark.asyncio
async def test_native_timeout(corpus, hybrid_results):
    store = make_store(corpus, hybrid_results, hybrid_delay=5.0)
    retriever = NativeHybridRetriever(store)

    with pytest.raises(SearchTimeoutError):
        await retriever.search("python", 3, timeout=0.05)


@pytest.mark.asyncio
async def test_custom_strategy_fuses_vector_half(corpus, hybrid_results):
    store = make_store(corpus, hybrid_results)
    retriever = NativeHybridRetriever(store)

    results = await retriever.search_with_custom_strategy("python", 2, RRFStrategy(k=60))

    assert store.search_calls == [("python", 4)]
    assert store.hybrid_calls == []
    assert ids(results) == ["d2", "d0"]
    assert results[0].score == pytest.approx(1 / 61)
    assert results[0].vector_score == 0.9
    assert [r.vector_rank for r in results] == [1, 2]


@pytest.mark.asyncio
async def test_custom_strategy_with_weighted(corpus, hybrid_results):
    store = make_store(corpus, hybrid_results)
    retriever = NativeHybridRetriever(store).with_min_score(0.1)

    results = await retriever.search_with_custom_strategy(
        "python", 5, WeightedStrategy({"vector": 1.0})
    )

    # 0.9/0.5/0.1 normalize to 1.0/0.5/0.0 and the last is filtered
    assert ids(results) == ["d2", "d0"]
    assert [r.score for r in results] == pytest.approx([1.0, 0.5])


@pytest.mark.asyncio
async def test_fallback_when_native_disabled(corpus, hybrid_results):
    store = make_store(corpus, hybrid_results)
    config = NativeHybridConfig(use_native_rrf=False)
    retriever = NativeHybridRetriever(store, config=config)

    results = await retriever.search("python", 2)

    assert store.hybrid_calls == []
    assert ids(results) == ["d2", "d0"]


@pytest.mark.asyncio
async def test_custom_strategy_vector_failure(corpus):
    store = make_store(corpus, [], error=RuntimeError("down"))
    retriever = NativeHybridRetriever(store)

    with pytest.raises(VectorSearchError):
        await retriever.search_with_custom_strategy("python", 2, RRFStrategy())


@pytest.mark.asyncio
async def test_native_vector_only(corpus, hybrid_results):
    store = make_store(corpus, hybrid_results)
    results = await NativeHybridRetriever(store).search_vector_only("python", 2)

    assert ids(results) == ["d2", "d0"]
    assert results[1].vector_score == 0.5


def test_requires_hybrid_capable_store(corpus):
    with pytest.raises(RetrieverConfigurationError):
        NativeHybridRetriever(None)
    with pytest.raises(RetrieverConfigurationError):
        NativeHybridRetriever(FakeVectorStore())


def test_rrf_constant_configuration(corpus, hybrid_results):
    retriever = NativeHybridRetriever(make_store(corpus, hybrid_results))
    assert retriever.strategy.k == 60

    retriever.with_rrf_constant(20)
    assert retriever.config.rrf_rank_constant == 20
    assert retriever.strategy.k == 20

    retriever.with_rrf_constant(0)
    assert retriever.config.rrf_rank_constant == 60


def test_fluent_setters_leave_shared_config_unchanged(corpus, hybrid_results):
    shared = NativeHybridConfig(rrf_rank_constant=30, min_score=0.1)
    first = NativeHybridRetriever(make_store(corpus, hybrid_results), config=shared)
    second = NativeHybridRetriever(make_store(corpus, hybrid_results), config=shared)

    first.with_min_score(0.5).with_rrf_constant(10)

    assert first.config.min_score == 0.5
    assert first.config.rrf_rank_constant == 10
    assert shared.min_score == 0.1
    assert shared.rrf_rank_constant == 30
    assert second.config is shared


@pytest.mark.asyncio
async def test_rrf_constant_passed_to_store(corpus, hybrid_results):
    store = make_store(corpus, hybrid_results)
    retriever = NativeHybridRetriever(store).with_rrf_constant(15)

    await retriever.search("python", 1)
    assert store.hybrid_calls[0][2].rrf_rank_constant == 15


def test_with_config_and_stats(corpus, hybrid_results):
    retriever = NativeHybridRetriever(make_store(corpus, hybrid_results))
    config = NativeHybridConfig(rrf_rank_constant=30, min_score=0.2, enable_full_text=True)

    assert retriever.with_config(config) is retriever
    stats = retriever.get_stats()
    assert stats["type"] == "NativeHybridRetriever"
    assert stats["rrf_k"] == 30
    assert stats["min_score"] == 0.2
    assert stats["use_native_rrf"] is True
    assert stats["enable_full_text"] is True


def test_invalid_native_config():
    with pytest.raises(ValueError):
        NativeHybridConfig(rrf_rank_constant=0)
    with pytest.raises(ValueError):
        NativeHybridConfig(vector_top_k=-1)


@pytest.mark.asyncio
async def test_native_add_documents(corpus, hybrid_results):
    store = make_store(corpus, hybrid_results)
    retriever = NativeHybridRetriever(store)

    assert await retriever.add_documents(corpus[:2]) == ["id-0", "id-1"]

    failing = NativeHybridRetriever(make_store(corpus, [], add_error=RuntimeError("full")))
    with pytest.raises(DocumentInsertionError):
        await failing.add_documents(corpus[:1])


@pytest.mark.asyncio
async def test_native_hybrid_search_function(corpus, hybrid_results):
    store = make_store(corpus, hybrid_results)
    results = await native_hybrid_search(store, "python", 3)

    assert ids(results) == ["d0", "d2", "d1"]
    assert store.hybrid_calls[0][2].rrf_rank_constant == 60
