"""Tests for the in-memory and Milvus vector stores."""

import json
from unittest.mock import MagicMock

import pytest

from conftest import keyword_embedding
from retrieval_operations import (
    Document,
    DocumentInsertionError,
    HybridRetriever,
    HybridSearchOptions,
    InMemoryVectorStore,
    MilvusVectorStore,
    NativeHybridRetriever,
    RetrieverConfigurationError,
    document_key,
)
from retrieval_operations.core.retrieval_exceptions import SearchError


def ids(results):
    return [document_key(r.document) for r in results]


async def filled_store(corpus, embedding_function=keyword_embedding):
    store = InMemoryVectorStore(embedding_function)
    await store.add_documents(corpus)
    return store


@pytest.mark.asyncio
async def test_in_memory_add_assigns_ids():
    store = InMemoryVectorStore(keyword_embedding)
    new_ids = await store.add_documents([
        Document("python code", {"id": "p1"}),
        Document("java code", {"lang": "java"}),
    ])

    assert new_ids[0] == "p1"
    assert len(new_ids[1]) == 32
    assert len(store) == 2

    results = await store.similarity_search_with_score("java", 1)
    assert results[0].document.metadata == {"lang": "java"}


@pytest.mark.asyncio
async def test_in_memory_cosine_ranking(corpus):
    store = await filled_store(corpus)
    results = await store.similarity_search_with_score("python", 5)

    assert ids(results) == ["d0", "d2", "d1"]
    assert results[0].score == pytest.approx(1.0, rel=1e-5)
    for current, following in zip(results, results[1:]):
        assert current.score >= following.score


@pytest.mark.asyncio
async def test_in_memory_empty_store_and_zero_k(corpus):
    store = InMemoryVectorStore(keyword_embedding)
    assert await store.similarity_search_with_score("python", 3) == []

    store = await filled_store(corpus)
    assert await store.similarity_search_with_score("python", 0) == []


@pytest.mark.asyncio
async def test_in_memory_async_embedding_function(corpus):
    async def embed(texts):
        return keyword_embedding(texts)

    store = await filled_store(corpus, embed)
    results = await store.similarity_search_with_score("java", 1)
    assert ids(results) == ["d1"]


def test_in_memory_requires_embedding_function():
    with pytest.raises(RetrieverConfigurationError):
        InMemoryVectorStore(None)


@pytest.mark.asyncio
async def test_in_memory_dimension_mismatch(corpus):
    dims = [3]

    def embed(texts):
        return [[1.0] * dims[0] for _ in texts]

    store = InMemoryVectorStore(embed)
    await store.add_documents(corpus[:1])
    dims[0] = 4

    with pytest.raises(DocumentInsertionError):
        await store.add_documents(corpus[1:])
    with pytest.raises(SearchError):
        await store.similarity_search_with_score("python", 1)
    assert len(store) == 1


@pytest.mark.asyncio
async def test_in_memory_embedding_failure(corpus):
    def embed(texts):
        raise RuntimeError("model offline")

    store = InMemoryVectorStore(embed)
    with pytest.raises(DocumentInsertionError):
        await store.add_documents(corpus)


@pytest.mark.asyncio
async def test_in_memory_embedding_count_mismatch(corpus):
    store = InMemoryVectorStore(lambda texts: [[1.0, 0.0]])
    with pytest.raises(DocumentInsertionError):
        await store.add_documents(corpus)


@pytest.mark.asyncio
async def test_in_memory_hybrid_search(corpus):
    store = await filled_store(corpus)
    results = await store.hybrid_search("python", 3, HybridSearchOptions(rrf_rank_constant=60))

    assert ids(results) == ["d0", "d2", "d1"]
    assert results[0].fusion_score == pytest.approx(2 / 61)
    assert results[0].vector_score == pytest.approx(1.0, rel=1e-5)
    assert results[0].keyword_score > 0
    assert results[2].keyword_score == 0.0


@pytest.mark.asyncio
async def test_in_memory_store_with_retrievers(corpus):
    store = await filled_store(corpus)

    hybrid = HybridRetriever(store, corpus)
    hybrid_results = await hybrid.search("python", 2)
    assert ids(hybrid_results) == ["d0", "d2"]

    native = NativeHybridRetriever(store)
    native_results = await native.search("python", 2)
    assert ids(native_results) == ids(hybrid_results)
    assert native_results[0].score == pytest.approx(hybrid_results[0].score)


@pytest.mark.asyncio
async def test_documents_without_ids_merge_across_sides():
    seed = [Document("java programming language")]
    store = InMemoryVectorStore(keyword_embedding)
    await store.add_documents(seed)
    retriever = HybridRetriever(store, seed)

    await retriever.add_documents([Document("python vector search")])
    results = await retriever.search("python", 5)

    assert [r.document.content for r in results] == [
        "python vector search",
        "java programming language",
    ]
    assert results[0].vector_rank == 1
    assert results[0].keyword_rank == 1
    assert results[0].score == pytest.approx(2 / 61)
    assert results[1].keyword_rank == 0


@pytest.mark.asyncio
async def test_shared_content_prefix_collides_without_ids():
    prefix = "python " + "x" * 93
    documents = [Document(prefix + " alpha"), Document(prefix + " beta")]
    store = await filled_store(documents)
    retriever = HybridRetriever(store, documents)

    results = await retriever.search("python", 5)

    assert len(results) == 1
    assert results[0].document.content == prefix + " alpha"
    assert results[0].score == pytest.approx(2 / 61 + 2 / 62)

    with_ids = [
        Document(doc.content, {"id": f"doc-{i}"}) for i, doc in enumerate(documents)
    ]
    store = await filled_store(with_ids)
    results = await HybridRetriever(store, with_ids).search("python", 5)

    assert ids(results) == ["doc-0", "doc-1"]


def milvus_hit(doc_id, distance, content, metadata):
    hit = MagicMock()
    hit.id = doc_id
    hit.distance = distance
    hit.entity = {"content": content, "metadata": metadata}
    return hit


def milvus_store(**kwargs):
    collection = MagicMock()
    store = MilvusVectorStore("documents", keyword_embedding, collection=collection, **kwargs)
    return store, collection


def test_milvus_requires_collection_name():
    with pytest.raises(RetrieverConfigurationError):
        MilvusVectorStore(" ", keyword_embedding)
    with pytest.raises(RetrieverConfigurationError):
        MilvusVectorStore("documents", None)


@pytest.mark.asyncio
async def test_milvus_add_documents(corpus):
    store, collection = milvus_store()
    new_ids = await store.add_documents(corpus[:2] + [Document("no id")])

    assert new_ids[:2] == ["d0", "d1"]
    rows = collection.insert.call_args[0][0]
    assert len(rows) == 3
    assert rows[0]["id"] == "d0"
    assert rows[0]["content"] == "python programming language"
    assert rows[0]["metadata"] == {"id": "d0"}
    assert rows[0]["vector"] == [1.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.1]
    assert rows[2]["id"] == new_ids[2]
    assert rows[2]["metadata"] == {}


@pytest.mark.asyncio
async def test_milvus_hit_without_id_keys_on_content():
    store, collection = milvus_store()
    collection.search.return_value = [[
        milvus_hit("5f0c", 0.9, "vector search with python", {}),
    ]]

    results = await store.similarity_search_with_score("python", 1)

    assert results[0].document.metadata == {}
    assert ids(results) == ["vector search with python"]


@pytest.mark.asyncio
async def test_milvus_insert_failure(corpus):
    store, collection = milvus_store()
    collection.insert.side_effect = RuntimeError("collection not loaded")

    with pytest.raises(DocumentInsertionError):
        await store.add_documents(corpus)


@pytest.mark.asyncio
async def test_milvus_similarity_search():
    store, collection = milvus_store(search_params={"ef": 64})
    collection.search.return_value = [[
        milvus_hit("d2", 0.9, "vector search with python", {"id": "d2"}),
        milvus_hit("d0", 0.7, "python programming language", json.dumps({"id": "d0", "tag": "lang"})),
    ]]

    results = await store.similarity_search_with_score("python", 2)

    assert ids(results) == ["d2", "d0"]
    assert results[0].score == 0.9
    assert results[1].document.metadata == {"id": "d0", "tag": "lang"}

    kwargs = collection.search.call_args.kwargs
    assert kwargs["anns_field"] == "vector"
    assert kwargs["limit"] == 2
    assert kwargs["param"] == {"metric_type": "COSINE", "params": {"ef": 64}}
    assert kwargs["output_fields"] == ["id", "content", "metadata"]


@pytest.mark.asyncio
async def test_milvus_search_failure():
    store, collection = milvus_store()
    collection.search.side_effect = RuntimeError("timeout")

    with pytest.raises(SearchError):
        await store.similarity_search_with_score("python", 2)


@pytest.mark.asyncio
async def test_milvus_hybrid_requires_full_text():
    store, _ = milvus_store()
    with pytest.raises(SearchError):
        await store.hybrid_search("python", 2)


@pytest.mark.asyncio
async def test_milvus_hybrid_search():
    from pymilvus import AnnSearchRequest, RRFRanker

    store, collection = milvus_store(enable_full_text=True)
    collection.hybrid_search.return_value = [[
        milvus_hit("d0", 0.032, "python programming language", {"id": "d0"}),
    ]]

    results = await store.hybrid_search("python", 3, HybridSearchOptions(rrf_rank_constant=20))

    assert len(results) == 1
    assert results[0].fusion_score == 0.032
    assert results[0].vector_score == 0.0
    assert results[0].keyword_score == 0.0

    args = collection.hybrid_search.call_args.args
    requests, ranker, limit = args
    assert len(requests) == 2
    assert all(isinstance(request, AnnSearchRequest) for request in requests)
    assert isinstance(ranker, RRFRanker)
    assert limit == 3


@pytest.mark.asyncio
async def test_milvus_collection_created_lazily(monkeypatch):
    created = []

    class FakeCollection:
        def __init__(self, name, using):
            created.append((name, using))

    monkeypatch.setattr("pymilvus.Collection", FakeCollection)
    store = MilvusVectorStore("documents", keyword_embedding, alias="analytics")

    assert created == []
    assert isinstance(store.collection, FakeCollection)
    assert created == [("documents", "analytics")]


def test_milvus_from_settings_connects(monkeypatch):
    from pymilvus import connections

    from config import RetrievalSettings

    connected = []
    monkeypatch.setattr(connections, "has_connection", lambda alias: False)
    monkeypatch.setattr(connections, "connect", lambda **kwargs: connected.append(kwargs))

    settings = RetrievalSettings(milvus={
        "host": "milvus.internal",
        "port": "19531",
        "alias": "search",
        "collection_name": "articles",
        "metric_type": "IP",
        "search_params": {"ef": 32},
        "enable_full_text": True,
    })
    store = MilvusVectorStore.from_settings(settings, keyword_embedding, collection=MagicMock())

    assert connected == [{"alias": "search", "host": "milvus.internal", "port": "19531"}]
    assert store.collection_name == "articles"
    assert store.alias == "search"
    assert store.metric_type == "IP"
    assert store.search_params == {"ef": 32}
    assert store.enable_full_text is True


def test_milvus_from_settings_reuses_connection(monkeypatch):
    from pymilvus import connections

    from config import RetrievalSettings

    connected = []
    monkeypatch.setattr(connections, "has_connection", lambda alias: True)
    monkeypatch.setattr(connections, "connect", lambda **kwargs: connected.append(kwargs))

    store = MilvusVectorStore.from_settings(RetrievalSettings(), keyword_embedding)

    assert connected == []
    assert store.collection_name == "documents"
    assert store.alias == "default"
