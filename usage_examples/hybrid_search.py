"""
Hybrid Search Example

Demonstrates hybrid retrieval combining dense (vector) and sparse (BM25)
search over an in-memory vector store, local fusion with RRF and weighted
strategies, store-side fusion through the native adapter, and request
dispatch through the retrieval manager.
"""

import sys
import os
import asyncio

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from config import load_settings, configure_logging
from retrieval_operations import (
    HybridRetriever,
    HybridRetrieverConfig,
    InMemoryVectorStore,
    NativeHybridConfig,
    NativeHybridRetriever,
    RetrievalManager,
    WeightedStrategy,
)
# Import usage_examples utils by path
import importlib.util
utils_file_path = os.path.abspath(os.path.join(os.path.dirname(__file__), 'utils.py'))
spec = importlib.util.spec_from_file_location("example_utils", utils_file_path)
example_utils = importlib.util.module_from_spec(spec)
spec.loader.exec_module(example_utils)
print_section = example_utils.print_section
print_step = example_utils.print_step
print_success = example_utils.print_success
print_info = example_utils.print_info
print_error = example_utils.print_error
print_results_table = example_utils.print_results_table


QUERY = "hybrid keyword and vector search"


async def main():
    """Main function to demonstrate hybrid search."""
    print_section("Hybrid Search Example")

    # Step 1: Load settings
    print_step(1, "Load Settings")
    settings = load_settings(os.environ.get("RETRIEVAL_CONFIG"))
    configure_logging(settings)
    print_info("Fusion method", settings.fusion.method.value)
    print_info("BM25", f"k1={settings.bm25.k1}, b={settings.bm25.b}")

    # Step 2: Index documents
    print_step(2, "Index Documents")
    documents = example_utils.sample_documents()
    store = InMemoryVectorStore(example_utils.toy_embedding)
    try:
        ids = await store.add_documents(documents)
        print_success(f"Indexed {len(ids)} documents")
    except Exception as e:
        print_error(f"Indexing failed: {e}")
        return

    retriever = HybridRetriever(
        store,
        documents,
        HybridRetrieverConfig.from_settings(settings),
        max_batch_size=settings.hybrid.max_batch_size,
        max_metrics_history=settings.hybrid.max_metrics_history,
    )

    # Step 3: Hybrid search with the configured strategy
    print_step(3, "Hybrid Search")
    results = await retriever.search(QUERY, 3)
    print_results_table(results)

    # Step 4: Compare with single-sided searches
    print_step(4, "Vector-Only and Keyword-Only Search")
    print_results_table(await retriever.search_vector_only(QUERY, 3))
    print_results_table(await retriever.search_keyword_only(QUERY, 3))

    # Step 5: Weighted fusion for this call only
    print_step(5, "Weighted Fusion")
    weighted = WeightedStrategy({"vector": 0.5, "keyword": 0.5})
    print_results_table(await retriever.search(QUERY, 3, fusion_strategy=weighted))

    # Step 6: Store-side fusion
    print_step(6, "Native Hybrid Search")
    native = NativeHybridRetriever(store, config=NativeHybridConfig.from_settings(settings))
    print_results_table(await native.search(QUERY, 3))

    # Step 7: Requests through the manager
    print_step(7, "Retrieval Manager")
    manager = RetrievalManager(retriever, native_retriever=native)
    for mode in ("hybrid", "keyword", "native"):
        results = await manager.search({"query": QUERY, "top_k": 2, "mode": mode})
        print_info(mode, [r.document.metadata["id"] for r in results])

    # Step 8: Explain and summarize
    print_step(8, "Explain Search and Metrics")
    explanation = await retriever.explain_search(QUERY, 2)
    print_info("Tokens", explanation["stages"]["tokenization"]["tokens"])
    print_info("Term contributions", explanation["stages"]["keyword"]["term_contributions"])

    summary = await retriever.get_metrics_summary()
    print_info("Searches", summary["total_searches"])
    print_info("Average total time (ms)", summary["avg_total_time_ms"])

    print_section("Hybrid Search Example Complete")


if __name__ == "__main__":
    asyncio.run(main())
