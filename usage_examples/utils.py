"""
Common Utilities for Retrieval Usage Examples

Provides helper functions for building sample documents, a toy embedding
function and formatting output across all usage examples.
"""

from typing import Any, List

from retrieval_operations import Document, SearchResult


SAMPLE_TEXTS = [
    "Milvus is an open source vector database built for similarity search",
    "BM25 ranks documents by term frequency and inverse document frequency",
    "Reciprocal rank fusion merges ranked lists using only the ranks",
    "Dense embeddings capture the semantic meaning of a sentence",
    "Keyword search excels at exact matches such as product codes",
    "Hybrid search combines keyword and vector retrieval for better recall",
]

VOCABULARY = [
    "vector", "search", "keyword", "rank", "fusion", "semantic",
    "document", "database", "hybrid", "embedding",
]


def sample_documents() -> List[Document]:
    """Build the sample corpus with stable ids."""
    return [
        Document(content=text, metadata={"id": f"doc-{i}", "position": i})
        for i, text in enumerate(SAMPLE_TEXTS)
    ]


def toy_embedding(texts: List[str]) -> List[List[float]]:
    """
    Embed texts as vocabulary prefix counts.

    Stands in for a real embedding model; counts how often each vocabulary
    stem occurs, plus a constant bias dimension.
    """
    vectors = []
    for text in texts:
        words = text.lower().split()
        vectors.append(
            [float(sum(word.startswith(stem) for word in words)) for stem in VOCABULARY] + [0.1]
        )
    return vectors


def print_section(title: str, width: int = 60):
    """
    Print a formatted section header.

    Args:
        title: Section title
        width: Width of the header line
    """
    print("\n" + "=" * width)
    print(f" {title}")
    print("=" * width)


def print_step(step_num: int, description: str):
    """Print a step description."""
    print(f"\n[Step {step_num}] {description}")


def print_success(message: str):
    """Print a success message."""
    print(f"[SUCCESS] {message}")


def print_error(message: str):
    """Print an error message."""
    print(f"[ERROR] {message}")


def print_info(key: str, value: Any):
    """Print information in key-value format."""
    print(f"  - {key}: {value}")


def print_results_table(results: List[SearchResult], max_rows: int = 10):
    """
    Print search results in a formatted table.

    Args:
        results: Search results
        max_rows: Maximum number of rows to display
    """
    if not results:
        print("No results to display")
        return

    print("\nSearch Results:")
    print("-" * 80)
    print(f"{'ID':<8} {'Score':<10} {'V.rank':<7} {'K.rank':<7} {'Content':<45}")
    print("-" * 80)

    for result in results[:max_rows]:
        result_id = result.document.metadata.get("id", "N/A")
        print(
            f"{str(result_id):<8} {result.score:<10.4f} "
            f"{result.vector_rank:<7} {result.keyword_rank:<7} "
            f"{result.document.content[:45]:<45}"
        )

    if len(results) > max_rows:
        print(f"... and {len(results) - max_rows} more results")
    print("-" * 80)
