"""
Retrieval Operations Module

This module provides hybrid lexical + vector retrieval:
- Tokenizers and an in-memory BM25 keyword index
- Rank fusion strategies (RRF, weighted, linear combination)
- A hybrid retriever running vector and keyword searches concurrently
- A native adapter for vector stores that fuse rankings server-side
- Vector store interfaces with in-memory and Milvus implementations
- A manager dispatching validated search requests
"""

__version__ = "0.1.0"

# Core exports
from .core import (
    Document,
    SearchResult,
    BaseRetriever,
    document_key,
    SearchError,
    InvalidSearchParametersError,
    SearchTimeoutError,
    FusionError,
    HybridSearchError,
    VectorSearchError,
    KeywordSearchError,
    NativeHybridSearchError,
    RetrieverConfigurationError,
    DocumentInsertionError,
)

# Configuration exports
from .config import (
    FusionMethod,
    SearchMode,
    BM25Config,
    HybridRetrieverConfig,
    NativeHybridConfig,
    SearchParams,
)

# Search implementations exports
from .search.keyword import (
    Tokenizer,
    WhitespaceTokenizer,
    SimpleChineseTokenizer,
    UnicodeTokenizer,
    NGramTokenizer,
    CustomTokenizer,
    StopWordsFilter,
    DEFAULT_ENGLISH_STOP_WORDS,
    DEFAULT_CHINESE_STOP_WORDS,
    create_tokenizer,
    BM25Index,
    BM25Retriever,
    ScoredDocument,
)
from .search.hybrid import (
    RankedDocument,
    RankedList,
    FusedDocument,
    FusionStrategy,
    RRFStrategy,
    WeightedStrategy,
    LinearCombinationStrategy,
    convert_to_ranked_list,
    normalize_scores,
    create_fusion_strategy,
    HybridRetriever,
    NativeHybridRetriever,
    native_hybrid_search,
    HybridSearchMetrics,
    SearchStatus,
)

# Vector store exports
from .vectorstores import (
    DocumentWithScore,
    HybridSearchOptions,
    HybridSearchResult,
    VectorStore,
    HybridVectorStore,
    InMemoryVectorStore,
    MilvusVectorStore,
)

# Manager
from .core.manager import RetrievalManager

__all__ = [
    "__version__",

    # Core
    "Document",
    "SearchResult",
    "BaseRetriever",
    "document_key",
    "RetrievalManager",

    # Exceptions
    "SearchError",
    "InvalidSearchParametersError",
    "SearchTimeoutError",
    "FusionError",
    "HybridSearchError",
    "VectorSearchError",
    "KeywordSearchError",
    "NativeHybridSearchError",
    "RetrieverConfigurationError",
    "DocumentInsertionError",

    # Configuration
    "FusionMethod",
    "SearchMode",
    "BM25Config",
    "HybridRetrieverConfig",
    "NativeHybridConfig",
    "SearchParams",

    # Keyword search
    "Tokenizer",
    "WhitespaceTokenizer",
    "SimpleChineseTokenizer",
    "UnicodeTokenizer",
    "NGramTokenizer",
    "CustomTokenizer",
    "StopWordsFilter",
    "DEFAULT_ENGLISH_STOP_WORDS",
    "DEFAULT_CHINESE_STOP_WORDS",
    "create_tokenizer",
    "BM25Index",
    "BM25Retriever",
    "ScoredDocument",

    # Fusion and hybrid search
    "RankedDocument",
    "RankedList",
    "FusedDocument",
    "FusionStrategy",
    "RRFStrategy",
    "WeightedStrategy",
    "LinearCombinationStrategy",
    "convert_to_ranked_list",
    "normalize_scores",
    "create_fusion_strategy",
    "HybridRetriever",
    "NativeHybridRetriever",
    "native_hybrid_search",
    "HybridSearchMetrics",
    "SearchStatus",

    # Vector stores
    "DocumentWithScore",
    "HybridSearchOptions",
    "HybridSearchResult",
    "VectorStore",
    "HybridVectorStore",
    "InMemoryVectorStore",
    "MilvusVectorStore",
]
