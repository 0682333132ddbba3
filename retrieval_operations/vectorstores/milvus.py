"""
Milvus Vector Store

This module provides a vector store backed by a Milvus collection through the
PyMilvus ORM API. Dense similarity search uses the collection's vector field;
native hybrid search combines it with Milvus BM25 full-text search on a
sparse field and lets the server fuse both rankings with RRFRanker.

PyMilvus calls are blocking, so they run in an executor to keep the event
loop responsive.
"""

import json
import uuid
import asyncio
import logging
from functools import partial
from concurrent.futures import Executor
from typing import Any, Dict, List, Optional, Sequence

from ..core.base import Document
from ..core.retrieval_exceptions import (
    DocumentInsertionError,
    RetrieverConfigurationError,
    SearchError,
)
from .base import (
    DocumentWithScore,
    EmbeddingFunction,
    HybridSearchOptions,
    HybridSearchResult,
    HybridVectorStore,
    embed_texts,
)

logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 65535


class MilvusVectorStore(HybridVectorStore):
    """
    Vector store over a Milvus collection.

    The collection holds a VARCHAR primary key, the document content, a JSON
    metadata field and a dense float vector. With enable_full_text, a sparse
    field is filled server-side by a BM25 function over the content field.
    """

    def __init__(
        self,
        collection_name: str,
        embedding_function: EmbeddingFunction,
        alias: str = "default",
        collection: Any = None,
        id_field: str = "id",
        text_field: str = "content",
        metadata_field: str = "metadata",
        vector_field: str = "vector",
        sparse_field: str = "sparse",
        metric_type: str = "COSINE",
        search_params: Optional[Dict[str, Any]] = None,
        enable_full_text: bool = False,
        executor: Optional[Executor] = None
    ):
        """
        Initialize the Milvus vector store.

        Args:
            collection_name: Name of the Milvus collection
            embedding_function: Maps a list of texts to a list of vectors
            alias: PyMilvus connection alias
            collection: Pre-built pymilvus Collection (created lazily if None)
            id_field: Primary key field
            text_field: Content field
            metadata_field: JSON metadata field
            vector_field: Dense vector field
            sparse_field: Sparse BM25 field used for full-text search
            metric_type: Dense metric type
            search_params: Extra index search params, e.g. {"ef": 64}
            enable_full_text: Whether the collection has a BM25 sparse field
            executor: Executor for blocking PyMilvus calls (loop default if None)
        """
        if not collection_name or not collection_name.strip():
            raise RetrieverConfigurationError("Collection name cannot be empty")
        if embedding_function is None:
            raise RetrieverConfigurationError("MilvusVectorStore requires an embedding function")

        self.collection_name = collection_name
        self.embedding_function = embedding_function
        self.alias = alias
        self.id_field = id_field
        self.text_field = text_field
        self.metadata_field = metadata_field
        self.vector_field = vector_field
        self.sparse_field = sparse_field
        self.metric_type = metric_type
        self.search_params = search_params or {}
        self.enable_full_text = enable_full_text
        self._executor = executor
        self._collection = collection

        logger.info(
            f"MilvusVectorStore initialized - collection: {collection_name}, "
            f"metric: {metric_type}, full_text: {enable_full_text}"
        )

    @classmethod
    def from_settings(
        cls,
        settings,
        embedding_function: EmbeddingFunction,
        connect: bool = True,
        **kwargs
    ) -> "MilvusVectorStore":
        """
        Build a store from application settings.

        Opens the PyMilvus connection for settings.milvus.alias unless one is
        already registered under that alias.

        Args:
            settings: config.RetrievalSettings instance
            embedding_function: Maps a list of texts to a list of vectors
            connect: Whether to open the connection
            **kwargs: Extra MilvusVectorStore arguments (field names, executor)

        Returns:
            MilvusVectorStore instance
        """
        milvus = settings.milvus
        if connect:
            from pymilvus import connections
            if not connections.has_connection(milvus.alias):
                connections.connect(alias=milvus.alias, host=milvus.host, port=milvus.port)
                logger.info(f"Connected to Milvus at {milvus.host}:{milvus.port} as {milvus.alias}")

        return cls(
            collection_name=milvus.collection_name,
            embedding_function=embedding_function,
            alias=milvus.alias,
            metric_type=milvus.metric_type,
            search_params=dict(milvus.search_params),
            enable_full_text=milvus.enable_full_text,
            **kwargs
        )

    @property
    def collection(self):
        """The pymilvus Collection, created on first use."""
        if self._collection is None:
            from pymilvus import Collection
            self._collection = Collection(name=self.collection_name, using=self.alias)
        return self._collection

    async def _run(self, func, *args, **kwargs):
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(self._executor, partial(func, *args, **kwargs))

    @property
    def output_fields(self) -> List[str]:
        return [self.id_field, self.text_field, self.metadata_field]

    def _dense_param(self) -> Dict[str, Any]:
        return {"metric_type": self.metric_type, "params": dict(self.search_params)}

    def _hit_to_document(self, hit) -> Document:
        entity = hit.entity
        metadata = entity.get(self.metadata_field) or {}
        if isinstance(metadata, str):
            metadata = json.loads(metadata)
        return Document(content=entity.get(self.text_field) or "", metadata=dict(metadata))

    def create_collection(self, dimension: int) -> None:
        """
        Create the collection schema and indexes if the collection is missing.

        Args:
            dimension: Dense vector dimension
        """
        from pymilvus import (
            Collection,
            CollectionSchema,
            DataType,
            FieldSchema,
            Function,
            FunctionType,
            utility,
        )

        if utility.has_collection(self.collection_name, using=self.alias):
            logger.info(f"Collection {self.collection_name} already exists")
            self._collection = Collection(name=self.collection_name, using=self.alias)
            return

        fields = [
            FieldSchema(self.id_field, DataType.VARCHAR, is_primary=True, max_length=64),
            FieldSchema(
                self.text_field,
                DataType.VARCHAR,
                max_length=MAX_CONTENT_LENGTH,
                enable_analyzer=self.enable_full_text,
            ),
            FieldSchema(self.metadata_field, DataType.JSON),
            FieldSchema(self.vector_field, DataType.FLOAT_VECTOR, dim=dimension),
        ]
        functions = []
        if self.enable_full_text:
            fields.append(FieldSchema(self.sparse_field, DataType.SPARSE_FLOAT_VECTOR))
            functions.append(Function(
                name=f"{self.text_field}_bm25",
                function_type=FunctionType.BM25,
                input_field_names=[self.text_field],
                output_field_names=[self.sparse_field],
            ))

        schema = CollectionSchema(fields, description="Hybrid retrieval documents", functions=functions)
        collection = Collection(name=self.collection_name, schema=schema, using=self.alias)
        collection.create_index(
            self.vector_field,
            {"index_type": "AUTOINDEX", "metric_type": self.metric_type},
        )
        if self.enable_full_text:
            collection.create_index(
                self.sparse_field,
                {"index_type": "SPARSE_INVERTED_INDEX", "metric_type": "BM25"},
            )
        collection.load()
        self._collection = collection

        logger.info(
            f"Created collection {self.collection_name} - dim: {dimension}, "
            f"full_text: {self.enable_full_text}"
        )

    async def add_documents(self, documents: Sequence[Document]) -> List[str]:
        """
        Embed and insert documents.

        Ids come from metadata["id"] when set, otherwise a generated uuid.
        The metadata field stores the caller's metadata unchanged.

        Raises:
            DocumentInsertionError: If embedding or insertion fails
        """
        documents = list(documents)
        if not documents:
            return []

        try:
            vectors = await embed_texts(self.embedding_function, [doc.content for doc in documents])

            ids = []
            rows = []
            for doc, vector in zip(documents, vectors):
                doc_id = doc.metadata.get("id") if doc.metadata else None
                doc_id = str(doc_id) if doc_id not in (None, "") else uuid.uuid4().hex
                ids.append(doc_id)
                rows.append({
                    self.id_field: doc_id,
                    self.text_field: doc.content,
                    self.metadata_field: dict(doc.metadata or {}),
                    self.vector_field: [float(x) for x in vector],
                })

            await self._run(self.collection.insert, rows)
        except Exception as e:
            logger.error(f"Failed to insert documents into {self.collection_name}: {str(e)}")
            raise DocumentInsertionError(
                f"Failed to insert documents into {self.collection_name}: {str(e)}"
            ) from e

        logger.debug(f"Inserted {len(ids)} documents into {self.collection_name}")
        return ids

    async def similarity_search_with_score(self, query: str, k: int) -> List[DocumentWithScore]:
        """
        Dense similarity search.

        Raises:
            SearchError: If embedding or search fails
        """
        if k <= 0:
            return []

        try:
            query_vector = (await embed_texts(self.embedding_function, [query]))[0]
            search_results = await self._run(
                self.collection.search,
                data=[[float(x) for x in query_vector]],
                anns_field=self.vector_field,
                param=self._dense_param(),
                limit=k,
                output_fields=self.output_fields,
            )
        except Exception as e:
            raise SearchError(f"Milvus search failed: {str(e)}") from e

        results = []
        for hits in search_results:
            for hit in hits:
                results.append(DocumentWithScore(
                    document=self._hit_to_document(hit),
                    score=float(hit.distance),
                ))
        return results

    async def hybrid_search(
        self,
        query: str,
        k: int,
        options: Optional[HybridSearchOptions] = None
    ) -> List[HybridSearchResult]:
        """
        Server-side hybrid search fused by Milvus RRFRanker.

        Milvus only reports the fused score, so vector_score and
        keyword_score are left at 0.0.

        Raises:
            SearchError: If full-text search is disabled or the search fails
        """
        if not self.enable_full_text:
            raise SearchError(
                f"Hybrid search requires full-text search enabled on {self.collection_name}"
            )
        if k <= 0:
            return []

        from pymilvus import AnnSearchRequest, RRFRanker

        options = options or HybridSearchOptions()

        try:
            query_vector = (await embed_texts(self.embedding_function, [query]))[0]
            requests = [
                AnnSearchRequest(
                    data=[[float(x) for x in query_vector]],
                    anns_field=self.vector_field,
                    param=self._dense_param(),
                    limit=options.vector_top_k or k,
                ),
                AnnSearchRequest(
                    data=[query],
                    anns_field=self.sparse_field,
                    param={"metric_type": "BM25"},
                    limit=options.keyword_top_k or k,
                ),
            ]
            search_results = await self._run(
                self.collection.hybrid_search,
                requests,
                RRFRanker(options.rrf_rank_constant),
                k,
                output_fields=self.output_fields,
            )
        except Exception as e:
            raise SearchError(f"Milvus hybrid search failed: {str(e)}") from e

        results = []
        for hits in search_results:
            for hit in hits:
                results.append(HybridSearchResult(
                    document=self._hit_to_document(hit),
                    fusion_score=float(hit.distance),
                ))
        return results
