"""In-memory FAISS vector index for semantic search.

Handles:
- Query and chunk embedding through Ollama
- Runtime embedding dimension detection
- Cosine similarity search (inner product over normalized vectors)

The index is built once from the full chunk list and never mutated
afterward; there is no persistence across restarts.
"""
from typing import Any, Dict, List, Optional, Sequence
import numpy as np
import faiss
import structlog

from onboarding_bot import config
from onboarding_bot.llm_client import OllamaClient
from onboarding_bot.rag.chunker import DocumentChunk

logger = structlog.get_logger()


class OllamaEmbedder:
    """Maps text to a fixed-length vector using an Ollama embedding model."""

    def __init__(self, client: Optional[OllamaClient] = None, model: str = None):
        self.client = client or OllamaClient()
        self.model = model or config.EMBEDDING_MODEL

    async def embed(self, text: str) -> List[float]:
        """Embed a single text.

        Raises:
            RuntimeError: If Ollama returns an empty embedding
            httpx.HTTPError: On API errors
        """
        response = await self.client.embeddings(prompt=text, model=self.model)
        embedding = response.get("embedding", [])

        if not embedding:
            raise RuntimeError(f"Empty embedding returned by {self.model}")

        return embedding


def _normalize(vectors: np.ndarray) -> np.ndarray:
    vectors = np.ascontiguousarray(vectors, dtype=np.float32)
    faiss.normalize_L2(vectors)
    return vectors


class VectorIndex:
    """Read-only FAISS index over a fixed set of document chunks."""

    def __init__(self, index: faiss.Index, chunks: Sequence[DocumentChunk], embedder):
        if index.ntotal != len(chunks):
            raise ValueError(
                f"Index holds {index.ntotal} vectors but {len(chunks)} chunks were given"
            )
        self.index = index
        self.chunks = tuple(chunks)
        self.embedder = embedder
        self.dimension = index.d

    @classmethod
    async def build(cls, chunks: Sequence[DocumentChunk], embedder) -> "VectorIndex":
        """Embed every chunk and build the index.

        Args:
            chunks: Chunks to index, in corpus order
            embedder: Object with an async ``embed(text)`` method

        Returns:
            A built VectorIndex

        Raises:
            ValueError: If there is nothing to index or dimensions disagree
        """
        if not chunks:
            raise ValueError("Cannot build an index without any chunks")

        embeddings = []
        for chunk in chunks:
            embeddings.append(await embedder.embed(chunk.text))

        dimensions = {len(e) for e in embeddings}
        if len(dimensions) != 1:
            raise ValueError(f"Inconsistent embedding dimensions: {sorted(dimensions)}")

        vectors = _normalize(np.array(embeddings, dtype=np.float32))

        index = faiss.IndexFlatIP(vectors.shape[1])
        index.add(vectors)

        logger.info(
            "vector_index_built",
            dimension=vectors.shape[1],
            vector_count=index.ntotal,
            index_type="IndexFlatIP",
        )

        return cls(index, chunks, embedder)

    async def search(self, query: str, top_k: int = None) -> List[Dict[str, Any]]:
        """Return the ``top_k`` chunks most similar to ``query``, best first.

        Each hit is ``{"content", "metadata", "score"}`` where score is the
        cosine similarity.
        """
        if top_k is None:
            top_k = config.RETRIEVAL_TOP_K

        # Ensure we don't request more results than we have
        top_k = min(top_k, self.index.ntotal)
        if top_k <= 0:
            return []

        query_vector = _normalize(np.array([await self.embedder.embed(query)], dtype=np.float32))

        if query_vector.shape[1] != self.dimension:
            raise ValueError(
                f"Query dimension mismatch: expected {self.dimension}, "
                f"got {query_vector.shape[1]}"
            )

        scores, indices = self.index.search(query_vector, top_k)

        hits = []
        for position, score in zip(indices[0].tolist(), scores[0].tolist()):
            if position < 0:
                continue
            chunk = self.chunks[position]
            hits.append(
                {
                    "content": chunk.text,
                    "metadata": dict(chunk.metadata),
                    "score": float(score),
                }
            )

        logger.debug("vector_search_completed", top_k=top_k, results_found=len(hits))

        return hits

    def get_stats(self) -> Dict[str, Any]:
        """Get statistics about the index."""
        return {
            "vector_count": self.index.ntotal,
            "dimension": self.dimension,
            "sources": sorted({c.source for c in self.chunks}),
        }
