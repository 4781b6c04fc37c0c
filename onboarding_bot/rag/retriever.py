"""Retriever for semantic search over the onboarding corpus.

Handles:
- Delegating query embedding and nearest-neighbor lookup to the index
- Normalizing hits into RetrievedChunk objects
- Formatting retrieved chunks into prompt context
"""
from typing import List, Dict, Any, Optional
from dataclasses import dataclass, field
import structlog

from onboarding_bot import config
from onboarding_bot.errors import UninitializedIndex, UpstreamFailure

logger = structlog.get_logger()


@dataclass(frozen=True)
class RetrievedChunk:
    """A single retrieved chunk with metadata."""

    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    relevance_score: float = 0.0

    @property
    def source(self) -> str:
        return self.metadata.get("source", "")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "metadata": dict(self.metadata),
            "relevanceScore": self.relevance_score,
        }


class Retriever:
    """Semantic retriever for RAG pipeline."""

    def __init__(self, index=None, top_k: int = None):
        """Initialize the retriever.

        Args:
            index: Built vector index, or None until startup has finished
            top_k: Number of results to retrieve (default from config)
        """
        self.index = index
        self.top_k = top_k if top_k is not None else config.RETRIEVAL_TOP_K

    async def search(self, query: str, top_k: Optional[int] = None) -> List[RetrievedChunk]:
        """Retrieve the chunks most relevant to a query.

        Args:
            query: User query text
            top_k: Number of results to return (overrides default)

        Returns:
            List of RetrievedChunk objects in the index's ranking order

        Raises:
            UninitializedIndex: If no index has been built yet
            UpstreamFailure: If embedding or search fails
        """
        if self.index is None:
            raise UninitializedIndex("Vector store not initialized")

        if not query or not query.strip():
            logger.warning("empty_query_provided")
            return []

        if top_k is None:
            top_k = self.top_k

        logger.info("retrieval_started", query_length=len(query), top_k=top_k)

        try:
            hits = await self.index.search(query, top_k)
        except Exception as e:
            logger.error(
                "retrieval_failed",
                error=str(e),
                error_type=type(e).__name__,
                query_preview=query[:100],
            )
            raise UpstreamFailure(f"Retrieval failed: {e}") from e

        results = [
            RetrievedChunk(
                content=hit.get("content", ""),
                metadata=dict(hit.get("metadata") or {}),
                relevance_score=float(hit.get("score") or 0.0),
            )
            for hit in hits
        ]

        logger.info(
            "retrieval_completed",
            results_returned=len(results),
            top_score=results[0].relevance_score if results else None,
        )

        return results


def build_context(results: List[RetrievedChunk]) -> str:
    """Join retrieved contents with blank lines, keeping retrieval order."""
    return "\n\n".join(result.content for result in results)
