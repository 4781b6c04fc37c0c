"""Character-based chunking of onboarding documents.

Consecutive chunks share ``chunk_overlap`` characters so a concept
that straddles a window boundary appears whole in at least one chunk.
"""
from typing import Any, Dict, List
from dataclasses import dataclass, field
import structlog

from onboarding_bot import config

logger = structlog.get_logger()

DOC_TYPE = "onboarding_doc"


@dataclass(frozen=True)
class TextSpan:
    """A window of the source text with its position."""

    content: str
    char_start: int
    char_end: int
    chunk_index: int


@dataclass(frozen=True)
class DocumentChunk:
    """A chunk of an onboarding document, ready to be indexed."""

    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    char_start: int = 0
    char_end: int = 0
    chunk_index: int = 0

    @property
    def source(self) -> str:
        return self.metadata.get("source", "")


class TextChunker:
    """Character-based text chunker with overlap support."""

    # Break candidates, best first, with how far into the window they must sit
    _BREAKS = (
        ((". ", "! ", "? ", ".\n", "!\n", "?\n"), 0.7),
        (("\n\n",), 0.7),
        (("\n",), 0.7),
        ((" ",), 0.8),
    )

    def __init__(
        self,
        chunk_size: int = None,
        chunk_overlap: int = None,
    ):
        """Initialize the text chunker.

        Args:
            chunk_size: Maximum chunk length in characters (default from config)
            chunk_overlap: Characters shared by consecutive chunks (default from config)
        """
        self.chunk_size = chunk_size if chunk_size is not None else config.CHUNK_SIZE
        self.chunk_overlap = (
            chunk_overlap if chunk_overlap is not None else config.CHUNK_OVERLAP
        )

        if self.chunk_size <= 0:
            raise ValueError(f"Chunk size must be positive, got {self.chunk_size}")
        if self.chunk_overlap < 0 or self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"Overlap ({self.chunk_overlap}) must be between 0 and "
                f"chunk size ({self.chunk_size})"
            )

        logger.debug(
            "chunker_initialized",
            chunk_size=self.chunk_size,
            chunk_overlap=self.chunk_overlap,
        )

    def chunk_text(self, text: str) -> List[TextSpan]:
        """Split text into overlapping spans that together cover all of it."""
        if not text:
            return []

        text_length = len(text)
        spans: List[TextSpan] = []
        start = 0

        while True:
            end = min(start + self.chunk_size, text_length)
            if end < text_length:
                end = start + self._boundary(text[start:end])

            spans.append(
                TextSpan(
                    content=text[start:end],
                    char_start=start,
                    char_end=end,
                    chunk_index=len(spans),
                )
            )

            if end >= text_length:
                break

            # A window that was pulled back below the overlap would stall
            next_start = end - self.chunk_overlap
            start = next_start if next_start > start else end

        return spans

    def _boundary(self, window: str) -> int:
        """Length of ``window`` after pulling its end back to a natural break."""
        for separators, min_fraction in self._BREAKS:
            for sep in separators:
                pos = window.rfind(sep)
                if pos > len(window) * min_fraction:
                    return pos + len(sep)
        return len(window)

    def chunk_document(self, text: str, source: str) -> List[DocumentChunk]:
        """Chunk one document and tag each piece with its provenance."""
        return [
            DocumentChunk(
                text=span.content,
                metadata={"source": source, "type": DOC_TYPE},
                char_start=span.char_start,
                char_end=span.char_end,
                chunk_index=span.chunk_index,
            )
            for span in self.chunk_text(text)
        ]

    def get_chunk_stats(self, chunks: List[DocumentChunk]) -> dict:
        """Get statistics about a set of chunks."""
        if not chunks:
            return {
                "chunk_count": 0,
                "total_chars": 0,
                "avg_chunk_size": 0,
                "min_chunk_size": 0,
                "max_chunk_size": 0,
            }

        chunk_sizes = [len(c.text) for c in chunks]

        return {
            "chunk_count": len(chunks),
            "total_chars": sum(chunk_sizes),
            "avg_chunk_size": sum(chunk_sizes) // len(chunks),
            "min_chunk_size": min(chunk_sizes),
            "max_chunk_size": max(chunk_sizes),
            "overlap": self.chunk_overlap,
        }
