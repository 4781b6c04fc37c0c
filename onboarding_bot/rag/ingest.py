"""Ingest pipeline for the onboarding corpus.

Orchestrates:
- Document discovery (.txt / .md files in the docs directory)
- Text chunking
- Embedding generation and index construction

Runs once at startup. Any failure here is fatal: the assistant cannot serve
without a corpus.
"""
from pathlib import Path
from typing import Any, Dict, List
import structlog

from onboarding_bot import config
from onboarding_bot.errors import InitializationFailure
from onboarding_bot.rag.chunker import DocumentChunk, TextChunker
from onboarding_bot.rag.store import OllamaEmbedder, VectorIndex

logger = structlog.get_logger()


class IngestPipeline:
    """Pipeline for turning the docs directory into a vector index."""

    def __init__(
        self,
        docs_dir: Path = None,
        chunker: TextChunker = None,
        embedder=None,
        extensions=None,
    ):
        """Initialize the ingest pipeline.

        Args:
            docs_dir: Directory containing onboarding documents (default from config)
            chunker: Text chunker (default uses config chunk size and overlap)
            embedder: Object with an async ``embed(text)`` method (default OllamaEmbedder)
            extensions: File suffixes to ingest (default from config)
        """
        self.docs_dir = Path(docs_dir or config.DOCS_DIR)
        self.chunker = chunker or TextChunker()
        self.embedder = embedder or OllamaEmbedder()
        self.extensions = tuple(extensions or config.DOC_EXTENSIONS)

        self.stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> Dict[str, Any]:
        return {
            "files_processed": 0,
            "files_skipped": 0,
            "chunks_created": 0,
            "embeddings_generated": 0,
        }

    def discover_documents(self) -> List[Path]:
        """List the ingestible files in the docs directory, sorted by name.

        Raises:
            InitializationFailure: If the directory is missing or unreadable
        """
        try:
            entries = sorted(self.docs_dir.iterdir())
        except OSError as e:
            logger.error("docs_dir_unreadable", docs_dir=str(self.docs_dir), error=str(e))
            raise InitializationFailure(
                f"Cannot read documents directory {self.docs_dir}: {e}"
            ) from e

        documents = []
        for path in entries:
            if path.is_file() and path.suffix.lower() in self.extensions:
                documents.append(path)
            else:
                self.stats["files_skipped"] += 1

        logger.info(
            "documents_discovered",
            count=len(documents),
            skipped=self.stats["files_skipped"],
            docs_dir=str(self.docs_dir),
        )

        return documents

    def load_chunks(self) -> List[DocumentChunk]:
        """Read and chunk every document.

        Raises:
            InitializationFailure: If any document cannot be read
        """
        self.stats = self._empty_stats()
        chunks: List[DocumentChunk] = []

        for path in self.discover_documents():
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.error("document_read_failed", path=str(path), error=str(e))
                raise InitializationFailure(f"Cannot read document {path}: {e}") from e

            doc_chunks = self.chunker.chunk_document(text, source=path.name)
            chunks.extend(doc_chunks)

            self.stats["files_processed"] += 1
            self.stats["chunks_created"] += len(doc_chunks)

            logger.debug("document_chunked", path=str(path), chunks_created=len(doc_chunks))

        logger.info(
            "documents_loaded",
            **self.chunker.get_chunk_stats(chunks),
            files_processed=self.stats["files_processed"],
        )

        return chunks

    async def build(self) -> VectorIndex:
        """Load, chunk and embed the corpus into a read-only index.

        Raises:
            InitializationFailure: If the corpus is empty or unreadable, or
                embedding fails
        """
        chunks = self.load_chunks()

        if not chunks:
            raise InitializationFailure(
                f"No {'/'.join(self.extensions)} content found in {self.docs_dir}"
            )

        try:
            index = await VectorIndex.build(chunks, self.embedder)
        except Exception as e:
            logger.error(
                "index_build_failed",
                error=str(e),
                error_type=type(e).__name__,
                chunk_count=len(chunks),
            )
            raise InitializationFailure(f"Failed to build vector index: {e}") from e

        self.stats["embeddings_generated"] = index.index.ntotal

        logger.info("ingest_completed", stats=self.stats)

        return index
