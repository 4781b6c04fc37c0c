"""Application configuration with sensible defaults."""
import os
from pathlib import Path

# Paths
BASE_DIR = Path(__file__).parent.parent
DOCS_DIR = Path(os.getenv("DOCS_DIR", str(BASE_DIR / "docs")))

# Ollama configuration
OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
CHAT_MODEL = os.getenv("CHAT_MODEL", "gemma2:9b")
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "nomic-embed-text")
TEMPERATURE = float(os.getenv("TEMPERATURE", "0.2"))
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "120.0"))

# RAG parameters (character-based)
CHUNK_SIZE = int(os.getenv("CHUNK_SIZE", "1000"))
CHUNK_OVERLAP = int(os.getenv("CHUNK_OVERLAP", "200"))
RETRIEVAL_TOP_K = int(os.getenv("RETRIEVAL_TOP_K", "3"))
DOC_EXTENSIONS = (".txt", ".md")

# Answer policy thresholds (characters)
RELEVANCE_FLOOR = int(os.getenv("RELEVANCE_FLOOR", "50"))  # min retrieved context
NOISE_FLOOR = int(os.getenv("NOISE_FLOOR", "20"))          # min bullet length

# "structured" (titled bullet answers) or "plain"
PIPELINE_VARIANT = os.getenv("PIPELINE_VARIANT", "structured")

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
