"""RAG (Retrieval-Augmented Generation) pipeline components.

This package contains modules for:
- Document chunking with overlap
- Embedding and in-memory FAISS indexing
- Semantic retrieval
- Title inference and prompt construction
- Post-processing model output into bullet answers
"""
