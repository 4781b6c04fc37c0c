"""Pytest configuration and fixtures for unit tests."""
import re
import zlib
from pathlib import Path

import pytest

from onboarding_bot.rag.chunker import TextChunker
from onboarding_bot.rag.ingest import IngestPipeline
from onboarding_bot.rag.pipeline import OnboardingChatbot, PipelineConfig


EMBEDDING_DIM = 64

COMMIT_DOC = (
    "Commit messages follow the conventional commits format. Start with a type "
    "such as feat or fix, add an optional scope, then a short summary. Keep the "
    "summary line under 72 characters."
)

LAPTOP_DOC = (
    "Laptop setup: request a laptop from IT on your first day, install the "
    "password manager, then install Git, Python and Docker."
)

COMMIT_COMPLETION = (
    "TITLE: Commit Guidelines\n"
    "CONTENT: 1. Use conventional commits. 2. Keep messages under 72 characters."
)


class FakeEmbedder:
    """Deterministic bag-of-words embedder (hashed word counts)."""

    model = "fake-embed"

    def __init__(self):
        self.calls = []

    async def embed(self, text):
        self.calls.append(text)
        vector = [0.0] * EMBEDDING_DIM
        vector[0] = 0.1
        for word in re.findall(r"[a-z]+", text.lower()):
            vector[1 + zlib.crc32(word.encode()) % (EMBEDDING_DIM - 1)] += 1.0
        return vector


class FailingEmbedder:
    model = "broken-embed"

    async def embed(self, text):
        raise ConnectionError("embedding service unavailable")


class FakeLLM:
    """Completion collaborator that records prompts."""

    def __init__(self, completion=COMMIT_COMPLETION, models=None):
        self.completion = completion
        self.models = models if models is not None else ["gemma2:9b", "fake-embed"]
        self.prompts = []
        self.calls = []

    async def complete(self, prompt, model=None, temperature=None):
        self.prompts.append(prompt)
        self.calls.append({"model": model, "temperature": temperature})
        if isinstance(self.completion, Exception):
            raise self.completion
        return self.completion

    async def list_models(self):
        return list(self.models)


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    """A small corpus plus a file that must be ignored."""
    (tmp_path / "commits.md").write_text(COMMIT_DOC, encoding="utf-8")
    (tmp_path / "laptop.txt").write_text(LAPTOP_DOC, encoding="utf-8")
    (tmp_path / "logo.png").write_bytes(b"\x89PNG\r\n")
    return tmp_path


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def ingest(docs_dir, embedder):
    return IngestPipeline(
        docs_dir=docs_dir,
        chunker=TextChunker(chunk_size=1000, chunk_overlap=200),
        embedder=embedder,
    )


@pytest.fixture
def chatbot(ingest, llm):
    """A chatbot that has not been initialized yet."""
    return OnboardingChatbot(PipelineConfig.structured(top_k=2), llm_client=llm, ingest=ingest)


@pytest.fixture
async def ready_chatbot(chatbot):
    await chatbot.initialize()
    return chatbot


@pytest.fixture
def failing_embedder():
    return FailingEmbedder()
