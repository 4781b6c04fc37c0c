"""Tests for the end-to-end question-answering pipeline."""
import pytest

from onboarding_bot.errors import InitializationFailure, UninitializedIndex, UpstreamFailure
from onboarding_bot.rag.ingest import IngestPipeline
from onboarding_bot.rag.pipeline import OnboardingChatbot, PipelineConfig
from onboarding_bot.rag.prompts import PLAIN_TEMPLATE
from onboarding_bot.rag.titles import infer_title


async def test_commit_question_end_to_end(ready_chatbot, llm):
    result = await ready_chatbot.generate_response("What is the commit message format?")

    assert result.answer.title == "Commit Guidelines"
    assert result.answer.bullet_lines == (
        "Use conventional commits.",
        "Keep messages under 72 characters.",
    )
    assert result.response == (
        "Commit Guidelines\n\n"
        "- Use conventional commits.\n\n"
        "- Keep messages under 72 characters."
    )
    assert len(result.context) == 2
    assert result.context[0].source == "commits.md"

    assert len(llm.prompts) == 1
    assert "conventional commits format" in llm.prompts[0]
    assert "Question: What is the commit message format?" in llm.prompts[0]
    assert llm.calls == [
        {"model": ready_chatbot.config.model, "temperature": ready_chatbot.config.temperature}
    ]


async def test_thin_context_skips_the_model(ingest, llm):
    chatbot = OnboardingChatbot(
        PipelineConfig.structured(relevance_floor=10_000), llm_client=llm, ingest=ingest
    )
    await chatbot.initialize()
    query = "Do we have pizza on Fridays?"

    result = await chatbot.generate_response(query)

    assert llm.prompts == []
    assert result.context == []
    assert result.answer.title == infer_title(query)
    assert len(result.answer.bullet_lines) == 1
    assert f'"{query}"' in result.answer.bullet_lines[0]


async def test_blank_query_gets_the_no_information_answer(ready_chatbot, llm):
    result = await ready_chatbot.generate_response("   ")

    assert llm.prompts == []
    assert result.context == []
    assert result.answer.title == "Information"


async def test_answering_before_initialize_fails(chatbot, llm):
    assert not chatbot.is_initialized
    with pytest.raises(UninitializedIndex):
        await chatbot.generate_response("What is the commit format?")
    assert llm.prompts == []


async def test_initialize_is_idempotent(chatbot, embedder):
    await chatbot.initialize()
    embedded = len(embedder.calls)

    await chatbot.initialize()

    assert chatbot.is_initialized
    assert len(embedder.calls) == embedded


async def test_completion_failure_is_an_upstream_failure(ready_chatbot, llm):
    llm.completion = TimeoutError("model timed out")

    with pytest.raises(UpstreamFailure) as excinfo:
        await ready_chatbot.generate_response("What is the commit format?")

    assert isinstance(excinfo.value.__cause__, TimeoutError)


async def test_initialize_failure_is_reported(docs_dir, failing_embedder, llm):
    chatbot = OnboardingChatbot(
        llm_client=llm, ingest=IngestPipeline(docs_dir=docs_dir, embedder=failing_embedder)
    )

    with pytest.raises(InitializationFailure):
        await chatbot.initialize()

    assert not chatbot.is_initialized


async def test_plain_variant_keeps_markup_and_has_no_title(ingest, llm):
    llm.completion = "1. Run `make test` before pushing"
    chatbot = OnboardingChatbot(PipelineConfig.plain(top_k=2), llm_client=llm, ingest=ingest)
    await chatbot.initialize()

    result = await chatbot.generate_response("How do I run the tests?")

    assert result.answer.title == ""
    assert result.answer.bullet_lines == ("Run `make test` before pushing.",)
    assert result.response == "- Run `make test` before pushing."
    assert "TITLE:" not in llm.prompts[0]


def test_variant_presets():
    structured = PipelineConfig.from_variant("structured", top_k=5)
    plain = PipelineConfig.from_variant("plain")

    assert structured.top_k == 5
    assert structured.enable_title_inference and structured.enable_markup_cleanup
    assert plain.prompt_template == PLAIN_TEMPLATE
    assert not plain.enable_title_inference
    assert not plain.enable_markup_cleanup


def test_unknown_variant_is_rejected():
    with pytest.raises(ValueError):
        PipelineConfig.from_variant("verbose")


async def test_response_serialization(ready_chatbot):
    result = await ready_chatbot.generate_response("What is the commit message format?")
    payload = result.to_dict()

    assert set(payload) == {
        "query",
        "response",
        "context",
        "timestamp",
        "formattedResponse",
        "plainResponse",
    }
    assert payload["plainResponse"] == payload["response"]
    assert payload["formattedResponse"].startswith("<strong>Commit Guidelines</strong>")
    assert set(payload["context"][0]) == {"content", "metadata", "relevanceScore"}
