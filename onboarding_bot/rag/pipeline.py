"""The onboarding question-answering pipeline.

``OnboardingChatbot`` is constructed explicitly and handed to the web layer;
it builds its index once in ``initialize()`` and is read-only afterward, so
concurrent requests can share it.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import structlog

from onboarding_bot import config
from onboarding_bot.errors import InitializationFailure, UninitializedIndex, UpstreamFailure
from onboarding_bot.llm_client import OllamaClient
from onboarding_bot.rag.formatter import FormattedAnswer, ResponseFormatter, no_information_answer
from onboarding_bot.rag.ingest import IngestPipeline
from onboarding_bot.rag.prompts import DEFAULT_TEMPLATE, PLAIN_TEMPLATE, build_prompt
from onboarding_bot.rag.retriever import RetrievedChunk, Retriever, build_context
from onboarding_bot.rag.titles import infer_title

logger = structlog.get_logger()


@dataclass(frozen=True)
class PipelineConfig:
    """Knobs that distinguish pipeline variants."""

    model: str = config.CHAT_MODEL
    temperature: float = config.TEMPERATURE
    prompt_template: str = DEFAULT_TEMPLATE
    enable_title_inference: bool = True
    enable_markup_cleanup: bool = True
    top_k: int = config.RETRIEVAL_TOP_K
    relevance_floor: int = config.RELEVANCE_FLOOR
    noise_floor: int = config.NOISE_FLOOR

    @classmethod
    def structured(cls, **overrides) -> "PipelineConfig":
        """Titled bullet answers with markup cleanup."""
        return replace(cls(), **overrides)

    @classmethod
    def plain(cls, **overrides) -> "PipelineConfig":
        """Untitled answers with the plain prompt and no markup cleanup."""
        base = cls(
            prompt_template=PLAIN_TEMPLATE,
            enable_title_inference=False,
            enable_markup_cleanup=False,
        )
        return replace(base, **overrides)

    @classmethod
    def from_variant(cls, variant: str, **overrides) -> "PipelineConfig":
        presets = {"structured": cls.structured, "plain": cls.plain}
        if variant not in presets:
            raise ValueError(
                f"Unknown pipeline variant {variant!r}, expected one of {sorted(presets)}"
            )
        return presets[variant](**overrides)


@dataclass
class ChatResponse:
    """Result of one chat request. Created fresh per request."""

    query: str
    answer: FormattedAnswer
    context: List[RetrievedChunk] = field(default_factory=list)
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    @property
    def response(self) -> str:
        return self.answer.to_plain_text()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "response": self.response,
            "context": [chunk.to_dict() for chunk in self.context],
            "timestamp": self.timestamp,
            "formattedResponse": self.answer.to_html(),
            "plainResponse": self.response,
        }


class OnboardingChatbot:
    """Retrieval-augmented answers over the onboarding corpus."""

    def __init__(
        self,
        pipeline_config: Optional[PipelineConfig] = None,
        llm_client: Optional[OllamaClient] = None,
        ingest: Optional[IngestPipeline] = None,
    ):
        """
        Args:
            pipeline_config: Variant settings (default: structured preset)
            llm_client: Completion client with an async ``complete`` method
            ingest: Pipeline that builds the index on ``initialize()``
        """
        self.config = pipeline_config or PipelineConfig.structured()
        self.llm_client = llm_client or OllamaClient()
        self.ingest = ingest or IngestPipeline()
        self.retriever = Retriever(top_k=self.config.top_k)
        self.formatter = ResponseFormatter(
            noise_floor=self.config.noise_floor,
            enable_markup_cleanup=self.config.enable_markup_cleanup,
        )

    @property
    def is_initialized(self) -> bool:
        return self.retriever.index is not None

    async def initialize(self) -> None:
        """Build the index from the corpus. Call once, before serving.

        Raises:
            InitializationFailure: If the corpus can't be loaded or indexed
        """
        if self.is_initialized:
            return

        logger.info(
            "chatbot_initializing",
            model=self.config.model,
            docs_dir=str(self.ingest.docs_dir),
        )

        try:
            index = await self.ingest.build()
        except InitializationFailure:
            raise
        except Exception as e:
            raise InitializationFailure(f"Chatbot initialization failed: {e}") from e

        self.retriever.index = index

        logger.info("chatbot_initialized", **index.get_stats())

    async def generate_response(self, query: str) -> ChatResponse:
        """Answer one question.

        Raises:
            UninitializedIndex: If called before ``initialize()``
            UpstreamFailure: If embedding or completion fails
        """
        if not self.is_initialized:
            raise UninitializedIndex("Chatbot not initialized")

        logger.info("query_received", query_preview=query[:100])

        title = infer_title(query) if self.config.enable_title_inference else ""

        retrieved = await self.retriever.search(query, self.config.top_k)
        context = build_context(retrieved)

        if len(context.strip()) < self.config.relevance_floor:
            logger.info(
                "context_below_relevance_floor",
                context_length=len(context.strip()),
                relevance_floor=self.config.relevance_floor,
            )
            return ChatResponse(query=query, answer=no_information_answer(title, query))

        prompt = build_prompt(query, context, template=self.config.prompt_template)

        try:
            raw_completion = await self.llm_client.complete(
                prompt,
                model=self.config.model,
                temperature=self.config.temperature,
            )
        except Exception as e:
            logger.error(
                "completion_failed",
                error=str(e),
                error_type=type(e).__name__,
                model=self.config.model,
            )
            raise UpstreamFailure(f"Completion failed: {e}") from e

        answer = self.formatter.format(title, raw_completion)

        logger.info(
            "response_generated",
            title=answer.title,
            bullet_count=len(answer.bullet_lines),
            sources=[chunk.source for chunk in retrieved],
        )

        return ChatResponse(query=query, answer=answer, context=retrieved)
