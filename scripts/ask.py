#!/usr/bin/env python
"""Ask the onboarding assistant a question from the command line.

Builds the index from the docs directory, answers once, and exits.

Usage:
    python scripts/ask.py "How do I set up my laptop?"
    python scripts/ask.py --variant plain "What is the release process?"
    python scripts/ask.py --docs-dir ./handbook --sources "Who do I ask for access?"
"""
import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from onboarding_bot import config
from onboarding_bot.errors import OnboardingError
from onboarding_bot.rag.ingest import IngestPipeline
from onboarding_bot.rag.pipeline import OnboardingChatbot, PipelineConfig
import structlog

logger = structlog.get_logger()


async def main():
    """Main entry point for the ask script."""
    parser = argparse.ArgumentParser(
        description="Answer one onboarding question",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("question", help="Question to answer")

    parser.add_argument(
        "--variant",
        choices=["structured", "plain"],
        default=config.PIPELINE_VARIANT,
        help=f"Pipeline variant (default: {config.PIPELINE_VARIANT})",
    )

    parser.add_argument(
        "--docs-dir",
        type=Path,
        default=None,
        help=f"Documents directory (default: {config.DOCS_DIR})",
    )

    parser.add_argument(
        "--top-k",
        type=int,
        default=config.RETRIEVAL_TOP_K,
        help=f"Chunks to retrieve (default: {config.RETRIEVAL_TOP_K})",
    )

    parser.add_argument(
        "--sources",
        action="store_true",
        help="Print the retrieved chunks after the answer",
    )

    args = parser.parse_args()

    chatbot = OnboardingChatbot(
        PipelineConfig.from_variant(args.variant, top_k=args.top_k),
        ingest=IngestPipeline(docs_dir=args.docs_dir),
    )

    try:
        await chatbot.initialize()
        result = await chatbot.generate_response(args.question)

    except KeyboardInterrupt:
        print("\n\n⚠️  Cancelled by user.\n")
        sys.exit(1)

    except OnboardingError as e:
        print(f"\n❌ Error: {e}\n")
        logger.error("ask_script_failed", error=str(e), error_type=type(e).__name__)
        sys.exit(1)

    print(f"\n{result.response}\n")

    if args.sources:
        print(f"{'=' * 60}")
        for i, chunk in enumerate(result.context, 1):
            preview = chunk.content[:200].replace("\n", " ")
            print(f"  [{i}] {chunk.source} ({chunk.relevance_score:.3f})")
            print(f"      {preview}")
        print(f"{'=' * 60}\n")


if __name__ == "__main__":
    asyncio.run(main())
