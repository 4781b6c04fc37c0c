#!/usr/bin/env python
"""Validate setup - check dependencies, configuration, corpus and Ollama."""
import sys
import asyncio
from pathlib import Path

# Color codes for terminal output
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
RESET = "\033[0m"

def print_success(msg):
    print(f"{GREEN}✓{RESET} {msg}")

def print_error(msg):
    print(f"{RED}✗{RESET} {msg}")

def print_info(msg):
    print(f"{BLUE}ℹ{RESET} {msg}")

def print_warning(msg):
    print(f"{YELLOW}⚠{RESET} {msg}")

def print_section(title):
    print(f"\n{BLUE}{'='*60}{RESET}")
    print(f"{BLUE}{title:^60}{RESET}")
    print(f"{BLUE}{'='*60}{RESET}\n")

async def main():
    print_section("Onboarding Assistant - Setup Validation")

    errors = []
    warnings = []

    # 1. Core dependencies
    print_section("1. Core Dependencies")

    dependencies = [
        ("quart", "Quart web framework"),
        ("hypercorn", "Hypercorn ASGI server"),
        ("httpx", "HTTP client"),
        ("faiss", "FAISS vector index"),
        ("numpy", "NumPy"),
        ("pydantic", "Data validation"),
        ("markupsafe", "HTML escaping"),
        ("structlog", "Structured logging"),
    ]

    for module_name, description in dependencies:
        try:
            __import__(module_name)
            print_success(f"{description:30} ({module_name})")
        except ImportError as e:
            print_error(f"{description:30} ({module_name}) - {e}")
            errors.append(f"Missing: {module_name}")

    # 2. Configuration and corpus
    print_section("2. Configuration & Corpus")

    try:
        sys.path.insert(0, str(Path(__file__).parent.parent))
        from onboarding_bot import config
        from onboarding_bot.errors import InitializationFailure
        from onboarding_bot.rag.ingest import IngestPipeline

        print_success("Config loaded successfully")
        print_info(f"  Chat model: {config.CHAT_MODEL}")
        print_info(f"  Embedding model: {config.EMBEDDING_MODEL}")
        print_info(f"  Ollama URL: {config.OLLAMA_BASE_URL}")
        print_info(f"  Chunk size / overlap: {config.CHUNK_SIZE} / {config.CHUNK_OVERLAP} chars")
        print_info(f"  Pipeline variant: {config.PIPELINE_VARIANT}")

        try:
            documents = IngestPipeline().discover_documents()
        except InitializationFailure as e:
            print_error(str(e))
            errors.append("Documents directory unreadable")
        else:
            if documents:
                print_success(f"{len(documents)} document(s) in {config.DOCS_DIR}")
                for path in documents:
                    print(f"    - {path.name}")
            else:
                print_error(f"No .txt or .md documents in {config.DOCS_DIR}")
                errors.append("Empty corpus")

    except Exception as e:
        print_error(f"Failed to load config: {e}")
        errors.append("Config loading failed")
        return errors, warnings

    # 3. Ollama service and models
    print_section("3. Ollama Service")

    from onboarding_bot.llm_client import OllamaClient
    client = OllamaClient()

    try:
        models = set(await client.list_models())
        print_success(f"Ollama service running at {config.OLLAMA_BASE_URL}")
        print_info(f"Found {len(models)} models installed")

        for label, name in (("Chat", config.CHAT_MODEL), ("Embedding", config.EMBEDDING_MODEL)):
            if name in models or f"{name}:latest" in models:
                print_success(f"{label} model available: {name}")
            else:
                print_error(f"{label} model missing: {name}")
                print_info(f"  Run: ollama pull {name}")
                errors.append(f"Missing {label.lower()} model: {name}")

    except Exception as e:
        print_error(f"Cannot reach Ollama: {e}")
        print_info("  Make sure Ollama is running: ollama serve")
        errors.append("Ollama not running")

    # 4. Embedding round trip
    if not errors:
        print_section("4. Ollama API Test")
        try:
            response = await client.embeddings(prompt="test")
            dimension = len(response.get("embedding", []))
            if dimension:
                print_success(f"Embedding API working (dimension: {dimension})")
            else:
                print_error("Embedding response missing 'embedding' field")
                errors.append("Embedding API issue")
        except Exception as e:
            print_error(f"Ollama API test failed: {e}")
            errors.append(f"API test failed: {e}")

    # 5. Summary
    print_section("Summary")

    if not errors:
        print_success("All checks passed! ✨")
        print_info("  Start the server with: onboarding-bot")
    else:
        print_error(f"Found {len(errors)} error(s):")
        for i, error in enumerate(errors, 1):
            print(f"  {i}. {error}")

    if warnings:
        print_warning(f"\nFound {len(warnings)} warning(s):")
        for i, warning in enumerate(warnings, 1):
            print(f"  {i}. {warning}")

    print()
    return errors, warnings

if __name__ == "__main__":
    errors, warnings = asyncio.run(main())
    sys.exit(1 if errors else 0)
