"""Tests for prompt construction."""
from onboarding_bot.rag.prompts import DEFAULT_TEMPLATE, PLAIN_TEMPLATE, build_prompt


def test_default_prompt_contains_context_query_and_format():
    prompt = build_prompt("What is the commit format?", "Use conventional commits.")

    assert "Context: Use conventional commits." in prompt
    assert "Question: What is the commit format?" in prompt
    assert "TITLE: [One descriptive title for this topic]" in prompt
    assert "CONTENT: [Your numbered point answers]" in prompt
    assert "TITLE: Out of Scope" in prompt
    assert "translate them to English" in prompt
    assert "Proper nouns" in prompt
    assert prompt.rstrip().endswith("Answer:")


def test_prompt_is_deterministic():
    assert build_prompt("q", "c") == build_prompt("q", "c")


def test_prompt_does_not_branch_on_context_length():
    empty = build_prompt("q", "")
    long = build_prompt("q", "x" * 5000)
    assert long.replace("x" * 5000, "") == empty


def test_braces_in_inputs_are_kept_verbatim():
    prompt = build_prompt("What does {env} mean?", 'config = {"debug": true}')
    assert "What does {env} mean?" in prompt
    assert 'config = {"debug": true}' in prompt


def test_plain_template_has_no_title_instructions():
    prompt = build_prompt("q", "c", template=PLAIN_TEMPLATE)
    assert "TITLE:" not in prompt
    assert "Question: q" in prompt
    assert PLAIN_TEMPLATE != DEFAULT_TEMPLATE
