"""Instruction templates for the onboarding pipeline.

Templates are ``str.format`` strings with ``{context}`` and ``{query}``
fields. Building a prompt never branches on its inputs; whether the model is
called at all is decided by the pipeline beforehand.
"""

# ---------------------------------------------------------------------------
# Structured answers: TITLE / CONTENT with numbered points
# ---------------------------------------------------------------------------

DEFAULT_TEMPLATE = """\
Context: {context}

Question: {query}

Instructions:
- If the question or the context contains words or phrases in a language other than English, translate them to English before answering.
- Do NOT retain any non-English phrases in the final response. Everything must be fully in English.
- Proper nouns (brand or product names) may be kept unmodified, but descriptive titles must be translated to their English equivalents only.
- Do not add the original non-English wording in parentheses.

Format your response as:
TITLE: [One descriptive title for this topic]
CONTENT: [Your numbered point answers]

If the context is not relevant, respond with:
TITLE: Out of Scope
CONTENT: I don't have information about this topic in my knowledge base. I'm here to help with onboarding and project-related questions.

Example:
TITLE: Commit Message Guidelines
CONTENT: 1. Use conventional commits format...

Answer:"""

# ---------------------------------------------------------------------------
# Plain answers: no title, free prose
# ---------------------------------------------------------------------------

PLAIN_TEMPLATE = """\
You are an onboarding assistant. Answer the question using only the context below.

Context: {context}

Question: {query}

Instructions:
- Answer in English. Translate any non-English terms from the question or context; proper nouns may stay as they are.
- Keep the answer short and factual.
- If the context does not cover the question, say that you don't have information about it in the knowledge base.

Answer:"""


def build_prompt(query: str, context: str, template: str = DEFAULT_TEMPLATE) -> str:
    """Fill a template with the retrieved context and the user's question."""
    return template.format(context=context, query=query)
