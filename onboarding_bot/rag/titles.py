"""Short titles inferred from the user's question.

Used as the fallback title when the model's completion doesn't carry one.
Title-casing is purely syntactic: acronyms only get their first letter
capitalized.
"""
import re

FALLBACK_TITLE = "Information"

STOP_WORDS = frozenset(
    [
        "what", "is", "are", "how", "do", "does", "can", "could",
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to",
        "for", "of", "with", "by", "about",
    ]
)

WHAT_PATTERN = re.compile(r"what (?:is|are) (.+?)(?:\?|$)")
HOW_PATTERN = re.compile(r"how (?:to|do) (?:(?:i|we|you) )?(.+?)(?:\?|$)")

_TRAILING_PUNCTUATION = "?!.,;:"


def title_case(text: str) -> str:
    """Capitalize the first letter of every word, leaving the rest alone."""
    return " ".join(word[:1].upper() + word[1:] for word in text.split(" "))


def _subject(match) -> str:
    return match.group(1).strip().rstrip(_TRAILING_PUNCTUATION) if match else ""


def infer_title(query: str) -> str:
    clean = query.lower().strip()

    subject = _subject(WHAT_PATTERN.search(clean))
    if subject:
        return title_case(subject)

    subject = _subject(HOW_PATTERN.search(clean))
    if subject:
        return f"How to {title_case(subject)}"

    keywords = []
    for word in clean.split():
        word = word.rstrip(_TRAILING_PUNCTUATION)
        if word in STOP_WORDS or len(word) <= 2:
            continue
        keywords.append(word)
        if len(keywords) == 3:
            break

    return title_case(" ".join(keywords)) if keywords else FALLBACK_TITLE
