"""Post-processing of raw model completions into titled bullet answers.

The model is asked for::

    TITLE: <title>
    CONTENT: 1. <point> 2. <point> ...

but output is only loosely shaped like that. Parsing runs as a small state
machine (AWAITING_TITLE -> AWAITING_CONTENT -> SEGMENTING_STATEMENTS -> DONE)
where every missing marker is an ordinary fallback transition, so
``ResponseFormatter.format`` never raises on malformed input.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from markupsafe import escape
import structlog

from onboarding_bot import config

logger = structlog.get_logger()

# Title text sits on the marker line or the line after it, and ends at a
# CONTENT marker sharing its line
TITLE_PATTERN = re.compile(
    r"TITLE:[ \t]*(?:\n[ \t]*)?(.*?)(?=[ \t]*CONTENT:|$)", re.MULTILINE
)
CONTENT_PATTERN = re.compile(r"CONTENT:\s*(.*)", re.DOTALL)
BOILERPLATE_PATTERN = re.compile(
    r"^(?:Answer:|Response:|Here.*?:|Based.*?:)", re.IGNORECASE
)

# A list number: "3." at the start or after whitespace, not a decimal like 2.0
NUMBERED_MARKER = r"(?<!\S)\d+\.(?!\d)"
NUMBERED_PATTERN = re.compile(NUMBERED_MARKER)
NUMBERED_SPLIT = re.compile(rf"(?={NUMBERED_MARKER})")
BULLET_LINE_PATTERN = re.compile(r"^[ \t]*[-*•+][ \t]", re.MULTILINE)
BULLET_LINE_SPLIT = re.compile(r"\n(?=[ \t]*[-*•+][ \t])")
SENTENCE_SPLIT = re.compile(r"\.\s+(?=[A-Z])|\n")

LEADING_NUMBER = re.compile(r"^\d+\.\s*")
LEADING_SYMBOL = re.compile(r"^(?:[-•+:]|\*(?=\s))\s*")
BOLD = re.compile(r"\*\*(.+?)\*\*")
ITALIC = re.compile(r"\*(.+?)\*")
CODE_FENCE = re.compile(r"```[\w+-]*")
INLINE_CODE = re.compile(r"`([^`]*)`")
LANGUAGE_TAG = re.compile(r"^(?:shell|bash)\s+", re.IGNORECASE)
TRAILING_COLON = re.compile(r":\s*$")
WHITESPACE = re.compile(r"\s+")

TERMINAL_PUNCTUATION = (".", "!", "?")

NO_INFORMATION_MESSAGE = (
    'I don\'t have information about "{query}" in my knowledge base. '
    "I'm here to help with onboarding and project-related questions."
)


class ParseState(Enum):
    AWAITING_TITLE = "awaiting_title"
    AWAITING_CONTENT = "awaiting_content"
    SEGMENTING_STATEMENTS = "segmenting_statements"
    DONE = "done"


@dataclass(frozen=True)
class FormattedAnswer:
    """A title plus cleaned, ordered bullet statements."""

    title: str
    bullet_lines: Tuple[str, ...] = ()

    def bullets_text(self) -> str:
        return "\n\n".join(f"- {line}" for line in self.bullet_lines)

    def to_plain_text(self) -> str:
        return "\n\n".join(part for part in (self.title, self.bullets_text()) if part)

    def to_html(self) -> str:
        """HTML-safe rendering: bold title, bullets separated by line breaks."""
        parts = []
        if self.title:
            parts.append(f"<strong>{escape(self.title)}</strong>")
        parts.extend(f"- {escape(line)}" for line in self.bullet_lines)
        return "<br><br>".join(parts)


def no_information_answer(title: str, query: str) -> FormattedAnswer:
    """Canned answer for questions the corpus has nothing on."""
    return FormattedAnswer(
        title=title,
        bullet_lines=(NO_INFORMATION_MESSAGE.format(query=query),),
    )


class ResponseFormatter:
    """Turns a raw completion into a FormattedAnswer."""

    def __init__(self, noise_floor: int = None, enable_markup_cleanup: bool = True):
        """
        Args:
            noise_floor: Statements shorter than this after cleanup are dropped
            enable_markup_cleanup: Strip markdown emphasis, code markup and
                shell language tags from statements and the title
        """
        self.noise_floor = noise_floor if noise_floor is not None else config.NOISE_FLOOR
        self.enable_markup_cleanup = enable_markup_cleanup

    def format(self, title: str, raw_completion: str) -> FormattedAnswer:
        remainder = raw_completion or ""
        answer_title = title
        body = ""
        statements: List[str] = []
        state = ParseState.AWAITING_TITLE

        while state is not ParseState.DONE:
            if state is ParseState.AWAITING_TITLE:
                match = TITLE_PATTERN.search(remainder)
                if match:
                    candidate = self._clean_title(match.group(1))
                    if candidate:
                        answer_title = candidate
                    remainder = remainder[: match.start()] + remainder[match.end():]
                state = ParseState.AWAITING_CONTENT

            elif state is ParseState.AWAITING_CONTENT:
                match = CONTENT_PATTERN.search(raw_completion or "")
                body = match.group(1) if match else remainder
                body = BOILERPLATE_PATTERN.sub("", body.strip(), count=1).strip()
                state = ParseState.SEGMENTING_STATEMENTS

            elif state is ParseState.SEGMENTING_STATEMENTS:
                statements = self._statements(body)
                state = ParseState.DONE

        logger.debug(
            "completion_formatted",
            completion_length=len(raw_completion or ""),
            bullet_count=len(statements),
            used_model_title=answer_title != title,
        )

        return FormattedAnswer(title=answer_title, bullet_lines=tuple(statements))

    def _statements(self, body: str) -> List[str]:
        if NUMBERED_PATTERN.search(body):
            candidates = NUMBERED_SPLIT.split(body)
        elif BULLET_LINE_PATTERN.search(body):
            candidates = BULLET_LINE_SPLIT.split(body)
        else:
            candidates = SENTENCE_SPLIT.split(body)

        statements = []
        seen = set()
        for candidate in candidates:
            statement = self.clean_statement(candidate)
            if statement is None:
                continue
            key = statement.lower()
            if key in seen:
                continue
            seen.add(key)
            statements.append(statement)
        return statements

    def clean_statement(self, candidate: str) -> Optional[str]:
        """Normalize one candidate statement, or return None if it is noise."""
        statement = candidate.strip()
        if not statement:
            return None

        statement = LEADING_NUMBER.sub("", statement)
        statement = LEADING_SYMBOL.sub("", statement)

        if self.enable_markup_cleanup:
            statement = self._strip_markup(statement)

        statement = TRAILING_COLON.sub("", statement)
        statement = WHITESPACE.sub(" ", statement).strip()

        if len(statement) < self.noise_floor:
            return None

        if not statement.endswith(TERMINAL_PUNCTUATION):
            statement += "."

        return statement

    def _strip_markup(self, text: str) -> str:
        text = BOLD.sub(r"\1", text)
        text = ITALIC.sub(r"\1", text)
        text = CODE_FENCE.sub("", text)
        text = INLINE_CODE.sub(r"\1", text)
        text = text.replace("`", "").replace("*", "")
        return LANGUAGE_TAG.sub("", text.strip())

    def _clean_title(self, raw_title: str) -> str:
        title = raw_title.strip()
        if self.enable_markup_cleanup:
            title = self._strip_markup(title)
        return WHITESPACE.sub(" ", title).strip()
