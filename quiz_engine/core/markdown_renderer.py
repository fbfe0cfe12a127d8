"""Markdown rendering for question text sent to students.

Math is left as ``$...$`` / ``$$...$$`` source for MathJax to typeset in the
browser. Math spans are lifted out before markdown runs so that ``*``, ``_``
and ``\\`` inside a formula are not read as emphasis or escapes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import html
import re

from markdown_it import MarkdownIt

from quiz_engine.core.models import QuizQuestion

_MATH_PATTERN = re.compile(r"(?<!\\)(\$\$.+?\$\$|\$[^$\n]+?\$)", re.DOTALL)
_PLACEHOLDER = "@@MATH{}@@"
_PLACEHOLDER_PATTERN = re.compile(r"@@MATH(\d+)@@")


@dataclass(slots=True)
class MarkdownRenderer:
    """Converts markdown question text into HTML fragments."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str) -> str:
        sanitized = markdown_text.strip()
        if not sanitized:
            return "<p><em>No content provided.</em></p>"
        protected, spans = _protect_math(sanitized)
        return _restore_math(self._markdown.render(protected), spans)

    def render_inline(self, markdown_text: str) -> str:
        protected, spans = _protect_math(markdown_text.strip())
        return _restore_math(self._markdown.renderInline(protected), spans)

    def render_options(self, options: dict[str, str]) -> dict[str, str]:
        """Render each option as inline HTML, keeping the key order."""
        return {key: self.render_inline(text) for key, text in options.items()}

    def render_question(self, question: QuizQuestion) -> dict[str, object]:
        """HTML for everything a student sees of one question.

        ``explanation_html`` is None when the explanation is absent or has
        been withheld from the payload.
        """
        return {
            "question_html": self.render_fragment(question.question_text),
            "options_html": self.render_options(question.options),
            "explanation_html": self.render_fragment(question.explanation) if question.explanation else None,
        }


def _protect_math(text: str) -> tuple[str, list[str]]:
    spans: list[str] = []

    def stash(match: re.Match[str]) -> str:
        spans.append(match.group(0))
        return _PLACEHOLDER.format(len(spans) - 1)

    return _MATH_PATTERN.sub(stash, text), spans


def _restore_math(rendered: str, spans: list[str]) -> str:
    if not spans:
        return rendered
    return _PLACEHOLDER_PATTERN.sub(lambda match: html.escape(spans[int(match.group(1))], quote=False), rendered)


# Shared instance; MarkdownIt is safe for concurrent read-only renders.
renderer = MarkdownRenderer()
