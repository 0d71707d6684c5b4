"""
Parse model responses for fenced code blocks.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

DEFAULT_LANGUAGE = "ruby"


@dataclass(frozen=True)
class CodeBlock:
    """A fenced code block pulled out of a model response."""

    language: str
    code: str


class CodeBlockExtractor:
    """
    Extract fenced code blocks from free-form model text.

    A block opens with three backticks, optionally followed by a language
    word and a line break, and runs non-greedily to the next three
    backticks. Unterminated fences are not matched.
    """

    FENCED_BLOCK = re.compile(r"```(?:(\w+)\n)?(.*?)```", re.DOTALL)

    def __init__(self, default_language: str = DEFAULT_LANGUAGE):
        self.default_language = default_language

    def extract(self, response: str) -> list[CodeBlock]:
        """
        Extract all code blocks in order of appearance.

        Args:
            response: Raw model response

        Returns:
            List of CodeBlock, empty when the text has no fences
        """
        return [
            CodeBlock(language=language or self.default_language, code=code.strip())
            for language, code in self.FENCED_BLOCK.findall(response)
        ]


__all__ = [
    "CodeBlock",
    "CodeBlockExtractor",
    "DEFAULT_LANGUAGE",
]
