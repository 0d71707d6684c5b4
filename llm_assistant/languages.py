"""Static language lookup tables."""

from __future__ import annotations

from pathlib import PurePath
from types import MappingProxyType

# File extension -> fence tag used when rendering project context
EXTENSION_LANGUAGES = MappingProxyType({
    ".rb": "ruby",
    ".py": "python",
    ".js": "javascript",
    ".ts": "typescript",
    ".java": "java",
    ".go": "go",
    ".rs": "rust",
    ".c": "cpp",
    ".cpp": "cpp",
    ".h": "cpp",
    ".cs": "csharp",
    ".sh": "bash",
    ".sql": "sql",
    ".json": "json",
    ".yml": "yaml",
    ".yaml": "yaml",
    ".md": "markdown",
    ".html": "html",
    ".css": "css",
    ".php": "php",
})

# Fence tag -> extension for files written from model output
LANGUAGE_EXTENSIONS = MappingProxyType({
    "ruby": ".rb",
    "rb": ".rb",
    "python": ".py",
    "py": ".py",
    "javascript": ".js",
    "js": ".js",
    "typescript": ".ts",
    "ts": ".ts",
    "java": ".java",
    "go": ".go",
    "rust": ".rs",
    "c": ".c",
    "cpp": ".cpp",
    "csharp": ".cs",
    "bash": ".sh",
    "sh": ".sh",
    "shell": ".sh",
    "sql": ".sql",
    "json": ".json",
    "yaml": ".yml",
    "yml": ".yml",
    "markdown": ".md",
    "md": ".md",
    "html": ".html",
    "css": ".css",
    "php": ".php",
})

# Fence tag -> interpreter command for languages we offer to execute
RUNNERS = MappingProxyType({
    "ruby": ("ruby",),
    "rb": ("ruby",),
})


def language_for_path(path: str) -> str:
    """Return the fence tag for a file path, or "" when unknown."""
    return EXTENSION_LANGUAGES.get(PurePath(path).suffix.lower(), "")


def extension_for_language(language: str) -> str | None:
    """Return the canonical extension for a fence tag, or None when unknown."""
    return LANGUAGE_EXTENSIONS.get(language.lower())


def runner_for_language(language: str) -> tuple[str, ...] | None:
    """Return the interpreter command for a fence tag, if it is runnable."""
    return RUNNERS.get(language.lower())


__all__ = [
    "EXTENSION_LANGUAGES",
    "LANGUAGE_EXTENSIONS",
    "RUNNERS",
    "extension_for_language",
    "language_for_path",
    "runner_for_language",
]
