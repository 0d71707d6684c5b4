"""
Project context collection.

Walks the project tree, filters files and accumulates their contents into a
single labelled context blob that fits the configured token budget.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .config import ContextConfig
from .filesystem import FileSystem, LocalFileSystem
from .languages import language_for_path
from .tokens import estimate_tokens, fits_budget

logger = logging.getLogger(__name__)

NO_FILES_MESSAGE = "No files found matching the criteria."
BUDGET_NOTE = "Note: Not all files were included due to token limits."


@dataclass(frozen=True)
class FileContextEntry:
    """One project file as it appears in the context blob."""

    relative_path: str
    language: str
    content: str

    def render(self) -> str:
        """Render as a path header followed by a fenced block."""
        return f"File: {self.relative_path}\n```{self.language}\n{self.content}\n```\n"


@dataclass
class ContextStats:
    """Counters reported after a build."""

    included_count: int = 0
    excluded_count: int = 0
    total_bytes: int = 0
    truncated: bool = False
    # relative path -> reason, for files dropped after filtering
    excluded: dict[str, str] = field(default_factory=dict)

    def exclude(self, relative_path: str, reason: str) -> None:
        self.excluded_count += 1
        self.excluded[relative_path] = reason


@dataclass
class ContextResult:
    """Output of ``ProjectContextBuilder.build``."""

    text: str
    stats: ContextStats
    entries: list[FileContextEntry] = field(default_factory=list)


class ProjectContextBuilder:
    """
    Build the project context message from files on disk.

    Usage:
        builder = ProjectContextBuilder(config.context)
        result = builder.build(project_dir)
        history.seed(SYSTEM_PROMPT, build_context_message(result.text))
    """

    def __init__(self, config: ContextConfig | None = None, fs: FileSystem | None = None):
        self.config = config or ContextConfig()
        self.fs = fs or LocalFileSystem()
        self._extensions = {ext.lower().lstrip(".") for ext in self.config.extensions}
        self._exclude_dirs = set(self.config.exclude_dirs)

    def is_candidate(self, relative: Path) -> bool:
        """Apply the excluded-directory and extension filters to a relative path."""
        if self._exclude_dirs.intersection(relative.parts[:-1]):
            return False
        if self._extensions:
            return relative.suffix.lower().lstrip(".") in self._extensions
        return True

    def find_files(self, root: Path) -> list[Path]:
        """List files under ``root`` that pass the directory and extension filters."""
        root = Path(root)
        return [
            path
            for path in self.fs.enumerate(root)
            if self.is_candidate(path.relative_to(root))
        ]

    def build(self, root: Path, max_tokens: int | None = None) -> ContextResult:
        """
        Collect file contents into a context blob.

        Files are added whole, in enumeration order, until the next file
        would push the estimated token count over the budget. At that point
        accumulation stops; files already added stay.

        Args:
            root: Project directory
            max_tokens: Token budget (defaults to the configured budget)

        Returns:
            ContextResult with the rendered text and inclusion stats
        """
        root = Path(root)
        budget = self.config.max_tokens if max_tokens is None else max_tokens
        stats = ContextStats()
        entries: list[FileContextEntry] = []

        candidates = self.find_files(root)
        for index, path in enumerate(candidates):
            relative = path.relative_to(root).as_posix()

            try:
                size = self.fs.size(path)
            except OSError as e:
                logger.warning(f"Cannot stat {relative}: {e}")
                stats.exclude(relative, f"stat failed: {e}")
                continue

            if size > self.config.max_file_bytes:
                stats.exclude(relative, f"larger than {self.config.max_file_bytes} bytes")
                continue

            try:
                raw = self.fs.read(path)
                content = raw.decode("utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Skipping unreadable file {relative}: {e}")
                stats.exclude(relative, f"read failed: {e}")
                continue

            if not fits_budget(stats.total_bytes + len(raw), budget):
                stats.truncated = True
                for remaining in candidates[index:]:
                    stats.exclude(remaining.relative_to(root).as_posix(), "token budget exhausted")
                logger.info(f"Token budget of {budget} reached after {len(entries)} files")
                break

            entries.append(
                FileContextEntry(
                    relative_path=relative,
                    language=language_for_path(relative),
                    content=content,
                )
            )
            stats.included_count += 1
            stats.total_bytes += len(raw)

        blocks = [entry.render() for entry in entries]
        if stats.truncated:
            blocks.append(BUDGET_NOTE)

        text = "\n".join(blocks) if blocks else NO_FILES_MESSAGE

        logger.debug(
            f"Context built: {stats.included_count} included, {stats.excluded_count} excluded, "
            f"{stats.total_bytes} bytes (~{estimate_tokens(stats.total_bytes)} tokens)"
        )
        return ContextResult(text=text, stats=stats, entries=entries)


__all__ = [
    "BUDGET_NOTE",
    "ContextResult",
    "ContextStats",
    "FileContextEntry",
    "NO_FILES_MESSAGE",
    "ProjectContextBuilder",
]
