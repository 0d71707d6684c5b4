"""Git staging and commits through the git command line."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class VcsError(Exception):
    """A git operation failed or there was nothing to commit."""
    pass


class CommitGateway(Protocol):
    """Stage and commit capability consumed by the session and pipeline."""

    def stage_all(self) -> None:
        ...

    def stage(self, path: Path) -> None:
        ...

    def commit(self, message: str) -> None:
        ...

    def has_changes(self) -> bool:
        ...


class GitCommitGateway:
    """
    CommitGateway running ``git`` in the project directory.

    Usage:
        gateway = GitCommitGateway(Path.cwd())
        gateway.stage(Path("generated_ruby_20250101120000.rb"))
        gateway.commit("Add ruby file: generated_ruby_20250101120000.rb")
    """

    def __init__(self, root: Path, timeout: float = 30.0):
        self.root = Path(root).resolve()
        self.timeout = timeout

    def _git(self, *args: str) -> str:
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.root,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise VcsError("git is not installed") from e
        except subprocess.TimeoutExpired as e:
            raise VcsError(f"git {args[0]} timed out") from e

        if result.returncode != 0:
            detail = (result.stderr or result.stdout).strip()
            raise VcsError(f"git {args[0]} failed: {detail}")
        return result.stdout

    @classmethod
    def open(cls, root: Path) -> "GitCommitGateway":
        """
        Open the repository containing ``root``.

        Raises:
            VcsError: If ``root`` is not inside a git working tree
        """
        gateway = cls(root)
        if gateway._git("rev-parse", "--is-inside-work-tree").strip() != "true":
            raise VcsError(f"{root} is not a git working tree")
        return gateway

    def has_changes(self) -> bool:
        """Check for staged, unstaged or untracked changes."""
        return bool(self._git("status", "--porcelain").strip())

    def stage_all(self) -> None:
        self._git("add", "--all")

    def stage(self, path: Path) -> None:
        """
        Stage one file.

        Raises:
            VcsError: If ``path`` lies outside the repository or git fails
        """
        try:
            relative = (self.root / Path(path).expanduser()).resolve().relative_to(self.root)
        except ValueError as e:
            raise VcsError(f"{path} is outside the repository") from e
        self._git("add", "--", relative.as_posix())

    def commit(self, message: str) -> None:
        """
        Commit the staged changes.

        Raises:
            VcsError: If nothing is staged or git refuses the commit
        """
        if not self._git("diff", "--cached", "--name-only").strip():
            raise VcsError("Nothing staged to commit")
        self._git("commit", "-m", message)
        logger.info(f"Committed: {message}")


__all__ = ["CommitGateway", "GitCommitGateway", "VcsError"]
