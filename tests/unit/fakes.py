"""Fakes for the assistant's collaborators."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from llm_assistant.api_client import ApiError
from llm_assistant.history import Message
from llm_assistant.runner import ExecutionResult
from llm_assistant.vcs import VcsError

FIXED_TIME = datetime(2025, 1, 2, 3, 4, 5)
FIXED_STAMP = "20250102030405"


class ScriptedPrompt:
    """UserPrompt that replays a fixed list of answers in order."""

    def __init__(self, answers: Sequence[bool | str] = ()):
        self.answers = list(answers)
        self.asked: list[str] = []

    def _next(self, prompt: str, kind: type):
        self.asked.append(prompt)
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {prompt!r}")
        answer = self.answers.pop(0)
        if not isinstance(answer, kind):
            raise AssertionError(f"Prompt {prompt!r} expected {kind.__name__}, script has {answer!r}")
        return answer

    def confirm(self, prompt: str) -> bool:
        return self._next(prompt, bool)

    def ask_text(self, prompt: str) -> str:
        return self._next(prompt, str)


class FakeModel:
    """ChatModel returning canned replies; an ApiError in the list is raised."""

    def __init__(self, replies: Sequence[str | ApiError] = ()):
        self.replies = list(replies)
        self.calls: list[list[Message]] = []

    def complete(self, messages: Sequence[Message]) -> str:
        self.calls.append(list(messages))
        reply = self.replies.pop(0)
        if isinstance(reply, ApiError):
            raise reply
        return reply


class FakeRunner:
    """ProcessRunner returning canned results; the last one repeats."""

    def __init__(self, results: Sequence[ExecutionResult] = ()):
        self.results = list(results)
        self.commands: list[list[str]] = []

    def run(self, command: Sequence[str], cwd: Path | None = None) -> ExecutionResult:
        self.commands.append(list(command))
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]


class FakeGateway:
    """CommitGateway recording what was staged and committed."""

    def __init__(self, changes: bool = True, fail_commit: bool = False):
        self.changes = changes
        self.fail_commit = fail_commit
        self.staged: list[Path] = []
        self.staged_all = 0
        self.commits: list[str] = []

    def has_changes(self) -> bool:
        return self.changes

    def stage_all(self) -> None:
        self.staged_all += 1

    def stage(self, path: Path) -> None:
        self.staged.append(Path(path))

    def commit(self, message: str) -> None:
        if self.fail_commit:
            raise VcsError("Nothing staged to commit")
        self.commits.append(message)


def console_text(console) -> str:
    """Everything printed to a console built by the ``console`` fixture."""
    return console.file.getvalue()
