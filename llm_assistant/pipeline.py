"""
Code artifact pipeline.

Takes one code block from a model reply and walks it through
Proposed -> (Declined | Written) -> (NotRun | Executed) ->
(NotCommitted | Committed), asking the user before every side effect.
A failed run can trigger a bounded number of repair round-trips, each an
isolated model request that never touches the main conversation.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from rich.console import Console
from rich.syntax import Syntax

from .api_client import ApiError, ChatModel
from .config import PipelineConfig
from .filesystem import FileSystem, LocalFileSystem
from .history import Message
from .languages import EXTENSION_LANGUAGES, extension_for_language, language_for_path, runner_for_language
from .prompts import FIX_SYSTEM_PROMPT, build_fix_prompt
from .response_parser import CodeBlock, CodeBlockExtractor
from .runner import ExecutionError, ExecutionResult, ProcessRunner
from .user_prompt import UserPrompt
from .vcs import CommitGateway, VcsError

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


class WriteState(Enum):
    PROPOSED = "proposed"
    SKIPPED = "skipped"  # no known file type for the language
    DECLINED = "declined"
    WRITTEN = "written"


class RunState(Enum):
    NOT_RUN = "not_run"
    EXECUTED = "executed"


class CommitState(Enum):
    NOT_COMMITTED = "not_committed"
    COMMITTED = "committed"


@dataclass(frozen=True)
class ArtifactWriteResult:
    """One write of a generated file."""

    path: Path
    written: bool
    # Set only when a repair overwrote an existing file
    backup_path: Path | None = None


@dataclass
class ArtifactOutcome:
    """Where a code block ended up after ``CodeArtifactPipeline.handle``."""

    block: CodeBlock
    write_state: WriteState = WriteState.PROPOSED
    run_state: RunState = RunState.NOT_RUN
    commit_state: CommitState = CommitState.NOT_COMMITTED
    writes: list[ArtifactWriteResult] = field(default_factory=list)
    executions: list[ExecutionResult] = field(default_factory=list)
    repairs_applied: int = 0
    error: str | None = None
    # A requested write failed; no further steps run for this block
    incomplete: bool = False

    @property
    def path(self) -> Path | None:
        return self.writes[0].path if self.writes else None

    @property
    def backups(self) -> list[Path]:
        return [w.backup_path for w in self.writes if w.backup_path is not None]


class CodeArtifactPipeline:
    """
    Write, run, repair and commit model-generated code.

    Usage:
        pipeline = CodeArtifactPipeline(
            project_dir, config.pipeline, prompt=ConsoleUserPrompt(),
            model=client, runner=SubprocessRunner(), commit_gateway=gateway,
        )
        for block in extractor.extract(reply):
            pipeline.handle(block)
    """

    def __init__(
        self,
        project_dir: Path,
        config: PipelineConfig | None = None,
        *,
        prompt: UserPrompt,
        model: ChatModel,
        runner: ProcessRunner,
        commit_gateway: CommitGateway,
        fs: FileSystem | None = None,
        console: Console | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.project_dir = Path(project_dir)
        self.config = config or PipelineConfig()
        self.prompt = prompt
        self.model = model
        self.runner = runner
        self.commit_gateway = commit_gateway
        self.fs = fs or LocalFileSystem()
        self.console = console or Console()
        self.clock = clock
        self.extractor = CodeBlockExtractor(self.config.default_language)

    def _timestamp(self) -> str:
        return self.clock().strftime(TIMESTAMP_FORMAT)

    def _display_name(self, path: Path) -> str:
        try:
            return path.relative_to(self.project_dir).as_posix()
        except ValueError:
            return str(path)

    def destination_for(self, language: str, filename: str = "") -> Path | None:
        """
        Resolve where a block of ``language`` code should be written.

        An empty ``filename`` becomes ``generated_<language>_<timestamp>``.
        The language's extension is appended when missing. Relative names
        resolve against the project directory.

        Returns:
            Destination path, or None when the language has no known extension
        """
        extension = extension_for_language(language)
        if extension is None:
            return None

        name = filename.strip() or f"generated_{language.lower()}_{self._timestamp()}"
        # Any extension of the same language counts, e.g. x.yaml for yml or X.RB
        if language_for_path(name) != EXTENSION_LANGUAGES[extension]:
            name = f"{name}{extension}"

        path = Path(name).expanduser()
        return path if path.is_absolute() else self.project_dir / path

    def handle_all(self, blocks: Sequence[CodeBlock]) -> list[ArtifactOutcome]:
        """Handle blocks one after another; a declined block does not stop the rest."""
        return [self.handle(block) for block in blocks]

    def handle(self, block: CodeBlock) -> ArtifactOutcome:
        """
        Offer one code block to the user and carry out what they accept.

        Returns:
            ArtifactOutcome describing the states reached
        """
        outcome = ArtifactOutcome(block=block)
        language = block.language

        if extension_for_language(language) is None:
            logger.info(f"Skipping {language} block: no known file extension")
            self.console.print(f"[dim]Skipping {language} code block (unknown file type).[/dim]")
            outcome.write_state = WriteState.SKIPPED
            return outcome

        self.console.print(Syntax(block.code, language, line_numbers=False))
        if not self.prompt.confirm(f"Would you like to write this {language} code to a file?"):
            outcome.write_state = WriteState.DECLINED
            return outcome

        filename = self.prompt.ask_text("Enter filename (or press Enter for auto-generated name):")
        path = self.destination_for(language, filename)
        name = self._display_name(path)

        if self.fs.exists(path) and not self.prompt.confirm(f"{name} already exists. Overwrite it?"):
            self.console.print(f"[yellow]Left {name} unchanged.[/yellow]")
            outcome.write_state = WriteState.DECLINED
            return outcome

        try:
            self.fs.write(path, block.code)
        except OSError as e:
            logger.warning(f"Write to {path} failed: {e}")
            self.console.print(f"[red]Could not write {name}: {e}[/red]")
            outcome.error = str(e)
            outcome.incomplete = True
            return outcome

        outcome.write_state = WriteState.WRITTEN
        outcome.writes.append(ArtifactWriteResult(path=path, written=True))
        self.console.print(f"[green]Code written to {name}[/green]")

        command = runner_for_language(language)
        if command and self.prompt.confirm(f"Would you like to run {name}?"):
            self._run_with_repairs(command, path, block, outcome)
            if outcome.incomplete:
                return outcome

        if self.prompt.confirm(f"Would you like to commit {name} to git?"):
            self._commit(path, language, outcome)

        return outcome

    def _execute(self, command: Sequence[str], path: Path, outcome: ArtifactOutcome) -> ExecutionResult | None:
        name = self._display_name(path)
        self.console.print(f"[cyan]Running {name}...[/cyan]")
        self.console.rule()
        try:
            result = self.runner.run([*command, str(path)], cwd=self.project_dir)
        except ExecutionError as e:
            self.console.rule()
            self.console.print(f"[red]{e}[/red]")
            outcome.error = str(e)
            return None
        self.console.rule()

        outcome.run_state = RunState.EXECUTED
        outcome.executions.append(result)
        return result

    def _run_with_repairs(
        self,
        command: Sequence[str],
        path: Path,
        block: CodeBlock,
        outcome: ArtifactOutcome,
    ) -> None:
        """Run the file; on failure offer up to ``max_repair_attempts`` fixes."""
        name = self._display_name(path)
        code = block.code
        attempts = 0

        while True:
            result = self._execute(command, path, outcome)
            if result is None:
                return

            if result.succeeded:
                self.console.print("[green]Execution complete.[/green]")
                return

            self.console.print(f"[red]{name} exited with status {result.exit_code}[/red]")
            if result.stderr_text.strip():
                self.console.print(result.stderr_text.rstrip(), style="red", markup=False, highlight=False)

            if self.config.max_repair_attempts <= 0:
                self.console.print("[yellow]Repairs are disabled.[/yellow]")
                return
            if attempts >= self.config.max_repair_attempts:
                self.console.print(
                    f"[yellow]Stopped after {attempts} repair attempts for {name}.[/yellow]"
                )
                return
            if not self.prompt.confirm("Would you like the assistant to try to fix this error?"):
                return

            attempts += 1
            fixed_code = self._repair(path, block.language, code, result, outcome)
            if fixed_code is None:
                return
            code = fixed_code

            if not self.prompt.confirm(f"Would you like to run the fixed {name}?"):
                return

    def request_fix(self, filename: str, language: str, code: str, error_text: str, comments: str = "") -> list[CodeBlock]:
        """
        Ask the model for a fix in a request of its own.

        The request is a fresh system + user pair; the main conversation
        history is not involved.

        Raises:
            ApiError: If the model call fails
        """
        messages = [
            Message(role="system", content=FIX_SYSTEM_PROMPT),
            Message(role="user", content=build_fix_prompt(filename, language, code, error_text, comments)),
        ]
        reply = self.model.complete(messages)
        return self.extractor.extract(reply)

    def choose_fix(self, candidates: Sequence[CodeBlock]) -> CodeBlock:
        """Let the user pick among several fixes; bad input picks the first."""
        if len(candidates) == 1:
            return candidates[0]

        self.console.print(f"[cyan]The assistant proposed {len(candidates)} code blocks:[/cyan]")
        for number, candidate in enumerate(candidates, start=1):
            first_line = candidate.code.splitlines()[0] if candidate.code else ""
            self.console.print(f"  {number}. ({candidate.language}) {first_line}", markup=False)

        answer = self.prompt.ask_text(f"Which one should be applied? [1-{len(candidates)}]:")
        try:
            choice = int(answer)
        except ValueError:
            choice = 0
        if not 1 <= choice <= len(candidates):
            self.console.print("[yellow]Invalid choice, using the first block.[/yellow]")
            choice = 1
        return candidates[choice - 1]

    def _repair(
        self,
        path: Path,
        language: str,
        code: str,
        result: ExecutionResult,
        outcome: ArtifactOutcome,
    ) -> str | None:
        """
        Run one repair round-trip.

        Returns:
            The applied code, or None when the repair was abandoned
        """
        name = self._display_name(path)
        comments = self.prompt.ask_text("Any additional comments for the fix (optional):")

        self.console.print("[cyan]Asking for a fix...[/cyan]")
        try:
            candidates = self.request_fix(name, language, code, result.stderr_text, comments)
        except ApiError as e:
            logger.warning(f"Fix request for {name} failed: {e}")
            self.console.print(f"[red]Fix request failed: {e}[/red]")
            return None

        if not candidates:
            self.console.print("[yellow]The fix response contained no code block.[/yellow]")
            return None

        fix = self.choose_fix(candidates)
        self.console.print(Syntax(fix.code, fix.language, line_numbers=False))
        if not self.prompt.confirm(f"Apply this fix to {name}?"):
            return None

        backup_path = path.with_name(f"{path.name}.backup.{self._timestamp()}")
        try:
            self.fs.copy(path, backup_path)
        except OSError as e:
            logger.warning(f"Backup of {path} failed: {e}")
            self.console.print(f"[red]Could not back up {name}; fix not applied: {e}[/red]")
            outcome.error = str(e)
            outcome.incomplete = True
            return None

        try:
            self.fs.write(path, fix.code)
        except OSError as e:
            logger.warning(f"Applying fix to {path} failed: {e}")
            self.console.print(f"[red]Could not apply the fix to {name}: {e}[/red]")
            outcome.error = str(e)
            outcome.incomplete = True
            self._restore(path, backup_path)
            return None

        outcome.writes.append(ArtifactWriteResult(path=path, written=True, backup_path=backup_path))
        outcome.repairs_applied += 1
        self.console.print(
            f"[green]Fix applied to {name} (backup at {self._display_name(backup_path)})[/green]"
        )
        return fix.code

    def _restore(self, path: Path, backup_path: Path) -> None:
        """Put the pre-fix file back after a failed fix write."""
        name = self._display_name(path)
        try:
            self.fs.copy(backup_path, path)
        except OSError as e:
            logger.error(f"Restoring {path} from {backup_path} failed: {e}")
            self.console.print(
                f"[red]Could not restore {name}; the previous version is in "
                f"{self._display_name(backup_path)}[/red]"
            )
            return
        self.console.print(f"[yellow]Restored {name} from its backup.[/yellow]")

    def _commit(self, path: Path, language: str, outcome: ArtifactOutcome) -> None:
        name = self._display_name(path)
        if outcome.repairs_applied:
            default_message = f"Fix error in {name}"
        else:
            default_message = f"Add {language} file: {name}"

        message = self.prompt.ask_text("Enter commit message (or press Enter for default):")
        message = message or default_message

        try:
            self.commit_gateway.stage(path)
            self.commit_gateway.commit(message)
        except VcsError as e:
            logger.warning(f"Commit of {name} failed: {e}")
            self.console.print(f"[red]Error committing changes: {e}[/red]")
            return

        outcome.commit_state = CommitState.COMMITTED
        self.console.print(f"[green]File committed with message: '{message}'[/green]")


__all__ = [
    "ArtifactOutcome",
    "ArtifactWriteResult",
    "CodeArtifactPipeline",
    "CommitState",
    "RunState",
    "WriteState",
]
