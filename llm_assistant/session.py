"""
Interactive assistant session.

Collects the project context, seeds the conversation and relays turns
between the user and the model until the user exits.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.markdown import Markdown

from .api_client import ApiError, ChatModel
from .config import AssistantConfig
from .context_builder import ContextResult, ProjectContextBuilder
from .filesystem import FileSystem, LocalFileSystem
from .history import ConversationHistory
from .pipeline import ArtifactOutcome, CodeArtifactPipeline
from .prompts import SYSTEM_PROMPT, build_context_message, build_refreshed_context_message
from .response_parser import CodeBlockExtractor
from .runner import ProcessRunner, SubprocessRunner
from .user_prompt import UserPrompt
from .vcs import CommitGateway, VcsError

logger = logging.getLogger(__name__)

AUTO_COMMIT_MESSAGE = "Auto-commit before LLM interaction"

EXIT_COMMANDS = {"exit", "quit"}


class AssistantSession:
    """
    One interactive run of the assistant over a project directory.

    Usage:
        session = AssistantSession(config, model=client, prompt=ConsoleUserPrompt(),
                                   commit_gateway=GitCommitGateway.open(config.project_dir))
        session.run()
    """

    def __init__(
        self,
        config: AssistantConfig,
        *,
        model: ChatModel,
        prompt: UserPrompt,
        commit_gateway: CommitGateway,
        runner: ProcessRunner | None = None,
        fs: FileSystem | None = None,
        console: Console | None = None,
    ):
        self.config = config
        self.model = model
        self.prompt = prompt
        self.commit_gateway = commit_gateway
        self.console = console or Console()
        fs = fs or LocalFileSystem()

        self.builder = ProjectContextBuilder(config.context, fs)
        self.history = ConversationHistory(config.history)
        self.extractor = CodeBlockExtractor(config.pipeline.default_language)
        self.pipeline = CodeArtifactPipeline(
            config.project_dir,
            config.pipeline,
            prompt=prompt,
            model=model,
            runner=runner or SubprocessRunner(),
            commit_gateway=commit_gateway,
            fs=fs,
            console=self.console,
        )

    def commit_changes(self, message: str) -> bool:
        """Stage everything and commit. Returns True when a commit was made."""
        try:
            if not self.commit_gateway.has_changes():
                self.console.print("[yellow]No changes to commit.[/yellow]")
                return False
            self.commit_gateway.stage_all()
            self.commit_gateway.commit(message)
        except VcsError as e:
            logger.warning(f"Commit failed: {e}")
            self.console.print(f"[red]Error committing changes: {e}[/red]")
            return False

        self.console.print(f"[green]Changes committed with message: '{message}'[/green]")
        return True

    def collect_context(self) -> ContextResult:
        self.console.print("[cyan]Collecting project files...[/cyan]")
        result = self.builder.build(self.config.project_dir)
        stats = result.stats
        self.console.print(
            f"[dim]{stats.included_count} files included, {stats.excluded_count} excluded, "
            f"{stats.total_bytes} bytes[/dim]"
        )
        if stats.truncated:
            self.console.print("[yellow]Not all files were included due to token limits.[/yellow]")
        return result

    def start(self) -> None:
        """Auto-commit pending work if configured, then seed the conversation."""
        if self.config.pipeline.auto_commit_on_start:
            self.commit_changes(AUTO_COMMIT_MESSAGE)

        result = self.collect_context()
        self.history.seed(SYSTEM_PROMPT, build_context_message(result.text))

    def refresh(self) -> None:
        self.console.print("[cyan]Refreshing project files...[/cyan]")
        result = self.collect_context()
        self.history.refresh(build_refreshed_context_message(result.text))
        self.console.print("[green]Project files refreshed![/green]")

    def save(self) -> None:
        message = self.prompt.ask_text("Enter commit message:")
        if not message:
            self.console.print("[yellow]Commit message is required; nothing saved.[/yellow]")
            return
        self.commit_changes(message)

    def ask(self, text: str) -> list[ArtifactOutcome] | None:
        """
        Run one user turn.

        Returns:
            Outcomes for the code blocks in the reply, or None if the model
            call failed
        """
        self.history.append_user(text)

        try:
            with self.console.status("Thinking..."):
                reply = self.model.complete(self.history.snapshot_for_request())
        except ApiError as e:
            self.console.print(f"[red]Failed to get a response from the LLM: {e}[/red]")
            if e.body:
                self.console.print(e.body, style="red", markup=False, highlight=False)
            # Failed turns still count against capacity
            self.history.trim_if_over_capacity()
            return None

        self.history.append_assistant(reply)
        self.console.print("\n[green]Assistant:[/green]")
        self.console.print(Markdown(reply))
        self.console.print()

        outcomes = self.pipeline.handle_all(self.extractor.extract(reply))
        self.history.trim_if_over_capacity()
        return outcomes

    def handle_input(self, line: str) -> bool:
        """Dispatch one line of input. Returns False when the session should end."""
        command = line.strip().lower()

        if not command:
            return True
        if command in EXIT_COMMANDS:
            self.console.print("[cyan]Exiting...[/cyan]")
            return False
        if command == "save":
            self.save()
        elif command == "refresh":
            self.refresh()
        else:
            self.ask(line.strip())
        return True

    def run(self) -> None:
        """Start the session and loop over user input until exit."""
        self.start()

        self.console.print(
            "\n[green]LLM Project Assistant ready! Type your questions about the project "
            "or features you want to implement.[/green]"
        )
        self.console.print(
            "[green]Type 'exit' to quit, 'save' to commit changes, "
            "or 'refresh' to reload project files.[/green]\n"
        )

        while True:
            try:
                line = self.prompt.ask_text(">")
            except (EOFError, KeyboardInterrupt):
                self.console.print("\n[cyan]Exiting...[/cyan]")
                break
            if not self.handle_input(line):
                break


__all__ = ["AUTO_COMMIT_MESSAGE", "AssistantSession"]
