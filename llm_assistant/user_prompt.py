"""Interactive yes/no and free-text prompts."""

from __future__ import annotations

from typing import Protocol

from rich.console import Console
from rich.prompt import Confirm, Prompt


class UserPrompt(Protocol):
    """Blocking questions put to the person at the terminal."""

    def confirm(self, prompt: str) -> bool:
        ...

    def ask_text(self, prompt: str) -> str:
        ...


class ConsoleUserPrompt:
    """UserPrompt on a rich console."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def confirm(self, prompt: str) -> bool:
        return Confirm.ask(f"[cyan]{prompt}[/cyan]", console=self.console)

    def ask_text(self, prompt: str) -> str:
        return Prompt.ask(f"[yellow]{prompt}[/yellow]", console=self.console, default="", show_default=False).strip()


__all__ = ["ConsoleUserPrompt", "UserPrompt"]
