"""Command-line entry point."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console

from .api_client import ModelClient
from .config import AssistantConfig, ConfigError
from .session import AssistantSession
from .user_prompt import ConsoleUserPrompt
from .vcs import GitCommitGateway, VcsError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="llm-assistant",
        description="Chat with a language model about a local project, write and run its code.",
    )
    parser.add_argument("-k", "--api-key", help="API key for the LLM service (or set LLM_API_KEY)")
    parser.add_argument("-m", "--model", help="Model to use (default: gpt-4.1-2025-04-14)")
    parser.add_argument("-d", "--directory", type=Path, help="Project directory (default: current directory)")
    parser.add_argument("-e", "--extensions", help="Comma-separated list of file extensions to include")
    parser.add_argument("-t", "--max-tokens", type=int, help="Maximum number of tokens for context")
    parser.add_argument("-u", "--base-url", help="Base URL of an OpenAI- or Anthropic-compatible endpoint")
    parser.add_argument("--provider", choices=["openai", "anthropic"], help="Request format (default: from model name)")
    parser.add_argument("--config", type=Path, help="Path to a JSON config file")
    parser.add_argument("--max-repair-attempts", type=int, help="Fix attempts per failed run")
    parser.add_argument(
        "--no-auto-commit",
        action="store_true",
        help="Do not commit pending changes when the session starts",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Diagnostic log level (default: WARNING)",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> AssistantConfig:
    """Merge the config file with command-line options."""
    config = AssistantConfig.load(args.config)

    extensions = None
    if args.extensions:
        extensions = tuple(ext.strip() for ext in args.extensions.split(",") if ext.strip())

    return config.with_overrides(
        project_dir=args.directory or config.project_dir,
        api_key=args.api_key,
        context={"extensions": extensions, "max_tokens": args.max_tokens},
        model={"model": args.model, "base_url": args.base_url, "provider": args.provider},
        pipeline={
            "max_repair_attempts": args.max_repair_attempts,
            "auto_commit_on_start": False if args.no_auto_commit else None,
        },
    )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    console = Console()

    try:
        config = config_from_args(args)
        api_key = config.resolve_api_key()
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    if not config.project_dir.is_dir():
        console.print(f"[red]Error: {config.project_dir} is not a directory.[/red]")
        return 1

    try:
        gateway = GitCommitGateway.open(config.project_dir)
    except VcsError:
        console.print("[red]Error: Not a git repository. Please run this from a git repository.[/red]")
        return 1

    session = AssistantSession(
        config,
        model=ModelClient(config.model, api_key),
        prompt=ConsoleUserPrompt(console),
        commit_gateway=gateway,
        console=console,
    )
    session.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
