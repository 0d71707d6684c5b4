"""
Prompt templates for the main conversation and repair requests.
"""

from __future__ import annotations

SYSTEM_PROMPT = (
    "You are a programming assistant that helps with code development. "
    "You are given the content of various files in a project. Your task is to help "
    "the user understand the codebase and assist with implementing new features. "
    "Always provide concise and relevant code snippets. Before suggesting "
    "modifications, explain your approach briefly."
)

FIX_SYSTEM_PROMPT = (
    "You are a programming assistant that fixes broken code. You are given a file, "
    "the error it produced when run, and optional notes from the user. Reply with "
    "the complete corrected file in a single fenced code block, followed by a short "
    "explanation of the fix."
)


def build_context_message(files_content: str) -> str:
    """Context message sent at session start."""
    return (
        f"Here are the files in my project: \n\n{files_content}\n\n"
        "Please help me understand and enhance this codebase."
    )


def build_refreshed_context_message(files_content: str) -> str:
    """Context message sent after the user reloads project files."""
    return (
        f"Here are the updated files in my project: \n\n{files_content}\n\n"
        "Please continue helping me with this codebase."
    )


def build_fix_prompt(
    filename: str,
    language: str,
    code: str,
    error_text: str,
    comments: str = "",
) -> str:
    """
    Build the user message for a repair request.

    Args:
        filename: File that failed
        language: Fence tag of the code
        code: Current file content
        error_text: Captured stderr from the failed run
        comments: Optional notes from the user

    Returns:
        Prompt text for an isolated fix request
    """
    parts = [
        f"Running `{filename}` failed with this error:",
        f"```\n{error_text.strip()}\n```",
        "Here is the code:",
        f"```{language}\n{code}\n```",
    ]
    if comments.strip():
        parts.append(f"Additional comments from the user:\n{comments.strip()}")
    parts.append("Please fix the code so it runs without this error.")
    return "\n\n".join(parts)


__all__ = [
    "FIX_SYSTEM_PROMPT",
    "SYSTEM_PROMPT",
    "build_context_message",
    "build_fix_prompt",
    "build_refreshed_context_message",
]
