"""LLM Project Assistant.

Sends a local source tree to a chat model as context and relays an
interactive conversation, optionally writing the model's code to disk,
running it, repairing it and committing the result.
"""

__version__ = "0.1.0"

# Conversation core
from .history import ConversationHistory, Message
from .context_builder import ContextStats, FileContextEntry, ProjectContextBuilder
from .response_parser import CodeBlock, CodeBlockExtractor
from .tokens import estimate_tokens

# Artifacts
from .pipeline import (
    ArtifactOutcome,
    ArtifactWriteResult,
    CodeArtifactPipeline,
    CommitState,
    RunState,
    WriteState,
)
from .runner import ExecutionError, ExecutionResult, SubprocessRunner
from .vcs import GitCommitGateway, VcsError

# Model access
from .api_client import ApiError, ModelClient, WireFormat, from_wire_response, to_wire_format

# Session & Config
from .session import AssistantSession
from .config import AssistantConfig, ConfigError

__all__ = [
    # Conversation core
    "ConversationHistory",
    "Message",
    "ContextStats",
    "FileContextEntry",
    "ProjectContextBuilder",
    "CodeBlock",
    "CodeBlockExtractor",
    "estimate_tokens",
    # Artifacts
    "ArtifactOutcome",
    "ArtifactWriteResult",
    "CodeArtifactPipeline",
    "CommitState",
    "RunState",
    "WriteState",
    "ExecutionError",
    "ExecutionResult",
    "SubprocessRunner",
    "GitCommitGateway",
    "VcsError",
    # Model access
    "ApiError",
    "ModelClient",
    "WireFormat",
    "from_wire_response",
    "to_wire_format",
    # Session & Config
    "AssistantSession",
    "AssistantConfig",
    "ConfigError",
]
