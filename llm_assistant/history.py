"""
Conversation history with a fixed prefix and a bounded transcript.

Every request to the model is ``[system, context, *transcript]``. The
system and context messages always hold positions 0 and 1; the transcript
only ever shrinks from its oldest end.
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel, ConfigDict

from .config import HistoryConfig

logger = logging.getLogger(__name__)

Role = Literal["system", "user", "assistant"]

# system + context
FIXED_PREFIX = 2


class Message(BaseModel):
    """A single chat message. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class ConversationHistory:
    """
    Ordered message log sent to the model on every turn.

    Usage:
        history = ConversationHistory(config.history)
        history.seed(SYSTEM_PROMPT, context_text)
        history.append_user("Add a CLI flag")
        reply = client.complete(history.snapshot_for_request())
        history.append_assistant(reply)
        history.trim_if_over_capacity()
    """

    def __init__(self, config: HistoryConfig | None = None):
        self.config = config or HistoryConfig()
        self._system: Message | None = None
        self._context: Message | None = None
        self._transcript: list[Message] = []

    @property
    def system_message(self) -> Message:
        self._require_seeded()
        return self._system

    @property
    def context_message(self) -> Message:
        self._require_seeded()
        return self._context

    @property
    def transcript(self) -> tuple[Message, ...]:
        return tuple(self._transcript)

    def __len__(self) -> int:
        """Total message count including the fixed prefix."""
        return FIXED_PREFIX + len(self._transcript)

    def _require_seeded(self) -> None:
        if self._system is None or self._context is None:
            raise RuntimeError("ConversationHistory used before seed()")

    def seed(self, system_prompt: str, context_text: str) -> None:
        """Set the system and context messages and start an empty transcript."""
        self._system = Message(role="system", content=system_prompt)
        self._context = Message(role="user", content=context_text)
        self._transcript = []

    def append_user(self, text: str) -> None:
        self._require_seeded()
        self._transcript.append(Message(role="user", content=text))

    def append_assistant(self, text: str) -> None:
        self._require_seeded()
        self._transcript.append(Message(role="assistant", content=text))

    def refresh(self, context_text: str, keep: int | None = None) -> None:
        """
        Replace the context message and keep only the most recent turns.

        Args:
            context_text: New context message content
            keep: Transcript entries to retain (defaults to config.refresh_keep)
        """
        self._require_seeded()
        keep = self.config.refresh_keep if keep is None else keep

        self._context = Message(role="user", content=context_text)
        dropped = max(0, len(self._transcript) - keep)
        self._transcript = self._transcript[dropped:]
        if dropped:
            logger.info(f"Refresh dropped {dropped} older transcript messages")

    def snapshot_for_request(self) -> list[Message]:
        """Return ``[system, context, *transcript]`` for the next model call."""
        self._require_seeded()
        return [self._system, self._context, *self._transcript]

    def trim_if_over_capacity(self, capacity: int | None = None) -> int:
        """
        Drop the oldest transcript entries while the total exceeds capacity.

        Entries go in steps of ``config.trim_step``. The fixed prefix is
        never dropped, so a capacity below 2 empties the transcript.

        Returns:
            Number of transcript messages dropped
        """
        capacity = self.config.capacity if capacity is None else capacity
        step = max(1, self.config.trim_step)

        before = len(self._transcript)
        while len(self) > capacity and self._transcript:
            del self._transcript[:step]

        dropped = before - len(self._transcript)
        if dropped:
            logger.debug(f"Trimmed history to {len(self)} messages (capacity {capacity})")
        return dropped


__all__ = ["ConversationHistory", "FIXED_PREFIX", "Message", "Role"]
