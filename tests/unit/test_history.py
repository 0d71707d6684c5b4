"""Tests for ConversationHistory."""

import pytest
from pydantic import ValidationError

from llm_assistant.config import HistoryConfig
from llm_assistant.history import ConversationHistory, Message


@pytest.fixture
def history() -> ConversationHistory:
    h = ConversationHistory()
    h.seed("system prompt", "project files")
    return h


def add_turns(history: ConversationHistory, count: int) -> None:
    for i in range(count):
        history.append_user(f"question {i}")
        history.append_assistant(f"answer {i}")


class TestMessage:
    def test_message_is_immutable(self):
        """Messages cannot be changed after creation."""
        message = Message(role="user", content="hi")
        with pytest.raises(ValidationError):
            message.content = "changed"

    def test_role_is_validated(self):
        with pytest.raises(ValidationError):
            Message(role="tool", content="x")


class TestConversationHistory:
    """Test suite for ConversationHistory."""

    def test_seed_sets_prefix_and_empty_transcript(self, history):
        snapshot = history.snapshot_for_request()

        assert [m.role for m in snapshot] == ["system", "user"]
        assert snapshot[0].content == "system prompt"
        assert snapshot[1].content == "project files"
        assert history.transcript == ()
        assert len(history) == 2

    def test_unseeded_history_raises(self):
        with pytest.raises(RuntimeError):
            ConversationHistory().snapshot_for_request()
        with pytest.raises(RuntimeError):
            ConversationHistory().append_user("hi")

    def test_append_keeps_order(self, history):
        history.append_user("q1")
        history.append_assistant("a1")
        history.append_user("q2")

        snapshot = history.snapshot_for_request()

        assert [(m.role, m.content) for m in snapshot[2:]] == [
            ("user", "q1"),
            ("assistant", "a1"),
            ("user", "q2"),
        ]

    def test_seed_again_resets_transcript(self, history):
        add_turns(history, 2)
        history.seed("new system", "new context")
        assert history.transcript == ()
        assert history.system_message.content == "new system"

    def test_refresh_replaces_context_and_keeps_last_ten(self, history):
        add_turns(history, 8)  # 16 transcript entries

        history.refresh("updated files")

        snapshot = history.snapshot_for_request()
        assert snapshot[0].content == "system prompt"
        assert snapshot[1].content == "updated files"
        assert len(history.transcript) == 10
        # The newest entries survive in their original order
        assert history.transcript[-1].content == "answer 7"
        assert history.transcript[0].content == "question 3"

    def test_refresh_with_short_transcript_keeps_everything(self, history):
        add_turns(history, 2)
        history.refresh("updated")
        assert len(history.transcript) == 4

    def test_refresh_honours_config(self):
        h = ConversationHistory(HistoryConfig(refresh_keep=2))
        h.seed("s", "c")
        add_turns(h, 3)

        h.refresh("c2")

        assert [m.content for m in h.transcript] == ["question 2", "answer 2"]

    def test_trim_drops_oldest_two(self, history):
        add_turns(history, 6)  # 2 + 12 = 14 messages

        dropped = history.trim_if_over_capacity()

        assert dropped == 2
        assert len(history) == 12
        assert history.transcript[0].content == "question 1"

    def test_trim_within_capacity_is_noop(self, history):
        add_turns(history, 5)  # exactly 12
        assert history.trim_if_over_capacity() == 0
        assert len(history) == 12

    def test_trim_with_explicit_capacity(self, history):
        add_turns(history, 3)

        history.trim_if_over_capacity(capacity=4)

        assert len(history) == 4
        assert [m.content for m in history.transcript] == ["question 2", "answer 2"]

    def test_trim_never_drops_prefix(self, history):
        add_turns(history, 3)

        history.trim_if_over_capacity(capacity=0)

        snapshot = history.snapshot_for_request()
        assert [m.role for m in snapshot] == ["system", "user"]

    def test_prefix_survives_many_cycles(self, history):
        """After any mix of turns, refreshes and trims the prefix stays in place."""
        for cycle in range(30):
            history.append_user(f"q{cycle}")
            if cycle % 3:
                history.append_assistant(f"a{cycle}")
            if cycle % 7 == 0:
                history.refresh(f"context {cycle}")
            history.trim_if_over_capacity()

            snapshot = history.snapshot_for_request()
            assert snapshot[0].role == "system"
            assert snapshot[0].content == "system prompt"
            assert snapshot[1].content.startswith(("project files", "context"))
            assert len(snapshot) <= 12
