"""Tests for chatbot.py: conversation store, assistant replies and fallbacks."""

from unittest.mock import MagicMock

import anthropic
import httpx
import pytest

from chatbot import (
    DEFAULT_FALLBACK,
    OFFLINE_GREETING,
    SYSTEM_PROMPT,
    AssistantUnavailable,
    ChatAssistant,
    ConversationStore,
    build_system_prompt,
    get_fallback_response,
)
from crop_database import InvalidInput


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _mock_client(text="Plant wheat in November."):
    client = MagicMock()
    block = MagicMock()
    block.text = text
    client.messages.create.return_value.content = [block]
    return client


# ── Conversation store ──

class TestConversationStore:
    def test_append_and_get(self):
        store = ConversationStore()
        store.append("u1", {"role": "user", "content": "hi"})
        assert store.get("u1") == [{"role": "user", "content": "hi"}]
        assert store.get("u2") == []

    def test_keeps_last_messages(self):
        store = ConversationStore(max_messages=4)
        for i in range(6):
            store.append("u1", {"role": "user", "content": str(i)})
        assert [m["content"] for m in store.get("u1")] == ["2", "3", "4", "5"]

    def test_idle_history_expires(self):
        clock = FakeClock()
        store = ConversationStore(ttl_seconds=60, clock=clock)
        store.append("u1", {"role": "user", "content": "hi"})
        clock.now = 59
        assert store.get("u1")
        clock.now = 200
        assert store.get("u1") == []
        assert len(store) == 0

    def test_least_recently_used_evicted(self):
        store = ConversationStore(max_users=2)
        store.append("a", {"role": "user", "content": "1"})
        store.append("b", {"role": "user", "content": "2"})
        store.append("a", {"role": "user", "content": "3"})
        store.append("c", {"role": "user", "content": "4"})
        assert store.get("b") == []
        assert store.get("a")
        assert store.get("c")

    def test_clear(self):
        store = ConversationStore()
        store.append("u1", {"role": "user", "content": "hi"})
        assert store.clear("u1") is True
        assert store.clear("u1") is False
        assert store.get("u1") == []

    def test_get_returns_copy(self):
        store = ConversationStore()
        store.append("u1", {"role": "user", "content": "hi"})
        store.get("u1").append({"role": "user", "content": "sneaky"})
        assert len(store.get("u1")) == 1


# ── Assistant ──

class TestChatAssistant:
    def test_offline_reply(self):
        assistant = ChatAssistant(ConversationStore())
        assert assistant.reply("Hello") == OFFLINE_GREETING
        assert [m["role"] for m in assistant.history("default")] == ["user", "assistant"]

    @pytest.mark.parametrize("message", [None, "", "   "])
    def test_empty_message_rejected(self, message):
        with pytest.raises(InvalidInput):
            ChatAssistant(ConversationStore()).reply(message)

    def test_calls_messages_api(self):
        client = _mock_client()
        assistant = ChatAssistant(ConversationStore(), client=client, model="test-model", max_tokens=256)
        answer = assistant.reply("When to sow wheat?", user_id="farmer1", context={"crop": "wheat"})
        assert answer == "Plant wheat in November."
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["max_tokens"] == 256
        assert kwargs["messages"] == [{"role": "user", "content": "When to sow wheat?"}]
        assert '"crop": "wheat"' in kwargs["system"]
        assert assistant.history("farmer1")[-1] == {"role": "assistant", "content": "Plant wheat in November."}

    def test_history_sent_and_starts_with_user(self):
        client = _mock_client("ok")
        assistant = ChatAssistant(ConversationStore(max_messages=10), client=client)
        for i in range(7):
            assistant.reply(f"question {i}", user_id="u")
        sent = client.messages.create.call_args.kwargs["messages"]
        assert len(sent) <= 10
        assert sent[0]["role"] == "user"
        assert sent[-1] == {"role": "user", "content": "question 6"}
        assert len(assistant.history("u")) == 10

    def test_users_have_separate_histories(self):
        assistant = ChatAssistant(ConversationStore(), client=_mock_client())
        assistant.reply("a", user_id="one")
        assert assistant.history("two") == []
        assert assistant.clear_history("one") is True
        assert assistant.history("one") == []

    def test_api_status_error_raises_with_fallback(self):
        client = MagicMock()
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        client.messages.create.side_effect = anthropic.RateLimitError(
            "rate limited", response=httpx.Response(429, request=request), body=None,
        )
        assistant = ChatAssistant(ConversationStore(), client=client)
        with pytest.raises(AssistantUnavailable) as exc_info:
            assistant.reply("How often should I irrigate?", user_id="u")
        assert exc_info.value.status_code == 429
        assert "drip irrigation" in exc_info.value.fallback_response
        assert assistant.history("u") == []

    def test_connection_error_raises_503(self):
        client = MagicMock()
        client.messages.create.side_effect = anthropic.APIConnectionError(
            request=httpx.Request("POST", "https://api.anthropic.com/v1/messages"),
        )
        with pytest.raises(AssistantUnavailable) as exc_info:
            ChatAssistant(ConversationStore(), client=client).reply("pest problem")
        assert exc_info.value.status_code == 503
        assert "neem" in exc_info.value.fallback_response.lower()


# ── Prompts & fallbacks ──

class TestFallbacks:
    @pytest.mark.parametrize("message,fragment", [
        ("When should I water tomatoes?", "drip irrigation"),
        ("Best fertilizer for rice", "NPK"),
        ("Insects on my cotton", "neem oil"),
        ("Leaf disease on wheat", "fungicide"),
        ("How to improve soil", "pH 6-7"),
        ("Organic methods", "vermicompost"),
    ])
    def test_keyword_fallbacks(self, message, fragment):
        assert fragment in get_fallback_response(message)

    def test_default_fallback(self):
        assert get_fallback_response("hello there") == DEFAULT_FALLBACK
        assert get_fallback_response(None) == DEFAULT_FALLBACK

    def test_system_prompt_without_context(self):
        assert build_system_prompt(None) == SYSTEM_PROMPT
