"""
AgriSense - Farming assistant.
Proxies questions to the Anthropic Messages API with a short per-user history.
Histories live in a bounded, expiring in-memory store owned by the assistant.
"""
import json
import logging
import time
from collections import OrderedDict
from threading import Lock
from typing import List, Dict, Any, Optional

import anthropic

from config import Config
from crop_database import InvalidInput

logger = logging.getLogger(__name__)

DEFAULT_USER_ID = "default"

SYSTEM_PROMPT = """You are an expert agriculture assistant helping farmers with:
- Crop selection and recommendations
- Disease identification and treatment
- Fertilizer and irrigation advice
- Soil management
- Pest control
- Weather-related farming advice
- Organic farming practices

Provide practical, actionable advice in simple language. Be concise but thorough."""

OFFLINE_GREETING = (
    "Hello! I'm your agriculture assistant. I can help you with crop recommendations, "
    "disease identification, fertilizer advice, and farming tips. How can I assist you today?"
)

# (keywords, answer) checked in order when the model is unavailable
FALLBACK_RESPONSES = [
    (("water", "irrigat"),
     "For most crops, water early morning or late evening. Avoid waterlogging. Use drip irrigation "
     "for best results. Check soil moisture before watering."),
    (("fertil",),
     "Use balanced NPK fertilizer based on soil test. Apply organic compost regularly. Avoid "
     "over-fertilization. Split application is better than single dose."),
    (("pest", "insect"),
     "Use neem oil spray as natural pesticide. Practice crop rotation. Remove infected plants. "
     "Use yellow sticky traps. Chemical pesticides as last resort."),
    (("disease",),
     "Identify the disease first. Remove infected parts immediately. Improve air circulation. "
     "Avoid overhead watering. Use appropriate fungicide if needed."),
    (("soil",),
     "Get soil tested regularly. Add organic matter like compost. Maintain pH 6-7 for most crops. "
     "Practice crop rotation. Use green manure crops."),
    (("organic",),
     "Use compost, vermicompost, and bio-fertilizers. Neem products for pest control. Crop rotation "
     "and mixed cropping. Avoid chemical pesticides and fertilizers."),
]
DEFAULT_FALLBACK = (
    "I can help you with crop recommendations, disease treatment, fertilizer advice, irrigation tips, "
    "and general farming questions. Please try asking your question in a different way."
)


class AssistantUnavailable(RuntimeError):
    """The language model call failed; carries a canned answer for the user."""

    def __init__(self, message: str, fallback_response: str, status_code: int = 503):
        super().__init__(message)
        self.fallback_response = fallback_response
        self.status_code = status_code


def get_fallback_response(message: str) -> str:
    msg = (message or "").lower()
    for keywords, answer in FALLBACK_RESPONSES:
        if any(k in msg for k in keywords):
            return answer
    return DEFAULT_FALLBACK


class ConversationStore:
    """
    Per-user message histories with LRU eviction and idle expiry.

    Args:
        max_users: Histories kept before the least recently used is evicted
        ttl_seconds: Idle time after which a history is dropped
        max_messages: Messages kept per history (oldest dropped first)
    """

    def __init__(self, max_users=1000, ttl_seconds=3600, max_messages=10, clock=time.monotonic):
        self._max_users = max_users
        self._ttl = ttl_seconds
        self._max_messages = max_messages
        self._clock = clock
        self._entries: "OrderedDict[str, tuple]" = OrderedDict()
        self._lock = Lock()

    @property
    def max_messages(self):
        return self._max_messages

    def _expire(self, now):
        expired = [uid for uid, (_, touched) in self._entries.items() if now - touched > self._ttl]
        for uid in expired:
            del self._entries[uid]

    def get(self, user_id: str) -> List[Dict[str, str]]:
        with self._lock:
            self._expire(self._clock())
            entry = self._entries.get(user_id)
            return list(entry[0]) if entry else []

    def append(self, user_id: str, *messages: Dict[str, str]) -> List[Dict[str, str]]:
        """Add messages to a user's history and return the trimmed history."""
        with self._lock:
            now = self._clock()
            self._expire(now)
            entry = self._entries.pop(user_id, None)
            history = list(entry[0]) if entry else []
            history.extend(messages)
            history = history[-self._max_messages:]
            self._entries[user_id] = (history, now)
            while len(self._entries) > self._max_users:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted conversation history for %s", evicted)
            return list(history)

    def clear(self, user_id: str) -> bool:
        with self._lock:
            return self._entries.pop(user_id, None) is not None

    def __len__(self):
        with self._lock:
            self._expire(self._clock())
            return len(self._entries)


def build_system_prompt(context: Optional[Dict[str, Any]] = None) -> str:
    if not context:
        return SYSTEM_PROMPT
    return f"{SYSTEM_PROMPT}\n\nCurrent context: {json.dumps(context)}"


class ChatAssistant:
    """Answers farming questions, remembering recent turns per user."""

    def __init__(
        self,
        store: ConversationStore,
        client: Optional[Any] = None,
        model: str = Config.CHAT_MODEL,
        max_tokens: int = Config.CHAT_MAX_TOKENS,
    ):
        self.store = store
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    @classmethod
    def from_config(cls):
        client = anthropic.Anthropic(api_key=Config.ANTHROPIC_API_KEY) if Config.ANTHROPIC_API_KEY else None
        if client is None:
            logger.warning("ANTHROPIC_API_KEY not set. Chat will return offline responses.")
        store = ConversationStore(
            max_users=Config.CHAT_MAX_USERS,
            ttl_seconds=Config.CHAT_HISTORY_TTL,
            max_messages=Config.CHAT_MAX_MESSAGES,
        )
        return cls(store, client=client)

    def reply(self, message: str, user_id: Optional[str] = None, context: Optional[Dict[str, Any]] = None) -> str:
        if not message or not str(message).strip():
            raise InvalidInput("Message is required")
        user_id = user_id or DEFAULT_USER_ID

        pending = {"role": "user", "content": message}
        messages = (self.store.get(user_id) + [pending])[-self.store.max_messages:]
        # The Messages API requires the conversation to open with a user turn
        while messages[0]["role"] != "user":
            messages.pop(0)

        if self.client is None:
            answer = OFFLINE_GREETING
        else:
            try:
                response = self.client.messages.create(
                    model=self.model,
                    max_tokens=self.max_tokens,
                    system=build_system_prompt(context),
                    messages=messages,
                )
                answer = response.content[0].text
            except anthropic.APIStatusError as e:
                logger.error("Anthropic API error (%s): %s", e.status_code, e)
                raise AssistantUnavailable(str(e), get_fallback_response(message), status_code=e.status_code)
            except anthropic.APIError as e:
                logger.error("Anthropic request failed: %s", e)
                raise AssistantUnavailable(str(e), get_fallback_response(message))

        self.store.append(user_id, pending, {"role": "assistant", "content": answer})
        return answer

    def history(self, user_id: str) -> List[Dict[str, str]]:
        return self.store.get(user_id)

    def clear_history(self, user_id: str) -> bool:
        return self.store.clear(user_id)
