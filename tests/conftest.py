"""Shared test fixtures for the reaction_translator test suite.

WHY: The locator, guard, relay and Bolt listeners all read and write a
Slack conversation. An in-memory conversation that answers the same Web
API methods lets every module be tested against one realistic channel
without network access.

HOW: FakeSlackClient stores raw message dicts per channel and implements
the AsyncWebClient coroutines the bot uses. Every call is recorded in
``calls`` so tests can assert on ordering and on what was (not) written.
FakeTranslator stands in for DeepLClient as an async context manager.

RULES:
- Messages are plain Slack-shaped dicts (ts, text, thread_ts, user, bot_id)
- Errors are raised as real slack_sdk SlackApiError instances
- Translations posted by the fake are authored by BOT_USER_ID / BOT_ID
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import pytest
from slack_sdk.errors import SlackApiError

from reaction_translator.deepl.models import Translation
from reaction_translator.slack.models import BotIdentity

CHANNEL = "C0TRANSL8"
BOT_USER_ID = "UBOT0001"
BOT_ID = "BBOT0001"
HUMAN = "UHUMAN01"


def slack_error(code: str) -> SlackApiError:
    """Build the SlackApiError AsyncWebClient raises for ``ok: false``."""
    return SlackApiError("The request to the Slack API failed.", {"ok": False, "error": code})


# ---------------------------------------------------------------------------
# Fake Slack Web API
# ---------------------------------------------------------------------------


class FakeSlackClient:
    """In-memory stand-in for slack_sdk's AsyncWebClient."""

    def __init__(self) -> None:
        self.channels = {}  # type: Dict[str, List[Dict[str, Any]]]
        self.calls = []  # type: List[Tuple[str, Dict[str, Any]]]
        self.failures = {}  # type: Dict[str, Tuple[str, int]]
        self.channel_info = {}  # type: Dict[str, Dict[str, Any]]
        self.members = {}  # type: Dict[str, List[str]]
        self._next_ts = 1700000900.0

    # -- setup helpers ---------------------------------------------------

    def add_message(
        self,
        ts: str,
        text: str,
        thread_ts: Optional[str] = None,
        user: Optional[str] = HUMAN,
        bot_id: Optional[str] = None,
        channel: str = CHANNEL,
    ) -> Dict[str, Any]:
        message = {"type": "message", "ts": ts, "text": text}  # type: Dict[str, Any]
        if thread_ts:
            message["thread_ts"] = thread_ts
        if user:
            message["user"] = user
        if bot_id:
            message["bot_id"] = bot_id
        self.channels.setdefault(channel, []).append(message)
        return message

    def add_long_thread(self, parent_ts: str, size: int, translation_at: int, text: str = "(JA) x") -> str:
        """Add a thread of ``size`` human replies; reply ``translation_at`` is the bot's.

        Returns the ts of the bot reply.
        """
        self.add_message(parent_ts, "Hello", thread_ts=parent_ts)
        base = float(parent_ts)
        bot_ts = ""
        for index in range(size):
            ts = "{:.6f}".format(base + 1 + index)
            if index == translation_at:
                self.add_message(ts, text, thread_ts=parent_ts, user=BOT_USER_ID, bot_id=BOT_ID)
                bot_ts = ts
            else:
                self.add_message(ts, "reply {}".format(index), thread_ts=parent_ts)
        return bot_ts

    def fail(self, method: str, code: str, after: int = 0) -> None:
        """Make calls to ``method`` raise SlackApiError(code).

        The first ``after`` calls still succeed.
        """
        self.failures[method] = (code, after)

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    def messages_in(self, channel: str = CHANNEL) -> List[Dict[str, Any]]:
        return list(self.channels.get(channel, []))

    def thread(self, thread_ts: str, channel: str = CHANNEL) -> List[Dict[str, Any]]:
        return [m for m in self.messages_in(channel) if m.get("thread_ts") == thread_ts and m["ts"] != thread_ts]

    def _record(self, method: str, kwargs: Dict[str, Any]) -> None:
        self.calls.append((method, kwargs))
        if method in self.failures:
            code, remaining = self.failures[method]
            if remaining > 0:
                self.failures[method] = (code, remaining - 1)
            else:
                raise slack_error(code)

    # -- Web API methods -------------------------------------------------

    async def conversations_replies(self, **kwargs: Any) -> Dict[str, Any]:
        self._record("conversations_replies", kwargs)
        messages = self.messages_in(kwargs["channel"])
        ts = kwargs["ts"]
        root = next((m for m in messages if m["ts"] == ts), None)
        if root is None:
            raise slack_error("thread_not_found")
        if root.get("thread_ts") not in (None, ts):
            return {"ok": True, "messages": [root]}
        replies = sorted(
            (m for m in messages if m.get("thread_ts") == ts and m["ts"] != ts),
            key=lambda m: float(m["ts"]),
        )
        # Cursor is the offset of the next page, like an opaque Slack cursor
        full = [root] + replies
        offset = int(kwargs.get("cursor") or 0)
        limit = kwargs.get("limit", 1000)
        has_more = offset + limit < len(full)
        return {
            "ok": True,
            "messages": full[offset:offset + limit],
            "has_more": has_more,
            "response_metadata": {"next_cursor": str(offset + limit) if has_more else ""},
        }

    async def conversations_history(self, **kwargs: Any) -> Dict[str, Any]:
        self._record("conversations_history", kwargs)
        inclusive = kwargs.get("inclusive", False)
        oldest = float(kwargs["oldest"]) if kwargs.get("oldest") else None
        latest = float(kwargs["latest"]) if kwargs.get("latest") else None

        selected = []
        for message in self.messages_in(kwargs["channel"]):
            if message.get("thread_ts") not in (None, message["ts"]):
                continue
            ts = float(message["ts"])
            if oldest is not None and (ts < oldest or (ts == oldest and not inclusive)):
                continue
            if latest is not None and (ts > latest or (ts == latest and not inclusive)):
                continue
            selected.append(message)
        selected.sort(key=lambda m: float(m["ts"]), reverse=True)
        return {"ok": True, "messages": selected[: kwargs.get("limit", 100)]}

    async def chat_postMessage(self, **kwargs: Any) -> Dict[str, Any]:
        self._record("chat_postMessage", kwargs)
        self._next_ts += 1
        ts = "{:.6f}".format(self._next_ts)
        thread_ts = kwargs.get("thread_ts")
        for message in self.channels.get(kwargs["channel"], []):
            if thread_ts and message["ts"] == thread_ts:
                message["thread_ts"] = thread_ts
                message["reply_count"] = message.get("reply_count", 0) + 1
        self.add_message(
            ts,
            kwargs["text"],
            thread_ts=kwargs.get("thread_ts"),
            user=BOT_USER_ID,
            bot_id=BOT_ID,
            channel=kwargs["channel"],
        )
        return {"ok": True, "channel": kwargs["channel"], "ts": ts}

    async def chat_delete(self, **kwargs: Any) -> Dict[str, Any]:
        self._record("chat_delete", kwargs)
        messages = self.channels.get(kwargs["channel"], [])
        for index, message in enumerate(messages):
            if message["ts"] == kwargs["ts"]:
                del messages[index]
                return {"ok": True, "channel": kwargs["channel"], "ts": kwargs["ts"]}
        raise slack_error("message_not_found")

    async def conversations_info(self, **kwargs: Any) -> Dict[str, Any]:
        self._record("conversations_info", kwargs)
        if kwargs["channel"] not in self.channel_info:
            raise slack_error("channel_not_found")
        return {"ok": True, "channel": self.channel_info[kwargs["channel"]]}

    async def conversations_members(self, **kwargs: Any) -> Dict[str, Any]:
        self._record("conversations_members", kwargs)
        return {"ok": True, "members": self.members.get(kwargs["channel"], [])}

    @property
    def writes(self) -> List[Tuple[str, Dict[str, Any]]]:
        return [(name, kw) for name, kw in self.calls if name.startswith("chat_")]


# ---------------------------------------------------------------------------
# Fake translator
# ---------------------------------------------------------------------------


class FakeTranslator:
    """Async context manager with DeepLClient's translate() signature.

    RULES:
    - ``result`` is returned from translate(); a callable is applied to
      the (text, target_lang) pair
    - ``error`` is raised from translate() when set
    """

    def __init__(self, result: Any = None, error: Optional[Exception] = None) -> None:
        self.result = result
        self.error = error
        self.calls = []  # type: List[Dict[str, Any]]
        self.entered = 0

    def __call__(self) -> FakeTranslator:
        return self

    async def __aenter__(self) -> FakeTranslator:
        self.entered += 1
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        return None

    async def translate(self, text: str, target_lang: str, ignore_tags: Any = None) -> List[Translation]:
        self.calls.append({"text": text, "target_lang": target_lang, "ignore_tags": ignore_tags})
        if self.error is not None:
            raise self.error
        if self.result is None:
            return [Translation(text="[{}] {}".format(target_lang, text))]
        if callable(self.result):
            return self.result(text, target_lang)
        return self.result


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def slack_client() -> FakeSlackClient:
    return FakeSlackClient()


@pytest.fixture
def translator() -> FakeTranslator:
    return FakeTranslator()


@pytest.fixture
def identity() -> BotIdentity:
    return BotIdentity(user_id=BOT_USER_ID, bot_id=BOT_ID)
