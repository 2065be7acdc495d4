"""Slack event and message dataclasses.

WHY: Slack hands the bot loosely-shaped dicts: reaction events, message
objects from conversations.history/replies, and auth.test results. Typed
dataclasses make the handful of fields the pipeline relies on explicit
and keep ``.get()`` chains out of the pipeline logic.

HOW: Each dataclass maps to one Slack JSON object and is parsed with a
from_dict/from_event factory. Nothing here is persisted.

RULES:
- ts strings are kept verbatim; they are ids, not just numbers
- thread_ts is None for messages that are not part of a thread
- A thread parent has thread_ts == ts
- BotIdentity fields are None when auth.test has not been run
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ReactionEvent:
    """A reaction_added / reaction_removed event.

    RULES:
    - item_type is "message" for message reactions ("file" etc. otherwise)
    - is_complete is False when the channel or timestamp is missing
    """

    emoji_name: str
    channel_id: str
    item_ts: str
    item_type: str = "message"
    user: Optional[str] = None

    @classmethod
    def from_event(cls, event: Dict[str, Any]) -> ReactionEvent:
        item = event.get("item") or {}
        return cls(
            emoji_name=event.get("reaction", ""),
            channel_id=item.get("channel", ""),
            item_ts=item.get("ts", ""),
            item_type=item.get("type", "message"),
            user=event.get("user"),
        )

    @property
    def is_complete(self) -> bool:
        return bool(self.channel_id and self.item_ts)


@dataclass(frozen=True)
class ChatMessage:
    """A message object from conversations.history or conversations.replies."""

    ts: str
    text: str = ""
    thread_ts: Optional[str] = None
    user: Optional[str] = None
    bot_id: Optional[str] = None
    subtype: Optional[str] = None
    reply_count: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ChatMessage:
        return cls(
            ts=data["ts"],
            text=data.get("text") or "",
            thread_ts=data.get("thread_ts"),
            user=data.get("user"),
            bot_id=data.get("bot_id"),
            subtype=data.get("subtype"),
            reply_count=data.get("reply_count") or 0,
        )

    @property
    def is_top_level(self) -> bool:
        """True for messages posted in the channel itself (incl. thread parents)."""
        return self.thread_ts is None or self.thread_ts == self.ts

    @property
    def owning_thread_ts(self) -> str:
        """The thread this message belongs to, or its own ts when unthreaded."""
        return self.thread_ts or self.ts


@dataclass(frozen=True)
class BotIdentity:
    """This app's bot user, as reported by auth.test."""

    user_id: Optional[str] = None
    bot_id: Optional[str] = None

    @property
    def is_known(self) -> bool:
        return bool(self.user_id or self.bot_id)

    def authored(self, message: ChatMessage) -> bool:
        """Return True if this bot posted ``message``.

        RULES:
        - Matches on user id or bot id when the identity is known
        - Unknown identity falls back to "any bot-looking message":
          has a bot_id, is subtype bot_message, or has no user
        """
        if self.is_known:
            if self.user_id and message.user == self.user_id:
                return True
            return bool(self.bot_id and message.bot_id == self.bot_id)
        return bool(message.bot_id) or message.subtype == "bot_message" or not message.user


@dataclass(frozen=True)
class LocatedMessage:
    """Result of the message locator.

    RULES:
    - thread_ts is where translations are posted and searched
    - strategy names the locator strategy that found the message
    """

    message: ChatMessage
    thread_ts: str
    strategy: str
