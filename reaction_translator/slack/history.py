"""Thin readers over conversations.replies and conversations.history.

WHY: The locator and the guard read the same two Slack endpoints in
several shapes (thread probe, time window, recent sweep). Wrapping the
calls once keeps parameter spelling and message parsing consistent.

HOW: Each reader awaits the AsyncWebClient method and parses the
``messages`` array into ChatMessage objects.

RULES:
- SlackApiError propagates; callers decide whether a failure is a miss
- fetch_replies reads one page; fetch_thread pages through the whole thread
- Messages without a ts are skipped
- Window bounds are formatted with six decimals, like Slack's own ts
"""

from __future__ import annotations

from typing import Any, List, Optional

from slack_sdk.errors import SlackApiError

from reaction_translator.config import (
    HISTORY_WINDOW_LIMIT,
    HISTORY_WINDOW_S,
    RECENT_HISTORY_LIMIT,
    THREAD_FETCH_LIMIT,
)
from reaction_translator.slack.models import ChatMessage


def _parse_messages(response: Any) -> List[ChatMessage]:
    return [
        ChatMessage.from_dict(raw)
        for raw in (response.get("messages") or [])
        if raw.get("ts")
    ]


def slack_error_code(exc: SlackApiError) -> str:
    """Return the ``error`` field of a failed Web API response."""
    response = exc.response
    if response is None:
        return "unknown_error"
    return response.get("error") or "unknown_error"


async def fetch_replies(
    client: Any,
    channel_id: str,
    thread_ts: str,
    limit: int = THREAD_FETCH_LIMIT,
) -> List[ChatMessage]:
    """Fetch a thread: the parent first, then its replies in order."""
    response = await client.conversations_replies(
        channel=channel_id,
        ts=thread_ts,
        limit=limit,
    )
    return _parse_messages(response)


async def fetch_thread(
    client: Any,
    channel_id: str,
    thread_ts: str,
    page_size: int = THREAD_FETCH_LIMIT,
) -> List[ChatMessage]:
    """Fetch a whole thread, following ``next_cursor`` until the last page.

    RULES:
    - Used wherever a missed reply would break the one-translation rule
    - The parent repeats on every page; each ts is returned once
    """
    messages = []  # type: List[ChatMessage]
    seen = set()
    cursor = None  # type: Optional[str]
    while True:
        kwargs = {"channel": channel_id, "ts": thread_ts, "limit": page_size}
        if cursor:
            kwargs["cursor"] = cursor
        response = await client.conversations_replies(**kwargs)
        for message in _parse_messages(response):
            if message.ts not in seen:
                seen.add(message.ts)
                messages.append(message)

        cursor = (response.get("response_metadata") or {}).get("next_cursor")
        if not response.get("has_more") or not cursor:
            return messages


async def fetch_history_window(
    client: Any,
    channel_id: str,
    ts: str,
    window_s: float = HISTORY_WINDOW_S,
) -> List[ChatMessage]:
    """Fetch top-level channel messages within ±window_s of ``ts``.

    Raises ValueError when ``ts`` is not numeric.
    """
    center = float(ts)
    response = await client.conversations_history(
        channel=channel_id,
        oldest="{:.6f}".format(center - window_s),
        latest="{:.6f}".format(center + window_s),
        inclusive=True,
        limit=HISTORY_WINDOW_LIMIT,
    )
    return _parse_messages(response)


async def fetch_recent_history(
    client: Any,
    channel_id: str,
    latest: Optional[str] = None,
    limit: int = RECENT_HISTORY_LIMIT,
) -> List[ChatMessage]:
    """Fetch the most recent channel messages, newest first."""
    kwargs = {"channel": channel_id, "limit": limit}
    if latest:
        kwargs["latest"] = latest
    response = await client.conversations_history(**kwargs)
    return _parse_messages(response)


def find_by_ts(messages: List[ChatMessage], ts: str) -> Optional[ChatMessage]:
    """Return the message whose ts equals ``ts`` exactly."""
    for message in messages:
        if message.ts == ts:
            return message
    return None
