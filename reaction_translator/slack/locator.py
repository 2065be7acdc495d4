"""Message locator: resolve a reaction's channel + ts to a message and thread.

WHY: Slack has no "get message by id" call that works the same for
unthreaded messages, thread parents and thread replies. A reaction event
only carries the channel and the message ts, but the relay needs the
message text and the thread to reply in.

HOW: Three strategies are tried in order, cheapest first. Each one is a
coroutine returning a LocatedMessage or None:

  thread_probe  : conversations.replies rooted at the ts itself
  history_window: conversations.history within ±10s of the ts, exact
                   match first, else the closest message within 1s
  thread_sweep  : the most recent top-level messages, fetching each
                   thread until one contains the ts

RULES:
- Stop at the first strategy that finds the message
- A SlackApiError inside a strategy is logged and counts as a miss
- The sweep fetches at most ``sweep_limit`` threads
- Nothing is cached; every call re-reads Slack
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List, Optional, Tuple

from slack_sdk.errors import SlackApiError

from reaction_translator.config import LOCATOR_SWEEP_LIMIT, TIMESTAMP_TOLERANCE_S
from reaction_translator.slack.history import (
    fetch_history_window,
    fetch_recent_history,
    fetch_replies,
    find_by_ts,
    slack_error_code,
)
from reaction_translator.slack.models import ChatMessage, LocatedMessage

logger = logging.getLogger(__name__)

Strategy = Callable[[str, str], Awaitable[Optional[LocatedMessage]]]


def closest_within(
    messages: List[ChatMessage], ts: str, tolerance_s: float = TIMESTAMP_TOLERANCE_S
) -> Optional[ChatMessage]:
    """Return the message nearest to ``ts`` if it is closer than tolerance_s."""
    target = float(ts)
    best = None  # type: Optional[ChatMessage]
    best_diff = tolerance_s
    for message in messages:
        try:
            diff = abs(float(message.ts) - target)
        except ValueError:
            continue
        if diff < best_diff:
            best, best_diff = message, diff
    return best


class MessageLocator:
    """Resolves reaction targets using an AsyncWebClient-like client."""

    def __init__(self, client: Any, sweep_limit: int = LOCATOR_SWEEP_LIMIT) -> None:
        self._client = client
        self._sweep_limit = sweep_limit

    @property
    def strategies(self) -> List[Tuple[str, Strategy]]:
        return [
            ("thread_probe", self.probe_thread),
            ("history_window", self.scan_history_window),
            ("thread_sweep", self.sweep_threads),
        ]

    async def locate(self, channel_id: str, ts: str) -> Optional[LocatedMessage]:
        """Return the message at ``ts`` and the thread it belongs to."""
        for name, strategy in self.strategies:
            located = await strategy(channel_id, ts)
            if located is not None:
                logger.info(
                    "Located message %s in %s via %s (thread %s)",
                    ts, channel_id, name, located.thread_ts,
                )
                return located
            logger.debug("Strategy %s did not find message %s", name, ts)

        logger.warning(
            "Message %s in %s not found after all strategies "
            "(deleted, too old, or in a conversation the bot cannot read)",
            ts, channel_id,
        )
        return None

    # ------------------------------------------------------------------
    # Strategy 1: thread probe
    # ------------------------------------------------------------------

    async def probe_thread(self, channel_id: str, ts: str) -> Optional[LocatedMessage]:
        try:
            messages = await fetch_replies(self._client, channel_id, ts)
        except SlackApiError as exc:
            logger.info("conversations.replies for %s failed: %s", ts, slack_error_code(exc))
            return None

        if not messages:
            return None
        if messages[0].ts == ts:
            return LocatedMessage(messages[0], messages[0].owning_thread_ts, "thread_probe")

        reply = find_by_ts(messages, ts)
        if reply is None:
            return None
        return LocatedMessage(reply, reply.thread_ts or ts, "thread_probe")

    # ------------------------------------------------------------------
    # Strategy 2: windowed history scan
    # ------------------------------------------------------------------

    async def scan_history_window(self, channel_id: str, ts: str) -> Optional[LocatedMessage]:
        try:
            messages = await fetch_history_window(self._client, channel_id, ts)
        except SlackApiError as exc:
            logger.error("conversations.history around %s failed: %s", ts, slack_error_code(exc))
            return None
        except ValueError:
            logger.error("Cannot scan history around non-numeric ts %r", ts)
            return None

        found = find_by_ts(messages, ts)
        if found is None:
            found = closest_within(messages, ts)
            if found is None:
                logger.debug(
                    "No message near %s; timestamps in window: %s",
                    ts, ", ".join(m.ts for m in messages[:10]),
                )
                return None
            logger.info("Using close timestamp match %s for %s", found.ts, ts)

        return LocatedMessage(found, found.owning_thread_ts, "history_window")

    # ------------------------------------------------------------------
    # Strategy 3: bounded thread sweep
    # ------------------------------------------------------------------

    async def sweep_threads(self, channel_id: str, ts: str) -> Optional[LocatedMessage]:
        try:
            recent = await fetch_recent_history(self._client, channel_id, latest=ts)
        except SlackApiError as exc:
            logger.error("conversations.history before %s failed: %s", ts, slack_error_code(exc))
            return None

        parents = [m for m in recent if m.is_top_level][: self._sweep_limit]
        for parent in parents:
            try:
                thread = await fetch_replies(self._client, channel_id, parent.ts)
            except SlackApiError as exc:
                logger.debug("Skipping thread %s: %s", parent.ts, slack_error_code(exc))
                continue

            reply = find_by_ts(thread, ts)
            if reply is not None:
                return LocatedMessage(reply, reply.thread_ts or parent.ts, "thread_sweep")
        return None
