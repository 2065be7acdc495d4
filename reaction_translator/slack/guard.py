"""Translation guard: find this bot's earlier translations in a thread.

WHY: The thread is the only record of what has been translated. Before
posting, the relay must know whether a "(XX)" reply already exists so
repeated reactions stay idempotent. On reaction removal it must find the
one reply to delete, which may live in a thread other than the one the
locator reported.

HOW: A translation is recognised by its "(XX) " prefix. The add path
reads the thread once. The delete path searches three places in order:
the thread's replies, recent channel history in the same thread, then
a bounded sweep of threads that contain the reacted message.

RULES:
- Any reply starting with the prefix counts as a duplicate on add
- Only replies authored by this bot are eligible for deletion
- thread_not_found on add means "no replies yet"; other errors propagate
- Errors on the delete path are logged and treated as a miss
- Threads are read to the last page; long threads are never truncated
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from slack_sdk.errors import SlackApiError

from reaction_translator.config import DELETE_SWEEP_LIMIT
from reaction_translator.core.classifier import translation_prefix
from reaction_translator.slack.history import (
    fetch_recent_history,
    fetch_thread,
    find_by_ts,
    slack_error_code,
)
from reaction_translator.slack.models import BotIdentity, ChatMessage, LocatedMessage

logger = logging.getLogger(__name__)


def is_translation(message: ChatMessage, language: str) -> bool:
    """Return True if ``message`` is a translation into ``language``."""
    return message.text.startswith(translation_prefix(language))


def first_translation(
    messages: List[ChatMessage],
    language: str,
    identity: Optional[BotIdentity] = None,
) -> Optional[ChatMessage]:
    """Return the first translation reply, optionally limited to one author."""
    for message in messages:
        if not is_translation(message, language):
            continue
        if identity is None or identity.authored(message):
            return message
    return None


async def translation_exists(
    client: Any, channel_id: str, thread_ts: str, language: str
) -> bool:
    """Return True if the thread already holds a ``language`` translation.

    Raises SlackApiError for anything but thread_not_found, so the
    caller can abort instead of risking a duplicate post.
    """
    try:
        messages = await fetch_thread(client, channel_id, thread_ts)
    except SlackApiError as exc:
        if slack_error_code(exc) == "thread_not_found":
            return False
        raise

    found = first_translation(messages, language)
    if found is not None:
        logger.info(
            "Translation %s already present in thread %s (reply %s)",
            translation_prefix(language), thread_ts, found.ts,
        )
    return found is not None


async def find_translation_to_delete(
    client: Any,
    channel_id: str,
    located: LocatedMessage,
    target_ts: str,
    language: str,
    identity: BotIdentity,
    sweep_limit: int = DELETE_SWEEP_LIMIT,
) -> Optional[ChatMessage]:
    """Find this bot's ``language`` translation for the reacted message.

    Args:
        client: AsyncWebClient used to read the conversation.
        channel_id: Conversation holding the reacted message.
        located: Locator result for the reacted message.
        target_ts: ts of the reacted message.
        language: Translation language to look for.
        identity: This bot; only its replies are returned.
        sweep_limit: Maximum threads read in the final sweep.

    Returns:
        The reply to delete, or None if no eligible reply was found.
    """
    thread_ts = located.thread_ts

    # Step 1: the thread the locator reported
    try:
        replies = await fetch_thread(client, channel_id, thread_ts)
    except SlackApiError as exc:
        logger.info("Thread %s unreadable: %s", thread_ts, slack_error_code(exc))
        replies = []
    found = first_translation(replies, language, identity)
    if found is not None:
        return found

    # Step 2: recent channel history, same thread only
    try:
        recent = await fetch_recent_history(client, channel_id, latest=target_ts)
    except SlackApiError as exc:
        logger.error("conversations.history before %s failed: %s", target_ts, slack_error_code(exc))
        recent = []
    same_thread = [m for m in recent if m.thread_ts == thread_ts and m.ts != thread_ts]
    found = first_translation(same_thread, language, identity)
    if found is not None:
        return found

    # Step 3: threads that contain the reacted message
    parents = [m for m in recent if m.is_top_level and m.ts != thread_ts][:sweep_limit]
    for parent in parents:
        try:
            thread = await fetch_thread(client, channel_id, parent.ts)
        except SlackApiError as exc:
            logger.debug("Skipping thread %s: %s", parent.ts, slack_error_code(exc))
            continue
        if find_by_ts(thread, target_ts) is None:
            continue
        found = first_translation(thread, language, identity)
        if found is not None:
            logger.info("Found translation %s in thread %s", found.ts, parent.ts)
            return found

    logger.info(
        "No %s translation by this bot found for %s in %s",
        translation_prefix(language), target_ts, channel_id,
    )
    return None
