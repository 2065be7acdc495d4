"""Translation relay: the reaction_added / reaction_removed pipelines.

WHY: This is where the stages meet. A reaction event is classified,
its message located, the thread checked for an existing translation,
the text transcoded and translated, and the reply posted; or, on
removal, the bot's earlier reply found and deleted.

HOW: TranslationRelay holds a translator factory and the search limits.
Each pipeline is one coroutine that walks the stages in order and
returns a RelayOutcome naming where it stopped. The Slack client is
passed per call because Bolt hands each listener its own client.

RULES:
- Every early exit is logged and returned as an outcome, never raised
- No chat write happens unless every earlier stage succeeded
- The duplicate check runs before DeepL is called
- Nothing is retried; concurrent adds on one message may both post
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable, Optional, Tuple

import httpx
from slack_sdk.errors import SlackApiError

from reaction_translator.config import DELETE_SWEEP_LIMIT, LOCATOR_SWEEP_LIMIT
from reaction_translator.core.classifier import classify_reaction
from reaction_translator.core.transcoder import (
    PASSTHROUGH_TAGS,
    decode_from_translation,
    encode_for_translation,
)
from reaction_translator.deepl.client import DeepLAPIError, DeepLClient
from reaction_translator.slack.guard import find_translation_to_delete, translation_exists
from reaction_translator.slack.history import slack_error_code
from reaction_translator.slack.locator import MessageLocator
from reaction_translator.slack.messages import DELETE_ERROR_HINTS, format_translation_reply
from reaction_translator.slack.models import BotIdentity, ReactionEvent

logger = logging.getLogger(__name__)


class RelayOutcome(str, enum.Enum):
    """Where a relay run ended."""

    POSTED = "posted"
    DELETED = "deleted"
    UNMAPPED = "unmapped"
    INVALID_EVENT = "invalid_event"
    NOT_FOUND = "not_found"
    EMPTY_TEXT = "empty_text"
    DUPLICATE = "duplicate"
    LOOKUP_FAILED = "lookup_failed"
    TRANSLATION_FAILED = "translation_failed"
    POST_FAILED = "post_failed"
    TRANSLATION_MISSING = "translation_missing"
    DELETE_FAILED = "delete_failed"


class TranslationRelay:
    """Runs the translate-on-react and delete-on-unreact pipelines.

    RULES:
    - translator_factory returns a fresh DeepLClient-like async context
      manager for every translation
    - The relay keeps no per-message state between calls
    """

    def __init__(
        self,
        translator_factory: Callable[[], DeepLClient],
        locator_sweep_limit: int = LOCATOR_SWEEP_LIMIT,
        delete_sweep_limit: int = DELETE_SWEEP_LIMIT,
    ) -> None:
        self._translator_factory = translator_factory
        self._locator_sweep_limit = locator_sweep_limit
        self._delete_sweep_limit = delete_sweep_limit

    def _classify(
        self, event: ReactionEvent
    ) -> Tuple[Optional[str], Optional[RelayOutcome]]:
        if not event.is_complete:
            logger.error(
                "Reaction event missing channel or ts (channel=%r, ts=%r)",
                event.channel_id, event.item_ts,
            )
            return None, RelayOutcome.INVALID_EVENT

        language = classify_reaction(event.emoji_name)
        if language is None:
            logger.info("Reaction :%s: is not a language flag, ignoring", event.emoji_name)
            return None, RelayOutcome.UNMAPPED
        return language, None

    async def reaction_added(
        self, event: ReactionEvent, client: Any, identity: BotIdentity
    ) -> RelayOutcome:
        """Translate the reacted message and post the reply in its thread."""
        language, outcome = self._classify(event)
        if outcome is not None:
            return outcome

        logger.info(
            "Translating %s in %s into %s (reaction :%s:)",
            event.item_ts, event.channel_id, language, event.emoji_name,
        )
        locator = MessageLocator(client, sweep_limit=self._locator_sweep_limit)
        located = await locator.locate(event.channel_id, event.item_ts)
        if located is None:
            return RelayOutcome.NOT_FOUND

        source = encode_for_translation(located.message.text)
        if not source.strip():
            logger.info("Message %s has no text to translate", event.item_ts)
            return RelayOutcome.EMPTY_TEXT

        try:
            if await translation_exists(client, event.channel_id, located.thread_ts, language):
                return RelayOutcome.DUPLICATE
        except SlackApiError as exc:
            logger.error(
                "Could not check thread %s for existing translations: %s",
                located.thread_ts, slack_error_code(exc),
            )
            return RelayOutcome.LOOKUP_FAILED

        try:
            async with self._translator_factory() as translator:
                translations = await translator.translate(
                    source, language, ignore_tags=PASSTHROUGH_TAGS
                )
        except DeepLAPIError as exc:
            logger.error("DeepL rejected translation into %s: %s", language, exc)
            return RelayOutcome.TRANSLATION_FAILED
        except httpx.HTTPError as exc:
            logger.error("DeepL request failed: %s", exc)
            return RelayOutcome.TRANSLATION_FAILED

        if not translations:
            logger.error("DeepL returned no translations for %s", event.item_ts)
            return RelayOutcome.TRANSLATION_FAILED

        reply = format_translation_reply(language, decode_from_translation(translations[0].text))
        try:
            response = await client.chat_postMessage(
                channel=event.channel_id,
                thread_ts=located.thread_ts,
                text=reply,
            )
        except SlackApiError as exc:
            logger.error(
                "chat.postMessage to thread %s failed: %s",
                located.thread_ts, slack_error_code(exc),
            )
            return RelayOutcome.POST_FAILED

        logger.info(
            "Posted %s translation %s in thread %s",
            language, response.get("ts"), located.thread_ts,
        )
        return RelayOutcome.POSTED

    async def reaction_removed(
        self, event: ReactionEvent, client: Any, identity: BotIdentity
    ) -> RelayOutcome:
        """Delete this bot's translation that the removed reaction asked for."""
        language, outcome = self._classify(event)
        if outcome is not None:
            return outcome

        logger.info(
            "Removing %s translation of %s in %s", language, event.item_ts, event.channel_id,
        )
        locator = MessageLocator(client, sweep_limit=self._locator_sweep_limit)
        located = await locator.locate(event.channel_id, event.item_ts)
        if located is None:
            return RelayOutcome.NOT_FOUND

        reply = await find_translation_to_delete(
            client,
            event.channel_id,
            located,
            event.item_ts,
            language,
            identity,
            sweep_limit=self._delete_sweep_limit,
        )
        if reply is None:
            return RelayOutcome.TRANSLATION_MISSING

        try:
            await client.chat_delete(channel=event.channel_id, ts=reply.ts)
        except SlackApiError as exc:
            code = slack_error_code(exc)
            hint = DELETE_ERROR_HINTS.get(code)
            if hint:
                logger.error("chat.delete of %s failed: %s (%s)", reply.ts, code, hint)
            else:
                logger.error("chat.delete of %s failed: %s", reply.ts, code)
            return RelayOutcome.DELETE_FAILED

        logger.info("Deleted %s translation %s", language, reply.ts)
        return RelayOutcome.DELETED
