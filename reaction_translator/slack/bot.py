"""Slack Bolt app: reaction listeners and the status slash command.

WHY: Slack delivers reactions as Events API webhooks. This module is the
glue between those events and the TranslationRelay; it also answers the
status slash command so users can check whether the bot can read a
conversation.

HOW: create_app() builds a slack-bolt AsyncApp with the bot token and
signing secret and registers one listener per event type. Bolt acks
each event immediately and runs the listener as a background task, so
slow Slack or DeepL calls never delay the webhook response.

RULES:
- Events other than reaction_added / reaction_removed are ignored
- Listener exceptions are logged with a traceback and swallowed
- The bot identity comes from Bolt's auth.test result in the context
- Slash command: ack() FIRST, then reply ephemerally
"""

from __future__ import annotations

import functools
import logging
import re
from typing import Any, Dict, Optional

from slack_bolt.async_app import AsyncApp
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from reaction_translator.config import SLASH_COMMAND, Settings
from reaction_translator.deepl.client import DeepLClient
from reaction_translator.slack.history import slack_error_code
from reaction_translator.slack.messages import Membership, build_status_message
from reaction_translator.slack.models import BotIdentity, ReactionEvent
from reaction_translator.slack.relay import RelayOutcome, TranslationRelay

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------


def create_app(
    settings: Settings,
    relay: Optional[TranslationRelay] = None,
    slash_command: str = SLASH_COMMAND,
) -> AsyncApp:
    """Create and configure the Bolt app with all listeners.

    WHY: Factory function lets tests inject a relay with a fake
    translator and avoids module-level side effects.

    RULES:
    - relay defaults to one backed by DeepLClient(settings.deepl_auth_key)
    - The Web API client has no retry handlers; a failed call aborts the event
    - The catch-all listener is registered last so it only sees
      unhandled event types
    """
    app = AsyncApp(
        client=AsyncWebClient(token=settings.slack_bot_token, retry_handlers=[]),
        signing_secret=settings.slack_signing_secret,
        process_before_response=False,
    )
    if relay is None:
        relay = TranslationRelay(
            translator_factory=functools.partial(DeepLClient, settings.deepl_auth_key),
        )

    async def on_reaction_added(event: Dict[str, Any], client: Any, context: Any) -> None:
        await handle_reaction_added(relay, event, client, context)

    async def on_reaction_removed(event: Dict[str, Any], client: Any, context: Any) -> None:
        await handle_reaction_removed(relay, event, client, context)

    app.event("reaction_added")(on_reaction_added)
    app.event("reaction_removed")(on_reaction_removed)
    app.command(slash_command)(handle_status_command)
    app.event(re.compile(".*"))(ignore_event)

    return app


def identity_from_context(context: Any) -> BotIdentity:
    """Build the bot identity Bolt resolved through auth.test."""
    return BotIdentity(
        user_id=context.get("bot_user_id"),
        bot_id=context.get("bot_id"),
    )


# ---------------------------------------------------------------------------
# Event handlers
# ---------------------------------------------------------------------------


async def handle_reaction_added(
    relay: TranslationRelay, event: Dict[str, Any], client: Any, context: Any
) -> Optional[RelayOutcome]:
    """Run the translate pipeline for one reaction_added event."""
    try:
        outcome = await relay.reaction_added(
            ReactionEvent.from_event(event), client, identity_from_context(context)
        )
    except Exception:
        logger.exception("Unexpected error handling reaction_added")
        return None
    logger.debug("reaction_added finished: %s", outcome.value)
    return outcome


async def handle_reaction_removed(
    relay: TranslationRelay, event: Dict[str, Any], client: Any, context: Any
) -> Optional[RelayOutcome]:
    """Run the delete pipeline for one reaction_removed event."""
    try:
        outcome = await relay.reaction_removed(
            ReactionEvent.from_event(event), client, identity_from_context(context)
        )
    except Exception:
        logger.exception("Unexpected error handling reaction_removed")
        return None
    logger.debug("reaction_removed finished: %s", outcome.value)
    return outcome


async def ignore_event(event: Dict[str, Any]) -> None:
    logger.debug("Ignoring %s event", event.get("type"))


# ---------------------------------------------------------------------------
# Slash command
# ---------------------------------------------------------------------------


async def check_membership(client: Any, channel_id: str, identity: BotIdentity) -> Membership:
    """Report whether the bot can read ``channel_id``.

    HOW: conversations.info answers directly for public and private
    channels via ``is_member``. DMs and group DMs carry no such flag, so
    the member list is checked for the bot user instead.
    """
    try:
        info = await client.conversations_info(channel=channel_id)
    except SlackApiError as exc:
        code = slack_error_code(exc)
        if code in ("channel_not_found", "not_in_channel"):
            return Membership.NOT_MEMBER
        logger.error("conversations.info for %s failed: %s", channel_id, code)
        return Membership.UNKNOWN

    channel = info.get("channel") or {}
    if "is_member" in channel:
        return Membership.MEMBER if channel["is_member"] else Membership.NOT_MEMBER

    if not identity.user_id:
        return Membership.UNKNOWN
    try:
        members = await client.conversations_members(channel=channel_id)
    except SlackApiError as exc:
        logger.error("conversations.members for %s failed: %s", channel_id, slack_error_code(exc))
        return Membership.UNKNOWN
    if identity.user_id in (members.get("members") or []):
        return Membership.MEMBER
    return Membership.NOT_MEMBER


async def handle_status_command(
    ack: Any, command: Dict[str, Any], client: Any, context: Any, respond: Any
) -> None:
    """Reply ephemerally with the bot's membership in the conversation."""
    await ack()

    channel_id = command.get("channel_id", "")
    identity = identity_from_context(context)
    membership = await check_membership(client, channel_id, identity)
    logger.info("Status command in %s: %s", channel_id, membership.value)

    await respond(
        text=build_status_message(membership, identity.user_id),
        response_type="ephemeral",
    )
