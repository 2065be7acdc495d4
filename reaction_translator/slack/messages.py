"""Slack message text builders.

WHY: Every string the bot shows to users lives here so the wording can
be changed without touching the relay or the listeners.

HOW: Plain functions returning Slack mrkdwn strings.

RULES:
- Translation replies always start with the "(XX) " prefix the guard
  searches for
- Status replies are ephemeral; they never mention message content
"""

from __future__ import annotations

import enum
from typing import Optional

from reaction_translator.core.classifier import translation_prefix


class Membership(str, enum.Enum):
    """Whether the bot can read a conversation."""

    MEMBER = "member"
    NOT_MEMBER = "not_member"
    UNKNOWN = "unknown"


def format_translation_reply(language: str, text: str) -> str:
    """Prefix a translated text with its language marker."""
    return "{} {}".format(translation_prefix(language), text)


def _bot_label(bot_user_id: Optional[str]) -> str:
    if bot_user_id:
        return "<@{}>".format(bot_user_id)
    return "the translator app"


USAGE_HINT = (
    "React to any message with a flag emoji (for example :flag-jp: or :flag-de:) "
    "to get a translation posted in its thread. "
    "Remove the reaction to delete the translation again."
)


def build_status_message(membership: Membership, bot_user_id: Optional[str] = None) -> str:
    """Build the ephemeral reply for the status slash command."""
    label = _bot_label(bot_user_id)
    if membership == Membership.MEMBER:
        return ":white_check_mark: {} is in this conversation.\n{}".format(label, USAGE_HINT)
    if membership == Membership.NOT_MEMBER:
        return (
            ":warning: {label} is not a member of this conversation, so it cannot "
            "read messages here.\nInvite it with `/invite {label}` and try again.\n{hint}"
        ).format(label=label, hint=USAGE_HINT)
    return (
        ":grey_question: I could not check whether {} is in this conversation. "
        "If translations do not appear, invite it with `/invite {}`.\n{}"
    ).format(label, label, USAGE_HINT)


DELETE_ERROR_HINTS = {
    "missing_scope": "add the chat:write scope and reinstall the app",
    "cant_delete_message": "the bot can only delete messages it posted itself",
    "message_not_found": "the translation was already deleted",
}
