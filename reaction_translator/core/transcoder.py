"""Markup transcoder: Slack markup ⇄ DeepL-safe XML.

WHY: DeepL translates everything it is given unless told otherwise. With
``tag_handling=xml`` and ``ignore_tags`` it leaves chosen elements alone,
so mentions, links and emoji are wrapped in those elements on the way
out and unwrapped on the way back.

HOW: The forward pass tokenizes with core.markup and renders each token
into its XML form. The reverse pass inverts the four wrappers on the
translated text: ``<emoji>``, ``<mrkdwn>``, ``<a href>`` and ``<ignore>``.

RULES:
- PASSTHROUGH_TAGS must match the ignore_tags sent to DeepL
- Reverse order: emoji, mrkdwn, anchor, ignore
- Anchor labels are translated, anchor URLs never are
"""

from __future__ import annotations

import re

from reaction_translator.config import DEEPL_IGNORE_TAGS
from reaction_translator.core.markup import parse_markup, render_translation

PASSTHROUGH_TAGS = tuple(DEEPL_IGNORE_TAGS)

_EMOJI_TAG = re.compile(r"<emoji>([a-z0-9_+-]+)</emoji>")
_MRKDWN_TAG = re.compile(r"<mrkdwn>(.*?)</mrkdwn>", re.DOTALL)
_ANCHOR_TAG = re.compile(r'<a href="(.*?)">(.*?)</a>', re.DOTALL)
_IGNORE_TAG = re.compile(r"<ignore>(.*?)</ignore>", re.DOTALL)


def encode_for_translation(text: str) -> str:
    """Rewrite Slack markup into the XML encoding sent to DeepL."""
    return render_translation(parse_markup(text))


def decode_from_translation(text: str) -> str:
    """Restore Slack markup from DeepL's translated XML."""
    text = _EMOJI_TAG.sub(lambda m: ":{}:".format(m.group(1)), text)
    text = _MRKDWN_TAG.sub(lambda m: "<{}>".format(m.group(1)), text)
    text = _ANCHOR_TAG.sub(lambda m: "<{}|{}>".format(m.group(1), m.group(2)), text)
    return _IGNORE_TAG.sub(lambda m: m.group(1), text)
