"""Typed intermediate representation and tokenizer for Slack inline markup.

WHY: Slack message text mixes prose with ``<...>`` references (user and
channel mentions, special mentions, dates, links) and ``:emoji:``
shortcodes. DeepL must translate the prose but leave those references
intact. Parsing into typed tokens first makes each rewrite rule explicit
and lets the transcoder round-trip be tested on its own.

HOW: parse_markup() walks the text once. Every ``<...>`` span is
classified by its leading sigil into one of the token dataclasses below;
the prose between spans is split into Text and Emoji tokens. Each token
knows how to render itself back to Slack markup (to_slack) and into the
DeepL-safe XML encoding (to_translation).

RULES:
- Token order and content are preserved exactly for well-formed input
- A stray ``<`` (no closing ``>``, or another ``<`` before it) is dropped
  and the text after it is kept as prose
- Empty ``<>`` spans and links with an empty URL are dropped
- A link with an empty label degrades to a bare Verbatim reference
- Special mentions (@here, @channel) translate to non-pinging plain text
- Subteam mentions are replaced by SUBTEAM_PLACEHOLDER, never restored
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Union

SUBTEAM_PLACEHOLDER = "@[subteam mention removed]"
SPECIAL_MENTION_FALLBACK = "@[special mention]"

_EMOJI_PATTERN = re.compile(r":([a-z0-9_+-]+):")


@dataclass(frozen=True)
class Text:
    """Plain prose, sent to DeepL as-is."""

    text: str

    def to_slack(self) -> str:
        return self.text

    def to_translation(self) -> str:
        return self.text


@dataclass(frozen=True)
class Emoji:
    """An ``:emoji-name:`` shortcode."""

    name: str

    def to_slack(self) -> str:
        return ":{}:".format(self.name)

    def to_translation(self) -> str:
        return "<emoji>{}</emoji>".format(self.name)


@dataclass(frozen=True)
class Mention:
    """A user or channel reference: ``<@U123>``, ``<#C123|general>``."""

    body: str

    def to_slack(self) -> str:
        return "<{}>".format(self.body)

    def to_translation(self) -> str:
        return "<mrkdwn>{}</mrkdwn>".format(self.body)


@dataclass(frozen=True)
class SubteamMention:
    """A user-group mention: ``<!subteam^S123|@team>``."""

    body: str

    def to_slack(self) -> str:
        return "<{}>".format(self.body)

    def to_translation(self) -> str:
        return SUBTEAM_PLACEHOLDER


@dataclass(frozen=True)
class DateToken:
    """A localized date: ``<!date^1392734382^{date_short}|Feb 18, 2014>``."""

    body: str

    def to_slack(self) -> str:
        return "<{}>".format(self.body)

    def to_translation(self) -> str:
        return "<mrkdwn>{}</mrkdwn>".format(self.body)


@dataclass(frozen=True)
class SpecialMention:
    """A broadcast mention such as ``<!here>`` or ``<!channel|@channel>``."""

    body: str

    @property
    def name(self) -> str:
        return self.body[1:].split("|", 1)[0]

    def to_slack(self) -> str:
        return "<{}>".format(self.body)

    def to_translation(self) -> str:
        label = "@{}".format(self.name) if self.name else SPECIAL_MENTION_FALLBACK
        return "<ignore>{}</ignore>".format(label)


@dataclass(frozen=True)
class Link:
    """A labelled link: ``<https://example.com|the docs>``."""

    url: str
    label: str

    def to_slack(self) -> str:
        return "<{}|{}>".format(self.url, self.label)

    def to_translation(self) -> str:
        # Emoji inside the label are wrapped like prose emoji
        label = "".join(token.to_translation() for token in _split_prose(self.label))
        return '<a href="{}">{}</a>'.format(self.url, label)


@dataclass(frozen=True)
class Verbatim:
    """Any other bracketed reference, e.g. a bare ``<https://example.com>``."""

    body: str

    def to_slack(self) -> str:
        return "<{}>".format(self.body)

    def to_translation(self) -> str:
        return "<mrkdwn>{}</mrkdwn>".format(self.body)


Token = Union[Text, Emoji, Mention, SubteamMention, DateToken, SpecialMention, Link, Verbatim]


def classify_reference(body: str) -> Optional[Token]:
    """Classify the inside of one ``<...>`` span by its leading sigil.

    Returns None when the span should be dropped.
    """
    if not body:
        return None
    if body[0] in "#@":
        return Mention(body)
    if body.startswith("!subteam"):
        return SubteamMention(body)
    if body.startswith("!date"):
        return DateToken(body)
    if body.startswith("!"):
        return SpecialMention(body)
    if "|" in body:
        url, label = body.split("|", 1)
        if not url:
            return None
        if not label:
            return Verbatim(url)
        return Link(url, label)
    return Verbatim(body)


def _split_prose(text: str) -> List[Token]:
    """Split prose into Text and Emoji tokens."""
    tokens = []  # type: List[Token]
    pos = 0
    for match in _EMOJI_PATTERN.finditer(text):
        if match.start() > pos:
            tokens.append(Text(text[pos:match.start()]))
        tokens.append(Emoji(match.group(1)))
        pos = match.end()
    if pos < len(text):
        tokens.append(Text(text[pos:]))
    return tokens


def parse_markup(text: str) -> List[Token]:
    """Tokenize Slack message text into the typed IR.

    WHY: The rewrite rules depend on what a ``<...>`` span *is*, not on
    what it looks like to a regex. Tokenizing once removes ambiguity
    between overlapping patterns (e.g. colons inside URLs).

    HOW: Scans for ``<``. A span runs to the next ``>`` unless another
    ``<`` comes first, in which case the first ``<`` is stray. Prose
    collected between spans is split into Text/Emoji tokens.

    RULES:
    - Stray ``<`` characters are dropped, the rest is kept as prose
    - Emoji shortcodes are only recognized in prose, never inside spans
    """
    tokens = []  # type: List[Token]
    prose = []  # type: List[str]
    i = 0
    length = len(text)

    while i < length:
        char = text[i]
        if char != "<":
            prose.append(char)
            i += 1
            continue

        close = text.find(">", i + 1)
        nested = text.find("<", i + 1)
        if close == -1 or (nested != -1 and nested < close):
            i += 1
            continue

        if prose:
            tokens.extend(_split_prose("".join(prose)))
            prose = []
        reference = classify_reference(text[i + 1:close])
        if reference is not None:
            tokens.append(reference)
        i = close + 1

    if prose:
        tokens.extend(_split_prose("".join(prose)))
    return tokens


def render_slack(tokens: List[Token]) -> str:
    """Render tokens back to Slack markup."""
    return "".join(token.to_slack() for token in tokens)


def render_translation(tokens: List[Token]) -> str:
    """Render tokens into the DeepL-safe XML encoding."""
    return "".join(token.to_translation() for token in tokens)
