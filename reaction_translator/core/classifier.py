"""Reaction classifier: emoji name → target language code.

WHY: Only a small share of reactions are language flags. The relay must
decide, without any I/O, whether a reaction asks for a translation and
into which language.

HOW: ``flag-xx`` names are stripped to the territory code and looked up
in TERRITORY_LANGUAGES; any other name is looked up in EMOJI_ALIASES.

RULES:
- Pure and total: the same name always yields the same result
- Unmapped emoji return None and never raise
- Returned codes are lowercase two-letter language codes
"""

from __future__ import annotations

from typing import Optional

from reaction_translator.config import EMOJI_ALIASES, FLAG_PREFIX, TERRITORY_LANGUAGES


def classify_reaction(emoji_name: Optional[str]) -> Optional[str]:
    """Return the language code a reaction asks for, or None.

    >>> classify_reaction("flag-jp")
    'ja'
    >>> classify_reaction("ru")
    'ru'
    >>> classify_reaction("thumbsup") is None
    True
    """
    if not emoji_name:
        return None
    if emoji_name.startswith(FLAG_PREFIX):
        return TERRITORY_LANGUAGES.get(emoji_name[len(FLAG_PREFIX):])
    return EMOJI_ALIASES.get(emoji_name)


def translation_prefix(language: str) -> str:
    """Return the ``(LANG)`` marker that starts every posted translation."""
    return "({})".format(language.upper())
