"""DeepL API response dataclasses.

WHY: The translate endpoint returns a JSON object with a list of
translations. A typed dataclass makes the two fields the relay relies
on explicit.

HOW: from_dict factory methods parse raw API responses.

RULES:
- Translation.text is always present in a DeepL translation object
- detected_source_language is uppercase (e.g. "EN") or None
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


@dataclass
class Translation:
    """One entry of the ``translations`` array."""

    text: str
    detected_source_language: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> Translation:
        return cls(
            text=data["text"],
            detected_source_language=data.get("detected_source_language"),
        )


def parse_translations(data: dict) -> List[Translation]:
    """Parse the ``translations`` array, tolerating a missing key."""
    return [Translation.from_dict(item) for item in data.get("translations") or []]
