"""Pure pipeline stages: reaction classification and markup transcoding.

WHY: The classifier and the transcoder have no I/O. Keeping them apart
from the Slack and DeepL clients makes them trivially testable.

RULES:
- Nothing in this package performs network calls
"""

from reaction_translator.core.classifier import classify_reaction
from reaction_translator.core.transcoder import decode_from_translation, encode_for_translation

__all__ = ["classify_reaction", "decode_from_translation", "encode_for_translation"]
