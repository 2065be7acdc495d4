"""DeepL API client package: async HTTP interface to the translator.

WHY: The relay needs to translate one message per reaction. This package
encapsulates all DeepL communication behind an async client class.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. Response data is
parsed into typed dataclasses defined in models.py.

RULES:
- All DeepL HTTP calls go through DeepLClient
- Authentication is via the DeepL-Auth-Key header
"""

from reaction_translator.deepl.client import DeepLAPIError, DeepLClient
from reaction_translator.deepl.models import Translation

__all__ = ["DeepLAPIError", "DeepLClient", "Translation"]
