"""Async HTTP client for the DeepL translate API.

WHY: The relay needs one call (translate a piece of XML-tagged text
into a target language) with DeepL's auth, endpoint selection and
error reporting handled in one place so the relay never sees HTTP
details.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. DeepLClient is an
async context manager: enter it to get an authenticated client, exit to
close the connection pool. translate() posts a form-encoded request and
parses the response into Translation dataclasses.

RULES:
- Always use the async context manager (async with DeepLClient(...) as client:)
- Keys ending in ":fx" are free-tier keys and use api-free.deepl.com
- Authentication uses the "DeepL-Auth-Key" Authorization header
- Requests always send tag_handling=xml and the passthrough ignore_tags
- target_lang is sent uppercase (e.g. "JA")
- Non-2xx responses raise DeepLAPIError; nothing is retried
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import httpx

from reaction_translator.config import (
    DEEPL_API_URL,
    DEEPL_FREE_API_URL,
    DEEPL_FREE_KEY_SUFFIX,
    DEEPL_IGNORE_TAGS,
    DEEPL_TIMEOUT_S,
)
from reaction_translator.deepl.models import Translation, parse_translations


class DeepLAPIError(Exception):
    """Raised when the DeepL API returns an error response.

    WHY: Callers need a typed exception to distinguish DeepL rejections
    (bad key, quota exceeded, unsupported language) from network errors.

    RULES:
    - Always include status_code and message
    - message is the response body text
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__("DeepL API error {}: {}".format(status_code, message))


def base_url_for_key(auth_key: str) -> str:
    """Pick the DeepL API host that matches the key's plan."""
    if auth_key.endswith(DEEPL_FREE_KEY_SUFFIX):
        return DEEPL_FREE_API_URL
    return DEEPL_API_URL


class DeepLClient:
    """Async client for the DeepL v2 translate endpoint.

    RULES:
    - Use as: async with DeepLClient(auth_key) as client: ...
    - base_url defaults to the host selected by base_url_for_key()
    - transport is for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        auth_key: str,
        base_url: str | None = None,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._auth_key = auth_key
        self._base_url = (base_url or base_url_for_key(auth_key)).rstrip("/")
        self._timeout_s = timeout_s or DEEPL_TIMEOUT_S
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> DeepLClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": "DeepL-Auth-Key {}".format(self._auth_key)},
            timeout=httpx.Timeout(self._timeout_s, connect=10.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "DeepLClient must be used as an async context manager: "
                "async with DeepLClient(auth_key) as client: ..."
            )
        return self._client

    async def translate(
        self,
        text: str,
        target_lang: str,
        ignore_tags: Optional[Sequence[str]] = None,
    ) -> List[Translation]:
        """Translate XML-tagged text and return DeepL's translations.

        WHY: The transcoder protects Slack markup with XML elements;
        DeepL must be told to treat the text as XML and to skip those
        elements.

        HOW: POSTs a form-encoded body to /translate and parses the
        ``translations`` array of the JSON response.

        RULES:
        - Returns an empty list when DeepL answers 200 without translations
        - Raises DeepLAPIError on non-2xx responses
        - httpx transport errors propagate unchanged

        Args:
            text: Transcoded message text.
            target_lang: Language code in any case; sent uppercase.
            ignore_tags: Elements DeepL must not translate. Defaults to
                DEEPL_IGNORE_TAGS.

        Returns:
            List of Translation objects (normally exactly one).
        """
        client = self._ensure_client()
        tags = DEEPL_IGNORE_TAGS if ignore_tags is None else ignore_tags
        resp = await client.post(
            "/translate",
            data={
                "text": text,
                "tag_handling": "xml",
                "ignore_tags": ",".join(tags),
                "target_lang": target_lang.upper(),
            },
        )

        if not resp.is_success:
            raise DeepLAPIError(resp.status_code, resp.text)

        return parse_translations(resp.json())
