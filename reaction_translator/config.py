"""Configuration constants, reaction→language tables, and .env loading.

WHY: Centralizes all configurable values so they are easy to find,
update, and override. The emoji → language tables, API endpoints, and
search limits are plain data structures, not buried in logic, so both
humans and coding agents can modify them confidently.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level mappings and strings. The load_settings() function
collects the required secrets and provides a clear error when any of
them is missing.

RULES:
- TERRITORY_LANGUAGES maps ISO territory codes (from flag-xx emoji) to
  DeepL language codes
- EMOJI_ALIASES maps bare emoji names (jp, ru, us, ...) to language codes
- Both tables are read-only (MappingProxyType) and built once at import
- Secrets are loaded from the environment, never hardcoded
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping

from dotenv import load_dotenv

# Load .env from the project root (where the process is started)
load_dotenv()

# ---------------------------------------------------------------------------
# Reaction → language tables
# ---------------------------------------------------------------------------

TERRITORY_LANGUAGES: Mapping[str, str] = MappingProxyType({
    "ac": "en", "ag": "en", "ai": "en", "ao": "pt", "ar": "es", "as": "en",
    "at": "de", "au": "en", "aw": "nl", "bb": "en", "be": "nl", "bf": "fr",
    "bg": "bg", "bi": "fr", "bj": "fr", "bl": "fr", "bn": "en", "bo": "es",
    "bq": "nl", "br": "pt", "bs": "en", "bw": "en", "bz": "en", "ca": "en",
    "cd": "fr", "cf": "fr", "cg": "fr", "ch": "de", "ci": "fr", "ck": "en",
    "cl": "es", "cm": "fr", "cn": "zh", "co": "es", "cp": "fr", "cr": "es",
    "cu": "es", "cv": "pt", "cw": "nl", "cx": "en", "cz": "cs", "de": "de",
    "dj": "fr", "dk": "da", "dm": "en", "do": "es", "ea": "es", "ec": "es",
    "ee": "et", "es": "es", "fi": "fi", "fj": "en", "fk": "en", "fm": "en",
    "fr": "fr", "ga": "fr", "gb": "en", "gd": "en", "gf": "fr", "gg": "en",
    "gh": "en", "gi": "en", "gm": "en", "gn": "fr", "gp": "fr", "gq": "es",
    "gr": "el", "gs": "en", "gt": "es", "gu": "en", "gw": "pt", "gy": "en",
    "hn": "es", "hu": "hu", "ic": "es", "id": "id", "im": "en", "io": "en",
    "it": "it", "je": "en", "jm": "en", "jp": "ja", "ke": "en", "ki": "en",
    "kn": "en", "kr": "ko", "ky": "en", "lc": "en", "li": "de", "lr": "en",
    "lt": "lt", "mc": "fr", "ml": "fr", "mp": "en", "mq": "fr", "ms": "en",
    "mu": "en", "mw": "en", "mx": "es", "mz": "pt", "na": "en", "nc": "fr",
    "ne": "fr", "nf": "en", "ng": "en", "ni": "es", "nl": "nl", "nz": "en",
    "pa": "es", "pe": "es", "pf": "fr", "pl": "pl", "pm": "fr", "pn": "en",
    "pr": "es", "pt": "pt", "pw": "en", "py": "es", "re": "fr", "ro": "ro",
    "ru": "ru", "sb": "en", "sc": "en", "se": "sv", "sg": "en", "sh": "en",
    "si": "sl", "sk": "sk", "sl": "en", "sm": "it", "sn": "fr", "sr": "nl",
    "ss": "en", "st": "pt", "sv": "es", "sx": "nl", "ta": "en", "tc": "en",
    "td": "fr", "tf": "fr", "tg": "fr", "tr": "tr", "tt": "en", "ua": "uk",
    "ug": "en", "um": "en", "us": "en", "uy": "es", "va": "it", "vc": "en",
    "ve": "es", "vg": "en", "vi": "en", "wf": "fr", "yt": "fr", "zm": "en",
    "zw": "en",
})
"""ISO 3166 territory code → dominant DeepL language (lowercase)."""

EMOJI_ALIASES: Mapping[str, str] = MappingProxyType({
    "cn": "zh",
    "de": "de",
    "es": "es",
    "fr": "fr",
    "gb": "en",
    "it": "it",
    "jp": "ja",
    "kr": "ko",
    "ru": "ru",
    "uk": "en",
    "us": "en",
})
"""Bare emoji names Slack ships without the ``flag-`` prefix."""

FLAG_PREFIX = "flag-"

# ---------------------------------------------------------------------------
# DeepL API
# ---------------------------------------------------------------------------

DEEPL_API_URL = "https://api.deepl.com/v2"
DEEPL_FREE_API_URL = "https://api-free.deepl.com/v2"
DEEPL_FREE_KEY_SUFFIX = ":fx"

DEEPL_IGNORE_TAGS: List[str] = ["emoji", "mrkdwn", "ignore"]
"""Passthrough tags DeepL must leave untranslated (see core.transcoder)."""

DEEPL_TIMEOUT_S = float(os.getenv("DEEPL_TIMEOUT_S", "30"))

# ---------------------------------------------------------------------------
# Message search limits
# ---------------------------------------------------------------------------

THREAD_FETCH_LIMIT = 100
HISTORY_WINDOW_S = 10.0
HISTORY_WINDOW_LIMIT = 100
TIMESTAMP_TOLERANCE_S = 1.0
RECENT_HISTORY_LIMIT = 200
LOCATOR_SWEEP_LIMIT = int(os.getenv("LOCATOR_SWEEP_LIMIT", "50"))
DELETE_SWEEP_LIMIT = int(os.getenv("DELETE_SWEEP_LIMIT", "30"))

# ---------------------------------------------------------------------------
# Server, slash command, keep-alive
# ---------------------------------------------------------------------------

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "10000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SLASH_COMMAND = os.getenv("SLASH_COMMAND", "/translator")

WEB_SERVICE_URL = os.getenv("WEB_SERVICE_URL", "")
KEEPALIVE_INTERVAL_S = float(os.getenv("KEEPALIVE_INTERVAL_S", "300"))
KEEPALIVE_USER_AGENT = "ReactionTranslator-KeepAlive/1.0"


class ConfigurationError(ValueError):
    """Raised when a required secret is missing from the environment.

    RULES:
    - Message names every missing variable, not just the first
    """


@dataclass(frozen=True)
class Settings:
    """Secrets and listen port, loaded once at startup."""

    slack_bot_token: str
    slack_signing_secret: str
    deepl_auth_key: str
    port: int = PORT


def load_settings() -> Settings:
    """Load the Slack and DeepL secrets from the environment.

    WHY: The bot cannot verify webhooks, read history, or translate
    without these three secrets. Failing at startup is clearer than
    failing on the first reaction.

    HOW: Reads SLACK_BOT_TOKEN, SLACK_SIGNING_SECRET and DEEPL_AUTH_KEY
    from os.environ (populated by python-dotenv).

    RULES:
    - Raises ConfigurationError listing every missing or empty key
    - Never returns a default/placeholder value for a secret
    """
    values = {
        name: os.getenv(name, "").strip()
        for name in ("SLACK_BOT_TOKEN", "SLACK_SIGNING_SECRET", "DEEPL_AUTH_KEY")
    }
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigurationError(
            "Missing required environment variables: {}. "
            "Add them to the .env file or the service environment.".format(
                ", ".join(missing)
            )
        )
    return Settings(
        slack_bot_token=values["SLACK_BOT_TOKEN"],
        slack_signing_secret=values["SLACK_SIGNING_SECRET"],
        deepl_auth_key=values["DEEPL_AUTH_KEY"],
        port=int(os.getenv("PORT", str(PORT))),
    )
