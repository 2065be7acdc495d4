"""Reaction Translator: flag-emoji driven DeepL translations for Slack.

WHY: Teams mixing languages in Slack want a one-click translation of a
single message without leaving the conversation. Reacting with a flag
emoji posts the translation as a threaded reply; removing the reaction
deletes it again.

HOW: Five-stage pipeline: classify the reaction, locate the message,
guard against duplicates, transcode Slack markup for DeepL, and post or
delete the threaded reply. The chat history itself is the only state.

RULES:
- No local database: every decision is re-derived from Slack history
- One translation per language per message, prefixed "(LANG) "
- Webhooks are acknowledged before any pipeline work starts
"""

__version__ = "0.1.0"
