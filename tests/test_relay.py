"""Tests for the translation relay pipelines.

WHY: The relay is the behaviour users see: react with a flag, get a
threaded translation; remove it, the translation disappears. These
tests drive whole pipelines against the in-memory conversation.

HOW: FakeSlackClient plays the channel, FakeTranslator plays DeepL.
Each test asserts on the RelayOutcome and on the chat writes made.

RULES:
- No network: Slack and DeepL are always fakes
- Outcomes are asserted for every early-exit path
"""

from __future__ import annotations

import asyncio

import httpx

from reaction_translator.deepl.client import DeepLAPIError
from reaction_translator.deepl.models import Translation
from reaction_translator.slack.models import ReactionEvent
from reaction_translator.slack.relay import RelayOutcome, TranslationRelay

from conftest import BOT_ID, BOT_USER_ID, CHANNEL, FakeTranslator

MESSAGE = "1700000000.000100"
REPLY = "1700000030.000200"


def _event(reaction: str = "flag-jp", ts: str = MESSAGE) -> ReactionEvent:
    return ReactionEvent(emoji_name=reaction, channel_id=CHANNEL, item_ts=ts, user="UREACTOR")


def _add(relay, client, identity, **kwargs):
    return asyncio.run(relay.reaction_added(_event(**kwargs), client, identity))


def _remove(relay, client, identity, **kwargs):
    return asyncio.run(relay.reaction_removed(_event(**kwargs), client, identity))


def _relay(translator: FakeTranslator) -> TranslationRelay:
    return TranslationRelay(translator_factory=translator)


class TestReactionAdded:
    """Translate-on-react pipeline."""

    def test_posts_translation_in_thread(self, slack_client, identity):
        slack_client.add_message(MESSAGE, "Hello")
        translator = FakeTranslator(result=[Translation(text="こんにちは")])

        outcome = _add(_relay(translator), slack_client, identity)

        assert outcome == RelayOutcome.POSTED
        assert translator.calls == [
            {"text": "Hello", "target_lang": "ja", "ignore_tags": ("emoji", "mrkdwn", "ignore")}
        ]
        (name, kwargs), = slack_client.writes
        assert name == "chat_postMessage"
        assert kwargs == {"channel": CHANNEL, "thread_ts": MESSAGE, "text": "(JA) こんにちは"}

    def test_second_reaction_is_duplicate(self, slack_client, identity, translator):
        slack_client.add_message(MESSAGE, "Hello")
        relay = _relay(translator)

        assert _add(relay, slack_client, identity) == RelayOutcome.POSTED
        assert _add(relay, slack_client, identity) == RelayOutcome.DUPLICATE
        assert slack_client.count("chat_postMessage") == 1
        assert len(translator.calls) == 1

    def test_different_languages_both_post(self, slack_client, identity, translator):
        slack_client.add_message(MESSAGE, "Hello")
        relay = _relay(translator)

        assert _add(relay, slack_client, identity, reaction="flag-jp") == RelayOutcome.POSTED
        assert _add(relay, slack_client, identity, reaction="flag-de") == RelayOutcome.POSTED
        texts = [m["text"] for m in slack_client.thread(MESSAGE)]
        assert texts == ["(JA) [ja] Hello", "(DE) [de] Hello"]

    def test_reply_in_thread_goes_to_parent_thread(self, slack_client, identity, translator):
        slack_client.add_message(MESSAGE, "Question?", thread_ts=MESSAGE)
        slack_client.add_message(REPLY, "Answer", thread_ts=MESSAGE)

        assert _add(_relay(translator), slack_client, identity, ts=REPLY) == RelayOutcome.POSTED
        assert slack_client.writes[0][1]["thread_ts"] == MESSAGE
        assert translator.calls[0]["text"] == "Answer"

    def test_markup_survives_translation(self, slack_client, identity, translator):
        slack_client.add_message(MESSAGE, "Hi <@U1> :wave: <https://a.io|docs>")

        _add(_relay(translator), slack_client, identity)

        assert translator.calls[0]["text"] == (
            'Hi <mrkdwn>@U1</mrkdwn> <emoji>wave</emoji> <a href="https://a.io">docs</a>'
        )
        posted = slack_client.writes[0][1]["text"]
        assert posted == "(JA) [ja] Hi <@U1> :wave: <https://a.io|docs>"

    def test_unmapped_reaction_makes_no_calls(self, slack_client, identity, translator):
        slack_client.add_message(MESSAGE, "Hello")

        assert _add(_relay(translator), slack_client, identity, reaction="flag-xx") == RelayOutcome.UNMAPPED
        assert slack_client.calls == []
        assert translator.calls == []

    def test_incomplete_event(self, slack_client, identity, translator):
        assert _add(_relay(translator), slack_client, identity, ts="") == RelayOutcome.INVALID_EVENT
        assert slack_client.calls == []

    def test_message_not_found(self, slack_client, identity, translator):
        assert _add(_relay(translator), slack_client, identity) == RelayOutcome.NOT_FOUND
        assert slack_client.writes == []
        assert translator.calls == []

    def test_empty_text(self, slack_client, identity, translator):
        slack_client.add_message(MESSAGE, "")

        assert _add(_relay(translator), slack_client, identity) == RelayOutcome.EMPTY_TEXT
        assert translator.calls == []
        assert slack_client.writes == []

    def test_guard_read_failure_aborts(self, slack_client, identity, translator):
        slack_client.add_message(MESSAGE, "Hello")
        slack_client.fail("conversations_replies", "ratelimited", after=1)

        assert _add(_relay(translator), slack_client, identity) == RelayOutcome.LOOKUP_FAILED
        assert translator.calls == []
        assert slack_client.writes == []

    def test_deepl_error(self, slack_client, identity):
        slack_client.add_message(MESSAGE, "Hello")
        translator = FakeTranslator(error=DeepLAPIError(456, "Quota exceeded"))

        assert _add(_relay(translator), slack_client, identity) == RelayOutcome.TRANSLATION_FAILED
        assert slack_client.writes == []

    def test_deepl_transport_error(self, slack_client, identity):
        slack_client.add_message(MESSAGE, "Hello")
        translator = FakeTranslator(error=httpx.ConnectTimeout("timed out"))

        assert _add(_relay(translator), slack_client, identity) == RelayOutcome.TRANSLATION_FAILED
        assert slack_client.writes == []

    def test_deepl_empty_result(self, slack_client, identity):
        slack_client.add_message(MESSAGE, "Hello")

        assert _add(_relay(FakeTranslator(result=[])), slack_client, identity) == RelayOutcome.TRANSLATION_FAILED
        assert slack_client.writes == []

    def test_post_failure(self, slack_client, identity, translator):
        slack_client.add_message(MESSAGE, "Hello")
        slack_client.fail("chat_postMessage", "not_in_channel")

        assert _add(_relay(translator), slack_client, identity) == RelayOutcome.POST_FAILED


class TestFlagJapaneseScenario:
    """flag-jp on "Hello <@U123>": add, then remove."""

    def test_add_and_remove(self, slack_client, identity):
        slack_client.add_message(MESSAGE, "Hello <@U123>")
        translator = FakeTranslator(
            result=lambda text, lang: [Translation(text=text.replace("Hello", "こんにちは"))]
        )
        relay = _relay(translator)

        assert _add(relay, slack_client, identity) == RelayOutcome.POSTED
        assert translator.calls[0]["text"] == "Hello <mrkdwn>@U123</mrkdwn>"
        assert translator.calls[0]["target_lang"] == "ja"
        reply = slack_client.thread(MESSAGE)[0]
        assert reply["text"] == "(JA) こんにちは <@U123>"

        assert _remove(relay, slack_client, identity) == RelayOutcome.DELETED
        assert slack_client.thread(MESSAGE) == []
        assert slack_client.writes[-1] == ("chat_delete", {"channel": CHANNEL, "ts": reply["ts"]})


class TestLongThread:
    """A 150-reply thread whose bot translation sits past the first page."""

    def test_duplicate_then_delete(self, slack_client, identity, translator):
        bot_ts = slack_client.add_long_thread(MESSAGE, size=150, translation_at=120)
        relay = _relay(translator)

        assert _add(relay, slack_client, identity) == RelayOutcome.DUPLICATE
        assert slack_client.count("chat_postMessage") == 0
        assert translator.calls == []

        assert _remove(relay, slack_client, identity) == RelayOutcome.DELETED
        assert slack_client.writes == [("chat_delete", {"channel": CHANNEL, "ts": bot_ts})]
        assert len(slack_client.thread(MESSAGE)) == 149


class TestReactionRemoved:
    """Delete-on-unreact pipeline."""

    def test_add_then_remove(self, slack_client, identity, translator):
        slack_client.add_message(MESSAGE, "Hello")
        relay = _relay(translator)

        assert _add(relay, slack_client, identity) == RelayOutcome.POSTED
        posted_ts = slack_client.thread(MESSAGE)[0]["ts"]

        assert _remove(relay, slack_client, identity) == RelayOutcome.DELETED
        assert slack_client.writes[-1] == ("chat_delete", {"channel": CHANNEL, "ts": posted_ts})
        assert slack_client.thread(MESSAGE) == []

    def test_only_matching_language_deleted(self, slack_client, identity, translator):
        slack_client.add_message(MESSAGE, "Hello")
        relay = _relay(translator)
        _add(relay, slack_client, identity, reaction="flag-jp")
        _add(relay, slack_client, identity, reaction="flag-de")

        assert _remove(relay, slack_client, identity, reaction="flag-jp") == RelayOutcome.DELETED
        assert [m["text"] for m in slack_client.thread(MESSAGE)] == ["(DE) [de] Hello"]

    def test_nothing_to_delete(self, slack_client, identity, translator):
        slack_client.add_message(MESSAGE, "Hello")

        assert _remove(_relay(translator), slack_client, identity) == RelayOutcome.TRANSLATION_MISSING
        assert slack_client.count("chat_delete") == 0

    def test_human_translation_is_kept(self, slack_client, identity, translator):
        slack_client.add_message(MESSAGE, "Hello", thread_ts=MESSAGE)
        slack_client.add_message(REPLY, "(JA) written by hand", thread_ts=MESSAGE)

        assert _remove(_relay(translator), slack_client, identity) == RelayOutcome.TRANSLATION_MISSING
        assert len(slack_client.thread(MESSAGE)) == 1

    def test_unmapped_reaction_makes_no_calls(self, slack_client, identity, translator):
        assert _remove(_relay(translator), slack_client, identity, reaction="thumbsup") == RelayOutcome.UNMAPPED
        assert slack_client.calls == []

    def test_delete_failure(self, slack_client, identity, translator):
        slack_client.add_message(MESSAGE, "Hello", thread_ts=MESSAGE)
        slack_client.add_message(REPLY, "(JA) x", thread_ts=MESSAGE, user=BOT_USER_ID, bot_id=BOT_ID)
        slack_client.fail("chat_delete", "cant_delete_message")

        assert _remove(_relay(translator), slack_client, identity) == RelayOutcome.DELETE_FAILED
        assert len(slack_client.thread(MESSAGE)) == 1

    def test_never_translates(self, slack_client, identity, translator):
        slack_client.add_message(MESSAGE, "Hello")
        _remove(_relay(translator), slack_client, identity)
        assert translator.calls == []
