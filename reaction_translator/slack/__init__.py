"""Slack side of the reaction translator.

WHY: Everything that talks to Slack lives here: the Bolt app and its
listeners, the message locator, the duplicate guard and the relay that
ties them to the DeepL client.

HOW: A slack-bolt AsyncApp receives Events API webhooks through the
FastAPI server. Listeners hand each reaction to TranslationRelay, which
reads and writes the conversation through the AsyncWebClient Bolt
passes in.

RULES:
- Bolt verifies request signatures and acks events before listeners run
- Listener failures are logged and never reach the webhook response
- The conversation history is the only state; nothing is stored locally
"""
