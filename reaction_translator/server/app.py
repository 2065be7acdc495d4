"""FastAPI application with Slack webhook routes and health checks.

WHY: The Bolt app needs an HTTP server in front of it. FastAPI gives the
webhook and health routes one place to live and lets tests drive the
whole HTTP surface with TestClient.

HOW: create_server() wraps a Bolt AsyncApp in AsyncSlackRequestHandler
and mounts it on POST /slack/events and POST /slack/commands. GET / and
GET /health answer "OK" for uptime monitors and the keep-alive worker.
run_server() is the process entry point: it configures logging, loads
settings, builds both apps and starts uvicorn.

RULES:
- Bolt returns 401 for missing, invalid or stale (>300 s) signatures
- url_verification challenges are echoed by Bolt
- Health responses are text/plain and carry no-cache headers
- Missing secrets stop the process with exit status 1
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response
from slack_bolt.adapter.fastapi.async_handler import AsyncSlackRequestHandler
from slack_bolt.async_app import AsyncApp

from reaction_translator import __version__
from reaction_translator.config import HOST, LOG_LEVEL, ConfigurationError, load_settings

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {"Cache-Control": "no-cache, no-store, must-revalidate"}


# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------


def create_server(slack_app: AsyncApp) -> FastAPI:
    """Build the FastAPI app that fronts ``slack_app``.

    RULES:
    - Interactive docs are disabled; the routes are for Slack only
    - Unknown paths fall through to FastAPI's 404
    """
    api = FastAPI(
        title="Reaction Translator",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    handler = AsyncSlackRequestHandler(slack_app)

    @api.post("/slack/events", tags=["slack"], summary="Slack Events API webhook")
    async def slack_events(request: Request) -> Response:
        return await handler.handle(request)

    @api.post("/slack/commands", tags=["slack"], summary="Slack slash commands")
    async def slack_commands(request: Request) -> Response:
        return await handler.handle(request)

    @api.api_route("/", methods=["GET", "HEAD"], tags=["health"], summary="Health check")
    @api.api_route("/health", methods=["GET", "HEAD"], tags=["health"], summary="Health check")
    async def health_check() -> PlainTextResponse:
        return PlainTextResponse("OK", headers=NO_CACHE_HEADERS)

    return api


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def run_server() -> None:
    """Entry point for the reaction-translator console script."""
    import uvicorn

    from reaction_translator.slack.bot import create_app

    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        logger.error("%s", exc)
        raise SystemExit(1)

    api = create_server(create_app(settings))

    logger.info("Reaction Translator %s listening on %s:%d", __version__, HOST, settings.port)
    logger.info("Slack events endpoint: /slack/events")
    uvicorn.run(api, host=HOST, port=settings.port, log_level=LOG_LEVEL.lower())
