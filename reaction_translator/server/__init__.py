"""HTTP front end: FastAPI app serving Slack webhooks and health checks.

WHY: Slack's Events API and slash commands POST to a public URL, and the
hosting platform probes a health endpoint. One small ASGI app covers both.

HOW: FastAPI routes forward Slack requests to slack-bolt's
AsyncSlackRequestHandler; uvicorn serves the app.

RULES:
- Signature checks happen inside Bolt, not in the routes
- Health responses are never cached
"""
