"""Keep-alive worker: ping the web service so free hosting never idles it.

WHY: Free-tier hosts put a web service to sleep after a few minutes
without traffic, and Slack gives a sleeping webhook only 3 seconds
before it retries and eventually disables the subscription. A second
tiny process requesting the health URL on a timer keeps it warm.

HOW: An httpx.AsyncClient GETs WEB_SERVICE_URL once at startup and then
every KEEPALIVE_INTERVAL_S seconds, logging the status code, the start
of the body and the elapsed time.

RULES:
- WEB_SERVICE_URL is required; the worker exits with status 1 without it
- A failed ping is logged and never stops the loop
- Runnable as: python -m reaction_translator --keepalive
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

import httpx

from reaction_translator.config import (
    KEEPALIVE_INTERVAL_S,
    KEEPALIVE_USER_AGENT,
    LOG_LEVEL,
    WEB_SERVICE_URL,
)

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 100


async def ping(client: httpx.AsyncClient, url: str) -> bool:
    """Request ``url`` once; return True on a 2xx response."""
    started = time.monotonic()
    try:
        resp = await client.get(url)
    except httpx.HTTPError as exc:
        elapsed_ms = (time.monotonic() - started) * 1000
        logger.error("Keep-alive ping to %s failed after %.0fms: %s", url, elapsed_ms, exc)
        return False

    elapsed_ms = (time.monotonic() - started) * 1000
    preview = resp.text[:PREVIEW_CHARS].replace("\n", " ")
    if resp.is_success:
        logger.info("Keep-alive %d in %.0fms: %s", resp.status_code, elapsed_ms, preview)
    else:
        logger.warning("Keep-alive %d in %.0fms: %s", resp.status_code, elapsed_ms, preview)
    return resp.is_success


async def run_keepalive(
    url: str,
    interval_s: float = KEEPALIVE_INTERVAL_S,
    iterations: Optional[int] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    """Ping ``url`` every ``interval_s`` seconds.

    Args:
        url: Health URL of the web service.
        interval_s: Seconds between pings.
        iterations: Stop after this many pings; None runs forever.
        transport: httpx transport override (tests use MockTransport).

    Returns:
        Number of successful pings.
    """
    succeeded = 0
    count = 0
    async with httpx.AsyncClient(
        headers={"User-Agent": KEEPALIVE_USER_AGENT},
        timeout=httpx.Timeout(30.0, connect=10.0),
        transport=transport,
    ) as client:
        while True:
            if await ping(client, url):
                succeeded += 1
            count += 1
            if iterations is not None and count >= iterations:
                return succeeded
            await asyncio.sleep(interval_s)


def main() -> None:
    """Entry point for the reaction-translator-keepalive console script."""
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if not WEB_SERVICE_URL:
        logger.error("WEB_SERVICE_URL environment variable is required")
        raise SystemExit(1)

    logger.info(
        "Keep-alive worker pinging %s every %.0fs", WEB_SERVICE_URL, KEEPALIVE_INTERVAL_S
    )
    try:
        asyncio.run(run_keepalive(WEB_SERVICE_URL))
    except KeyboardInterrupt:
        logger.info("Keep-alive worker stopped")


if __name__ == "__main__":
    main()
