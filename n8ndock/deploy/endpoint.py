"""Public endpoint probe: poll the n8n health URL through the edge proxy."""

import asyncio
import logging

import httpx

logger = logging.getLogger(__name__)


async def probe(client: httpx.AsyncClient, url: str) -> tuple[bool, str]:
    """Single GET against url. Returns (ok, detail)."""
    try:
        resp = await client.get(url, timeout=10, follow_redirects=True)
    except httpx.ConnectError as e:
        return False, f"connection failed ({e}); DNS or firewall"
    except httpx.TimeoutException:
        return False, "timed out"
    except httpx.HTTPError as e:
        return False, f"{type(e).__name__}: {e}"
    if resp.status_code == 200:
        return True, "200 OK"
    return False, f"HTTP {resp.status_code}"


async def check_endpoint(url, timeout=300, interval=10):
    """Poll url until it answers 200 or timeout elapses.

    Certificate issuance can take a minute after the proxy first starts, so
    TLS and connection errors are retried until the deadline.

    Returns:
        True if the endpoint answered 200, False on timeout.
    """
    elapsed = 0
    detail = ""
    async with httpx.AsyncClient() as client:
        while elapsed < timeout:
            ok, detail = await probe(client, url)
            if ok:
                logger.info(f"Endpoint healthy: {url}")
                return True
            logger.debug(f"Endpoint not ready: {url}: {detail}")
            await asyncio.sleep(interval)
            elapsed += interval

    logger.error(f"Endpoint {url} not healthy after {timeout}s (last: {detail})")
    return False
