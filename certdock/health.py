"""HTTP reachability polling and service status inspection."""

import asyncio
import logging
import re

import httpx

from certdock.deploy.compose import compose_ps

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 5
DEFAULT_DELAY = 15
REQUEST_TIMEOUT = 10
REDIRECT_STATUSES = (301, 302)

_UP_RE = re.compile(r"\bUp\b|\brunning\b")


async def _get(url, transport=None, timeout=REQUEST_TIMEOUT):
    """Single GET without following redirects. Returns the response or None on any transport error."""
    try:
        async with httpx.AsyncClient(transport=transport, timeout=timeout, follow_redirects=False) as client:
            return await client.get(url)
    except httpx.HTTPError as e:
        logger.debug(f"GET {url} failed: {e}")
        return None


async def is_reachable(url, transport=None, timeout=REQUEST_TIMEOUT):
    """True when url answers with a non-error status (< 400)."""
    resp = await _get(url, transport=transport, timeout=timeout)
    return resp is not None and resp.status_code < 400


async def wait_until_reachable(url, attempts=DEFAULT_ATTEMPTS, delay=DEFAULT_DELAY, transport=None, sleep=asyncio.sleep):
    """Poll url up to `attempts` times, `delay` seconds apart (no sleep after the last miss).

    Returns True as soon as one attempt succeeds, False when all are exhausted.
    """
    for attempt in range(1, attempts + 1):
        if await is_reachable(url, transport=transport):
            logger.info(f"{url} is reachable")
            return True
        logger.warning(f"Attempt {attempt}/{attempts}: {url} not reachable")
        if attempt < attempts:
            await sleep(delay)
    return False


async def probe_https(url, transport=None):
    """Advisory HTTPS probe."""
    return await is_reachable(url, transport=transport)


async def probe_redirect(url, expected_statuses=REDIRECT_STATUSES, transport=None):
    """True when plain-HTTP url redirects to an https:// location with an expected status."""
    resp = await _get(url, transport=transport)
    if resp is None or resp.status_code not in expected_statuses:
        return False
    return resp.headers.get("location", "").startswith("https://")


def services_running(ps_output):
    """True when `compose ps` output shows at least one service up."""
    return bool(_UP_RE.search(ps_output or ""))


async def check_services(run_cmd, site, files):
    """Inspect the service set via `compose ps`. Returns (running, ps_output)."""
    rc, stdout, _ = await run_cmd(compose_ps(site, files), stream=False, timeout=60)
    if rc != 0:
        return False, stdout
    return services_running(stdout), stdout
