"""Steps shared by the deploy workflows."""

import asyncio
import logging

from certdock.deploy.compose import compose_down, compose_logs, compose_up
from certdock.health import probe_https, probe_redirect, wait_until_reachable
from certdock.orchestrate.state import DeployError
from certdock.ports import PortInspectionError, find_port_holders

logger = logging.getLogger(__name__)

DOCKER_PERMISSION_HINTS = [
    "sudo usermod -aG docker $USER",
    "sudo chown root:docker /var/run/docker.sock",
    "newgrp docker",
]


async def check_docker(ws):
    """Fatal unless the container engine answers for the current user."""
    logger.info("Checking Docker permissions...")
    rc, _, _ = await ws.run_cmd("docker ps", stream=False, timeout=60)
    if rc != 0:
        logger.error("Docker permission error! Run these commands:")
        for hint in DOCKER_PERMISSION_HINTS:
            logger.error(f"  {hint}")
        raise DeployError("Docker is not usable by the current user")
    logger.info("Docker permissions OK")


async def settle(ws, seconds, reason="Waiting for services to start"):
    """Fixed-duration wait for asynchronous external state changes."""
    if ws.dry_run or not seconds:
        return
    logger.info(f"{reason} ({seconds:g}s)...")
    await asyncio.sleep(seconds)


async def stop_stack(ws, site, files):
    """Tolerant shutdown: a stack that is not running is fine."""
    rc, _, _ = await ws.run_cmd(compose_down(site, files), timeout=300, log_output=True)
    if rc != 0:
        logger.warning(f"'down' of {', '.join(files)} failed; continuing")


async def start_stack(ws, site, files, state=None):
    """Build and start a stack. Fatal on failure, after logging the port holders and container logs."""
    rc, _, _ = await ws.run_cmd(compose_up(site, files), timeout=1800, log_output=True)
    if rc == 0:
        return
    logger.error(f"Failed to start services from {', '.join(files)}")
    try:
        holders = await find_port_holders(ws.run_cmd)
    except PortInspectionError as e:
        logger.error(str(e))
        holders = []
    if holders:
        logger.error("Reserved ports are held by (run 'certdock fix-ports' to free them):")
        for holder in holders:
            logger.error(f"  {holder}")
    logger.error("Container logs:")
    await ws.run_cmd(compose_logs(site, files), timeout=60, log_output=True)
    raise DeployError("Failed to start services", state=state)


async def require_reachable(ws, site, record, state=None, delay=None):
    """Bounded reachability poll over plain HTTP. Exhaustion is fatal."""
    url = f"http://{record.domain}"
    if ws.dry_run:
        logger.info(f"[dry-run] poll {url} ({site.health.attempts} attempts)")
        return
    logger.info(f"Checking that {url} is reachable...")
    ok = await wait_until_reachable(
        url,
        attempts=site.health.attempts,
        delay=site.health.delay if delay is None else delay,
    )
    if not ok:
        raise DeployError(f"{record.domain} not reachable over HTTP. Check DNS and security groups.", state=state)


async def advisory_probes(ws, record, redirect=True):
    """Post-certificate HTTPS and redirect probes. Failures are warnings only.

    Returns True when every probe passed.
    """
    if ws.dry_run:
        logger.info(f"[dry-run] probe https://{record.domain}")
        return True

    passed = True
    if redirect:
        if await probe_redirect(f"http://{record.domain}"):
            logger.info("HTTP to HTTPS redirect working")
        else:
            logger.warning("HTTP to HTTPS redirect may not be working")
            passed = False

    if await probe_https(f"https://{record.domain}"):
        logger.info("HTTPS working")
    else:
        logger.warning("HTTPS test failed, but the certificate exists")
        passed = False
    return passed
