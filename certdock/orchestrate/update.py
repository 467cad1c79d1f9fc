"""Update a running deployment and tear it down."""

import logging
import shlex

from certdock.deploy.compose import compose_down, prod_files, temp_files
from certdock.deploy.envfile import ENV_LOCAL_FILE
from certdock.health import check_services
from certdock.orchestrate.state import DeployError
from certdock.orchestrate.steps import settle, start_stack, stop_stack

logger = logging.getLogger(__name__)


async def run_update(ws, site, branch="main", pull=True):
    """Pull the latest code and rebuild the HTTPS stack. Returns True on success.

    The final service check is advisory: a warning plus the `ps` listing.
    """
    if not ws.exists(ENV_LOCAL_FILE):
        logger.warning("Local config not found. Run 'certdock deploy' first.")
        return False

    files = prod_files(site)
    try:
        if pull:
            logger.info("1. Pulling latest code from Git...")
            rc, _, _ = await ws.run_cmd(f"git pull origin {shlex.quote(branch)} --no-ff", timeout=300, log_output=True)
            if rc != 0:
                raise DeployError("git pull failed")

        logger.info("2. Rebuilding and restarting containers...")
        await stop_stack(ws, site, files)
        await start_stack(ws, site, files)
    except DeployError as e:
        logger.error(str(e))
        return False

    logger.info("3. Waiting for services to start...")
    await settle(ws, site.health.settle)

    if ws.dry_run:
        logger.info("Update complete (dry-run).")
        return True

    running, ps_output = await check_services(ws.run_cmd, site, files)
    if running:
        logger.info("Deployment updated successfully!")
    else:
        logger.warning("Some services may not be running properly")
        for line in ps_output.splitlines():
            logger.info(line)
    logger.info("Update complete!")
    return True


async def run_teardown(ws, site, temp=False):
    """Tear down: compose down of the HTTPS stack (or the bootstrap stack)."""
    files = temp_files(site) if temp else prod_files(site)
    logger.info("Tearing down...")
    rc, _, _ = await ws.run_cmd(compose_down(site, files), timeout=300, log_output=True)
    if rc == 0:
        logger.info("Teardown complete.")
    else:
        logger.error("Teardown failed.")
    return rc == 0
