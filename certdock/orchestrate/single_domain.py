"""Certificate for the bare domain only (no www alias), then switch to HTTPS."""

import dataclasses
import logging

from certdock.certs.acme import acquire_certificate, docker_run_certbot_cmd
from certdock.deploy.compose import CERTBOT_CONF_DIR, CERTBOT_WWW_DIR, NGINX_LOCAL_DIR, prod_files, temp_files
from certdock.deploy.nginx import generate_nginx_https_conf
from certdock.orchestrate.state import DeployError
from certdock.orchestrate.steps import advisory_probes, settle, start_stack, stop_stack

logger = logging.getLogger(__name__)

HTTPS_SETTLE = 20


async def run_single_domain_cert(ws, site, record):
    """Force-renew a certificate for record.domain alone and redeploy with HTTPS. Returns True on success."""
    record = dataclasses.replace(record, include_www=False)
    logger.info(f"Getting SSL certificate for {record.domain} only (without www)")
    try:
        await ws.make_dirs(CERTBOT_CONF_DIR, CERTBOT_WWW_DIR)
        command = docker_run_certbot_cmd(site, ws.root, record.names, record.email, force_renewal=True)
        if not await acquire_certificate(ws.run_cmd, command, record.names):
            raise DeployError("Failed to get SSL certificate")

        logger.info("Updating nginx configuration for single domain...")
        await ws.write_file(f"{NGINX_LOCAL_DIR}/nginx.conf", generate_nginx_https_conf(site, record))

        logger.info("Deploying with HTTPS...")
        await stop_stack(ws, site, temp_files(site))
        await start_stack(ws, site, prod_files(site))
        await settle(ws, HTTPS_SETTLE)
    except DeployError as e:
        logger.error(str(e))
        return False

    logger.info("HTTPS deployment complete")
    if await advisory_probes(ws, record, redirect=False):
        logger.info(f"Your app is available at: https://{record.domain}")
    return True
