"""In-place SSL setup for projects that track their own nginx/nginx.conf.

The tracked config (with its placeholder domain substituted) is parked as a
backup while a temporary HTTP-only config serves the ACME challenge, then
restored and nginx is reloaded in place.
"""

import logging

from certdock.certs.acme import acquire_certificate, compose_run_certbot_cmd
from certdock.deploy.compose import CERTBOT_CONF_DIR, CERTBOT_WWW_DIR, base_files, compose_reload_proxy
from certdock.deploy.envfile import ENV_PROD_FILE, allowed_hosts, update_allowed_hosts
from certdock.deploy.nginx import generate_nginx_http_conf, substitute_domain
from certdock.orchestrate.state import DeployError
from certdock.orchestrate.steps import advisory_probes, require_reachable, settle, start_stack, stop_stack

logger = logging.getLogger(__name__)

NGINX_CONF = "nginx/nginx.conf"
NGINX_CONF_BACKUP = "nginx/nginx.conf.backup"
NGINX_CONF_TEMP = "nginx/nginx.temp.conf"
POLL_DELAY = 10
RELOAD_SETTLE = 10


async def _update_env(ws, record):
    content = await ws.read_file(ENV_PROD_FILE)
    if content is None:
        raise DeployError(f"{ENV_PROD_FILE} not found! Please create it first.")
    logger.info(f"Updating {ENV_PROD_FILE} with domain...")
    await ws.write_file(ENV_PROD_FILE, update_allowed_hosts(content, allowed_hosts(record, include_ip=False)))


async def _park_tracked_config(ws, site, record):
    """Substitute the domain in the tracked config, park it, install the HTTP-only one.

    An existing backup means a previous run stopped half-way: the backup is
    the real config and nginx.conf is the temporary one, so keep the backup.
    """
    if ws.exists(NGINX_CONF_BACKUP):
        logger.warning(f"{NGINX_CONF_BACKUP} already exists; keeping it as the tracked config")
    else:
        content = await ws.read_file(NGINX_CONF)
        if content is None:
            raise DeployError(f"{NGINX_CONF} not found")
        logger.info("Updating nginx configuration...")
        await ws.write_file(NGINX_CONF, substitute_domain(content, record.domain))
        await ws.move_file(NGINX_CONF, NGINX_CONF_BACKUP)

    await ws.write_file(NGINX_CONF_TEMP, generate_nginx_http_conf(site, record))
    await ws.move_file(NGINX_CONF_TEMP, NGINX_CONF)


async def run_ssl_setup(ws, site, record):
    """Obtain a certificate for a project with a tracked nginx config. Returns True on success."""
    files = base_files(site)
    try:
        logger.info(f"Setting up SSL for domain: {record.domain}")
        await _update_env(ws, record)
        await ws.make_dirs(CERTBOT_CONF_DIR, CERTBOT_WWW_DIR)

        logger.info("Step 1: Starting services without SSL...")
        await _park_tracked_config(ws, site, record)
        await stop_stack(ws, site, files)
        await start_stack(ws, site, files)
        await settle(ws, site.health.settle)
        await require_reachable(ws, site, record, delay=POLL_DELAY)

        logger.info("Step 2: Obtaining SSL certificate...")
        command = compose_run_certbot_cmd(site, files, record.names, record.email, force_renewal=True)
        if not await acquire_certificate(ws.run_cmd, command, record.names):
            raise DeployError("Failed to obtain SSL certificate")

        logger.info("Step 3: Updating to HTTPS configuration...")
        await ws.move_file(NGINX_CONF_BACKUP, NGINX_CONF)
        logger.info("Reloading nginx with SSL configuration...")
        rc, _, _ = await ws.run_cmd(compose_reload_proxy(site, files), timeout=120, log_output=True)
        if rc != 0:
            raise DeployError("nginx reload failed")
    except DeployError as e:
        logger.error(str(e))
        return False

    logger.info("Step 4: Testing HTTPS configuration...")
    await settle(ws, RELOAD_SETTLE, reason="Waiting for nginx reload")
    await advisory_probes(ws, record)

    logger.info("SSL setup complete!")
    for name in record.names:
        logger.info(f"  https://{name}")
    logger.info(f"SSL certificate auto-renews every {site.certbot.renew_interval} via the certbot container")
    logger.info(f"To check SSL status: {site.compose.command} -f {site.compose.base_file} logs certbot")
    return True
