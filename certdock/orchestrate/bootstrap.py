"""Staged certificate bootstrap: HTTP-only stack, certificate, HTTPS stack.

NO_CONFIG -> HTTP_ONLY -> CERT_REQUESTED -> HTTPS_ACTIVE, or FAILED from any
stage. Every step either overwrites its target file or tolerates the service
already being in the desired state, so a failed run is fixed by re-running.
"""

import logging

from certdock.certs.acme import acquire_certificate, certificate_exists, docker_run_certbot_cmd
from certdock.deploy.compose import (
    CERTBOT_CONF_DIR,
    CERTBOT_WWW_DIR,
    GENERATED_PATHS,
    LOCAL_COMPOSE_FILE,
    NGINX_LOCAL_DIR,
    NGINX_TEMP_DIR,
    TEMP_COMPOSE_FILE,
    compose_cmd,
    generate_bootstrap_compose,
    generate_compose_override,
    prod_files,
    temp_files,
)
from certdock.deploy.envfile import ENV_LOCAL_FILE, GITIGNORE_FILE, generate_env_local, merge_gitignore
from certdock.deploy.nginx import generate_nginx_dockerfile, generate_nginx_http_conf, generate_nginx_https_conf
from certdock.orchestrate.state import BootstrapState, DeployError
from certdock.orchestrate.steps import (
    advisory_probes,
    check_docker,
    require_reachable,
    settle,
    start_stack,
    stop_stack,
)

logger = logging.getLogger(__name__)

HTTPS_SETTLE = 20


async def materialize_local_config(ws, site, record):
    """Write the git-ignored production overrides (env, HTTPS nginx, compose override)."""
    logger.info("Creating local production environment...")
    await ws.write_file(ENV_LOCAL_FILE, generate_env_local(record))

    logger.info("Creating local nginx configuration...")
    await ws.write_file(f"{NGINX_LOCAL_DIR}/nginx.conf", generate_nginx_https_conf(site, record))
    await ws.write_file(f"{NGINX_LOCAL_DIR}/Dockerfile", generate_nginx_dockerfile(site))

    logger.info("Creating docker compose override...")
    await ws.write_file(LOCAL_COMPOSE_FILE, generate_compose_override(site))

    logger.info("Updating .gitignore...")
    current = await ws.read_file(GITIGNORE_FILE)
    content, added = merge_gitignore(current, GENERATED_PATHS)
    if added:
        await ws.write_file(GITIGNORE_FILE, content)
        logger.info(f"Added to .gitignore: {', '.join(added)}")


async def materialize_bootstrap_config(ws, site, record):
    """Write the transient HTTP-only stack (nginx-temp/ and docker-compose.temp.yml)."""
    await ws.write_file(f"{NGINX_TEMP_DIR}/nginx.conf", generate_nginx_http_conf(site, record))
    await ws.write_file(f"{NGINX_TEMP_DIR}/Dockerfile", generate_nginx_dockerfile(site))
    await ws.write_file(TEMP_COMPOSE_FILE, generate_bootstrap_compose(site))


async def cleanup_bootstrap_config(ws):
    logger.info("Cleaning up temporary files...")
    await ws.remove_path(NGINX_TEMP_DIR)
    await ws.remove_path(TEMP_COMPOSE_FILE)


async def _bring_up_http_only(ws, site, record, https_deployed=False):
    await materialize_bootstrap_config(ws, site, record)
    if https_deployed:
        # The HTTPS proxy from an earlier run still publishes port 80
        logger.info("Stopping the HTTPS deployment from a previous run...")
        await stop_stack(ws, site, prod_files(site))
    await stop_stack(ws, site, temp_files(site))
    await start_stack(ws, site, temp_files(site), state=BootstrapState.NO_CONFIG)
    await settle(ws, site.health.settle)
    logger.info("HTTP deployment complete")


async def _request_certificate(ws, site, record):
    await require_reachable(ws, site, record, state=BootstrapState.HTTP_ONLY)

    await ws.make_dirs(CERTBOT_CONF_DIR, CERTBOT_WWW_DIR)
    if certificate_exists(ws.root, record.domain):
        logger.info(f"Existing certificate for {record.domain} found; certbot keeps it until it is due for renewal")
    command = docker_run_certbot_cmd(site, ws.root, record.names, record.email)
    if not await acquire_certificate(ws.run_cmd, command, record.names):
        raise DeployError("Failed to get SSL certificate", state=BootstrapState.HTTP_ONLY)


async def _bring_up_https(ws, site):
    await stop_stack(ws, site, temp_files(site))
    await start_stack(ws, site, prod_files(site), state=BootstrapState.CERT_REQUESTED)
    await settle(ws, HTTPS_SETTLE)
    logger.info("HTTPS deployment complete")


def _log_summary(site, record):
    files = prod_files(site)
    logger.info("")
    logger.info("Your app is now available at:")
    for name in record.names:
        logger.info(f"  https://{name}")
    logger.info("")
    logger.info("Files created (added to .gitignore):")
    for path in (ENV_LOCAL_FILE, LOCAL_COMPOSE_FILE, f"{NGINX_LOCAL_DIR}/", "certbot/"):
        logger.info(f"  {path}")
    logger.info("")
    logger.info("Commands to manage deployment:")
    logger.info(f"  View logs: {compose_cmd(site, files, 'logs')}")
    logger.info(f"  Stop:      {compose_cmd(site, files, 'down')}")
    logger.info(f"  Restart:   {compose_cmd(site, files, 'restart')}")


async def run_bootstrap(ws, site, record):
    """Run the full bootstrap protocol. Returns the final BootstrapState.

    Args:
        ws: Workspace bound to the project directory
        site: SiteConfig
        record: validated DomainRecord (public_ip required)
    """
    state = BootstrapState.NO_CONFIG
    try:
        await check_docker(ws)
        https_deployed = ws.exists(LOCAL_COMPOSE_FILE)

        logger.info("Step 1: Materializing configuration...")
        await materialize_local_config(ws, site, record)

        logger.info("Step 2: Deploying with HTTP first...")
        await _bring_up_http_only(ws, site, record, https_deployed=https_deployed)
        state = BootstrapState.HTTP_ONLY

        logger.info("Step 3: Obtaining SSL certificate...")
        await _request_certificate(ws, site, record)
        state = BootstrapState.CERT_REQUESTED

        logger.info("Step 4: Deploying with HTTPS...")
        await _bring_up_https(ws, site)
        state = BootstrapState.HTTPS_ACTIVE
    except DeployError as e:
        logger.error(f"{e} (stage: {(e.state or state).value})")
        logger.error("Fix the reported cause and re-run; completed steps are safe to repeat.")
        return BootstrapState.FAILED

    logger.info("Step 5: Testing deployment...")
    await advisory_probes(ws, record)

    await cleanup_bootstrap_config(ws)
    logger.info("Deployment complete!")
    _log_summary(site, record)
    return state
