"""Deploy command: full bootstrap (HTTP-only stack, certificate, HTTPS stack)."""

import asyncio
import logging
import sys

from certdock.commands.common import (
    add_domain_args,
    add_project_args,
    load_site_or_exit,
    resolve_record,
    workspace_for,
)
from certdock.orchestrate import BootstrapState, run_bootstrap

logger = logging.getLogger(__name__)


def handle_deploy(args):
    """Handle the deploy command."""
    asyncio.run(_handle_deploy(args))


async def _handle_deploy(args):
    logger.info("=== Production Deployment ===")
    site = load_site_or_exit(args)
    record = resolve_record(args, site, require_ip=True)
    ws = workspace_for(args)

    state = await run_bootstrap(ws, site, record)
    logger.info(f"Final state: {state.value}")
    if state != BootstrapState.HTTPS_ACTIVE:
        sys.exit(1)


def register_deploy_command(subparsers):
    """Register the deploy subcommand."""
    parser = subparsers.add_parser(
        "deploy",
        help="Deploy behind nginx with a Let's Encrypt certificate (HTTP bootstrap, then HTTPS)",
    )
    add_project_args(parser)
    add_domain_args(parser, ip=True)
    parser.set_defaults(func=handle_deploy)
