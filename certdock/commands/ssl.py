"""SSL command: in-place certificate setup for a tracked nginx/nginx.conf."""

import asyncio
import sys

from certdock.commands.common import (
    add_domain_args,
    add_project_args,
    load_site_or_exit,
    resolve_record,
    workspace_for,
)
from certdock.orchestrate import run_ssl_setup


def handle_ssl(args):
    """Handle the ssl command."""
    asyncio.run(_handle_ssl(args))


async def _handle_ssl(args):
    site = load_site_or_exit(args)
    record = resolve_record(args, site)
    if not await run_ssl_setup(workspace_for(args), site, record):
        sys.exit(1)


def register_ssl_command(subparsers):
    """Register the ssl subcommand."""
    parser = subparsers.add_parser(
        "ssl",
        help="Obtain a certificate using the project's own nginx/nginx.conf and reload nginx",
    )
    add_project_args(parser)
    add_domain_args(parser, ip=False)
    parser.set_defaults(func=handle_ssl)
