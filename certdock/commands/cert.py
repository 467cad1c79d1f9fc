"""Cert command: certificate for the bare domain only, then redeploy with HTTPS."""

import asyncio
import sys

from certdock.commands.common import (
    add_domain_args,
    add_project_args,
    load_site_or_exit,
    resolve_record,
    workspace_for,
)
from certdock.orchestrate import run_single_domain_cert


def handle_cert(args):
    """Handle the cert command."""
    asyncio.run(_handle_cert(args))


async def _handle_cert(args):
    site = load_site_or_exit(args)
    record = resolve_record(args, site)
    if not await run_single_domain_cert(workspace_for(args), site, record):
        sys.exit(1)


def register_cert_command(subparsers):
    """Register the cert subcommand."""
    parser = subparsers.add_parser(
        "cert",
        help="Force-renew a certificate for the domain without www and switch to HTTPS",
    )
    add_project_args(parser)
    add_domain_args(parser, ip=False, www=False)
    parser.set_defaults(func=handle_cert)
