"""Teardown command: stop the deployed service set."""

import asyncio
import sys

from certdock.commands.common import add_project_args, load_site_or_exit, workspace_for
from certdock.orchestrate import run_teardown


def handle_teardown(args):
    """Handle the teardown command."""
    asyncio.run(_handle_teardown(args))


async def _handle_teardown(args):
    site = load_site_or_exit(args)
    if not await run_teardown(workspace_for(args), site, temp=args.temp):
        sys.exit(1)


def register_teardown_command(subparsers):
    """Register the teardown subcommand."""
    parser = subparsers.add_parser("teardown", help="Stop the HTTPS stack (docker compose down)")
    add_project_args(parser)
    parser.add_argument("--temp", action="store_true", help="Stop the HTTP-only bootstrap stack instead")
    parser.set_defaults(func=handle_teardown)
